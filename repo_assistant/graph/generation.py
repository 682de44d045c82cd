"""
generation.py
-------------
Final answer generation: fold the agent's accumulated context into one system prompt,
send it with the conversation so far, and package the reply as an assistant turn.
"""
from __future__ import annotations
from typing import Dict, List, Mapping, Sequence

from ..models import AgentContext, ConversationTurn, Project
from ..services.base import LLMClient
from .prompts import LIVE_FILES_NOTE, SYSTEM_ASSISTANT


def build_system_prompt(
    query: str,
    context_files: List[str],
    file_contents: str,
    descriptions: Mapping[str, str],
) -> str:
    prompt = SYSTEM_ASSISTANT.format(query=query)
    if context_files:
        prompt += f"\n\n{LIVE_FILES_NOTE}"
        prompt += "\n\nYou have access to the following files:\n" + "\n".join(context_files)
    if file_contents:
        prompt += f"\n\nHere are the contents of these files:\n\n{file_contents}"
    if descriptions:
        listing = "\n".join(f"{path}: {descriptions[path]}" for path in sorted(descriptions))
        prompt += f"\n\nDescriptions of other project files:\n{listing}"
    return prompt


def merge_descriptions(
    project: Project, context: AgentContext, cap: int
) -> Dict[str, str]:
    """
    The project's static descriptions plus at most `cap` agent summaries (sorted by
    path, skipping files already included in full). Applies to this call only.
    """
    combined = dict(project.file_descriptions)
    added = 0
    for path in sorted(context.summaries):
        if added >= cap:
            break
        if path in context.full_source:
            continue
        combined[path] = context.summaries[path]
        added += 1
    context.add_thought(
        f"Combined project descriptions with {added} filtered proactive descriptions for final LLM."
    )
    return combined


class ResponseGenerator:
    def __init__(self, llm: LLMClient, summary_cap: int = 10) -> None:
        self.llm = llm
        self.summary_cap = summary_cap

    async def generate(
        self,
        project: Project,
        initial_query: str,
        prior_turns: Sequence[ConversationTurn],
        new_message: ConversationTurn,
        context: AgentContext,
        grounding: bool = False,
    ) -> ConversationTurn:
        context_files = sorted(context.full_source)
        context.add_thought(f"Final list of files with full source content: {len(context_files)}.")
        file_contents = "".join(
            f"--- FILE: {path} ---\n{context.full_source[path]}\n\n" for path in context_files
        )
        if not context_files:
            context.add_thought("No files selected for full content.")

        descriptions = merge_descriptions(project, context, self.summary_cap)
        system_prompt = build_system_prompt(initial_query, context_files, file_contents, descriptions)

        context.add_thought("Sending final conversation to LLM for response generation.")
        reply = await self.llm.converse(
            system_prompt,
            list(prior_turns),
            new_message,
            project.specific_model,
            grounding,
        )
        context.add_thought("Received final response from LLM.")

        return ConversationTurn(
            role="assistant",
            content=reply,
            commit_ref=new_message.commit_ref,
            context_files=context_files,
            provider=project.provider,
            model=project.specific_model,
            hidden_context=new_message.hidden_context,
            thoughts=list(context.thoughts),
        )
