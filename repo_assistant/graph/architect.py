"""
architect.py
------------
The architect role: one LLM call that looks at what the agent has loaded so far and
picks the next move (answer now, read specific files in full, or search again).

The raw reply is an untyped JSON document only until `parse_decision` turns it into
a `Decision`; nothing past this module sees the document. A reply without a usable
`action` is an error. An unknown action, or a known one with an empty payload,
degrades to `Generate` so an odd reply never blocks the user from an answer.
"""
from __future__ import annotations
import html
import json
from typing import Dict, List, Mapping

from loguru import logger

from ..errors import ArchitectError
from ..models import AgentContext, Decision, FetchSource, Generate, Project, SearchMore
from ..services.base import LLMClient
from .prompts import ARCHITECT_INSTRUCTIONS, SYSTEM_ARCHITECT


def unwrap_response(raw: str) -> str:
    """Strip one layer of ```json / ``` fencing, then unescape HTML entities."""
    text = (raw or "").strip()
    if text.endswith("```") and len(text) >= 6:
        if text.startswith("```json"):
            text = text[len("```json"):-3].strip()
        elif text.startswith("```"):
            text = text[3:-3].strip()
    return html.unescape(text)


def parse_decision(raw: str, thoughts: List[str]) -> Decision:
    text = unwrap_response(raw)
    try:
        doc = json.loads(text)
    except json.JSONDecodeError as e:
        raise ArchitectError(
            f"Failed to parse Architect LLM's JSON response: {e} - Original response: {text[:500]}"
        ) from e
    if not isinstance(doc, dict):
        raise ArchitectError("Architect response is not a JSON object.")

    action = doc.get("action")
    if not isinstance(action, str) or not action.strip():
        raise ArchitectError("Architect decision missing 'action' field or not a string.")

    reason = doc.get("reason")
    thoughts.append(f"Architect Reason: {reason if isinstance(reason, str) and reason else 'No reason provided.'}")

    action = action.strip().upper()
    if action == "GENERATE":
        thoughts.append("Architect decided to GENERATE directly.")
        return Generate()

    if action == "FETCH_SOURCE":
        raw_paths = doc.get("paths")
        paths = (
            [p.strip() for p in raw_paths if isinstance(p, str) and p.strip()]
            if isinstance(raw_paths, list)
            else []
        )
        if not paths:
            thoughts.append("Warning: FETCH_SOURCE with empty paths. Proceeding to GENERATE.")
            return Generate()
        thoughts.append(f"Architect decided to FETCH_SOURCE: {', '.join(paths)}")
        return FetchSource(paths=paths)

    if action == "SEARCH_MORE":
        keywords = doc.get("keywords")
        keywords = keywords.strip() if isinstance(keywords, str) else ""
        if not keywords:
            thoughts.append("Warning: SEARCH_MORE with empty keywords. Proceeding to GENERATE.")
            return Generate()
        thoughts.append(f"Architect decided to SEARCH_MORE: '{keywords}'")
        return SearchMore(keywords=keywords)

    thoughts.append(f"Architect returned unknown action: '{action}'. Defaulting to GENERATE.")
    return Generate()


def select_summaries(context: AgentContext, cap: int) -> Dict[str, str]:
    """Summaries for files not already loaded in full, sorted by path, at most `cap`."""
    selected: Dict[str, str] = {}
    for path in sorted(context.summaries):
        if len(selected) >= cap:
            break
        if path not in context.full_source:
            selected[path] = context.summaries[path]
    return selected


def build_architect_prompt(
    initial_query: str,
    latest_message: str,
    summaries: Mapping[str, str],
    full_source: Mapping[str, str],
) -> str:
    parts = [
        SYSTEM_ARCHITECT,
        f'Initial User Query: "{initial_query}"',
        f'User\'s Latest Message: "{latest_message}"',
        "",
    ]
    if summaries:
        parts.append("--- File Summaries (High-Level Descriptions) ---")
        for path in sorted(summaries):
            parts.append(f"FILE: {path}\nDESCRIPTION:\n{summaries[path]}\n")
    if full_source:
        parts.append("--- Active Code Files (Full Source) ---")
        for path in sorted(full_source):
            parts.append(f"FILE: {path}\nCONTENT:\n```\n{full_source[path]}\n```\n")
    parts.append(ARCHITECT_INSTRUCTIONS)
    return "\n".join(parts)


class Architect:
    def __init__(self, llm: LLMClient) -> None:
        self.llm = llm

    async def decide(
        self,
        project: Project,
        initial_query: str,
        latest_message: str,
        summaries: Mapping[str, str],
        full_source: Mapping[str, str],
        thoughts: List[str],
    ) -> Decision:
        prompt = build_architect_prompt(initial_query, latest_message, summaries, full_source)
        thoughts.append("Requesting Architect LLM decision on next steps.")
        raw = await self.llm.complete(prompt, project.specific_model)
        decision = parse_decision(raw, thoughts)
        logger.debug(f"Architect decision for {project.name}: {decision!r}")
        return decision
