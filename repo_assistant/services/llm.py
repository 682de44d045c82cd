"""
llm.py
------
Chat-model collaborator backed by `langchain_openai.ChatOpenAI`.

Two call shapes: `complete` for single-shot analysis prompts and `converse` for the
final, history-aware answer. Neither retries; failures surface as
`CollaboratorError` so the agent can abort the turn.
"""
from __future__ import annotations
from typing import Any, List, Optional, Sequence

from langchain_openai import ChatOpenAI
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from loguru import logger

from ..errors import CollaboratorError
from ..models import HIDDEN_PLACEHOLDER, ConversationTurn

WEB_SEARCH_TOOL = {"type": "web_search_preview"}


def content_to_text(content: Any) -> str:
    """
    Flatten a LangChain message payload to text. Responses-API replies (used when
    grounding is on) arrive as a list of content blocks rather than a string.
    """
    if isinstance(content, str):
        return content
    parts: List[str] = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") in {"text", "output_text"}:
            parts.append(str(block.get("text", "")))
    return "".join(parts)


def turn_to_message(turn: ConversationTurn) -> BaseMessage:
    content = HIDDEN_PLACEHOLDER if turn.hidden else turn.content
    if turn.role == "assistant":
        return AIMessage(content=content)
    if turn.role == "system":
        return SystemMessage(content=content)
    return HumanMessage(content=content)


class LLMService:
    def __init__(self, api_key: str, default_model: str, temperature: float = 0.2) -> None:
        self.api_key = api_key
        self.default_model = default_model
        self.temperature = temperature

    def _chat(self, model_hint: Optional[str]) -> ChatOpenAI:
        return ChatOpenAI(
            model=model_hint or self.default_model,
            temperature=self.temperature,
            api_key=self.api_key or None,
        )

    async def _invoke(
        self,
        call: str,
        messages: List[BaseMessage],
        model_hint: Optional[str] = None,
        grounding: bool = False,
    ) -> str:
        logger.debug(f"{call}: sending {len(messages)} message(s)")
        # building or binding the client raises on a missing key or bad params
        try:
            llm: Any = self._chat(model_hint)
            if grounding:
                llm = llm.bind_tools([WEB_SEARCH_TOOL])
            out = await llm.ainvoke(messages)
        except Exception as e:
            logger.error(f"{call} failed: {e}")
            raise CollaboratorError(call, str(e)) from e
        return content_to_text(out.content)

    async def complete(self, prompt: str, model_hint: Optional[str] = None) -> str:
        return await self._invoke("LLM completion", [HumanMessage(content=prompt)], model_hint)

    async def converse(
        self,
        system_prompt: str,
        history: Sequence[ConversationTurn],
        new_message: ConversationTurn,
        model_hint: Optional[str] = None,
        grounding: bool = False,
    ) -> str:
        msgs: List[BaseMessage] = [SystemMessage(content=system_prompt)]
        msgs.extend(turn_to_message(t) for t in history)
        msgs.append(turn_to_message(new_message))
        return await self._invoke("LLM conversation", msgs, model_hint, grounding)
