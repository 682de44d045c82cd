"""Fake collaborators for exercising the agent without network access."""

from typing import List, Optional, Sequence, Tuple, Union

from repo_assistant.models import ConversationTurn, Project


class FakeLLM:
    """Scripted LLM.

    `complete` returns the scripted responses in order and keeps repeating the last
    one once the script runs out. A scripted Exception instance is raised instead.
    """

    def __init__(
        self,
        script: Sequence[Union[str, Exception]] = (),
        reply: Union[str, Exception] = "final answer",
    ):
        self.script = list(script)
        self.reply = reply
        self.prompts: List[str] = []
        self.conversations: List[dict] = []

    async def complete(self, prompt: str, model_hint: Optional[str] = None) -> str:
        self.prompts.append(prompt)
        if not self.script:
            raise AssertionError("FakeLLM.complete called with an empty script")
        item = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(item, Exception):
            raise item
        return item

    async def converse(
        self,
        system_prompt: str,
        history: Sequence[ConversationTurn],
        new_message: ConversationTurn,
        model_hint: Optional[str] = None,
        grounding: bool = False,
    ) -> str:
        self.conversations.append(
            {
                "system_prompt": system_prompt,
                "history": list(history),
                "new_message": new_message,
                "model_hint": model_hint,
                "grounding": grounding,
            }
        )
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply


class FakeEmbedder:
    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.texts: List[str] = []

    async def embed(self, text: str, dimensions: Optional[int] = None) -> List[float]:
        self.texts.append(text)
        if self.error is not None:
            raise self.error
        return [0.1] * (dimensions or 8)


class FakeVectorIndex:
    def __init__(
        self,
        triples: Sequence[Tuple[str, str, float]] = (),
        error: Optional[Exception] = None,
    ):
        self.triples = list(triples)
        self.error = error
        self.calls: List[Tuple[str, int]] = []

    async def similarity_search(
        self, collection_key: str, query_vector: List[float], top_n: int
    ) -> List[Tuple[str, str, float]]:
        self.calls.append((collection_key, top_n))
        if self.error is not None:
            raise self.error
        return self.triples[:top_n]


class FakeKeywordIndex:
    def __init__(
        self,
        hits: Sequence[Tuple[str, float]] = (),
        error: Optional[Exception] = None,
    ):
        self.hits = list(hits)
        self.error = error
        self.calls: List[Tuple[str, str, int]] = []

    async def keyword_search(
        self, project: Project, keywords: str, scope_dir: str, top_n: int
    ) -> List[Tuple[str, float]]:
        self.calls.append((keywords, scope_dir, top_n))
        if self.error is not None:
            raise self.error
        return self.hits[:top_n]


def analysis_reply(suggested_files: Sequence[str], keywords: str = "") -> str:
    """An analysis response in the fenced-JSON shape the search step expects."""
    files = ", ".join(f'"{f}"' for f in suggested_files)
    return (
        "Here is my analysis.\n"
        "```json\n"
        f'{{"suggested_files": [{files}], "bm25_keywords": "{keywords}"}}\n'
        "```\n"
    )
