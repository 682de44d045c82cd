"""
base.py
-------
Narrow call contracts for the external collaborators the agent drives.

The graph only ever talks to these shapes, so tests (and alternative providers)
can be injected at graph-build time without touching the state machine.
"""
from __future__ import annotations
from typing import List, Optional, Protocol, Sequence, Tuple

from ..models import ConversationTurn, Project


class LLMClient(Protocol):
    async def complete(self, prompt: str, model_hint: Optional[str] = None) -> str:
        """Single-shot analysis call (query rewriting, result analysis, architect)."""
        ...

    async def converse(
        self,
        system_prompt: str,
        history: Sequence[ConversationTurn],
        new_message: ConversationTurn,
        model_hint: Optional[str] = None,
        grounding: bool = False,
    ) -> str:
        """Conversation call used for the final answer."""
        ...


class Embedder(Protocol):
    async def embed(self, text: str, dimensions: Optional[int] = None) -> List[float]: ...


class VectorIndex(Protocol):
    async def similarity_search(
        self, collection_key: str, query_vector: List[float], top_n: int
    ) -> List[Tuple[str, str, float]]:
        """Return (path, summary, score) triples, best first."""
        ...


class KeywordSearcher(Protocol):
    async def keyword_search(
        self, project: Project, keywords: str, scope_dir: str, top_n: int
    ) -> List[Tuple[str, float]]:
        """Return (indexed_key, score) pairs, best first."""
        ...
