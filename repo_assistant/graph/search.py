"""
search.py
---------
Semantic-search orchestration for the agent's initial retrieval.

One run: rewrite the conversation into a self-contained query (LLM), embed it,
pull the top hits from the vector index, then ask the LLM to judge the hits and
name the files worth reading in full plus follow-up keywords. Every step is
load-bearing: any failure propagates and the agent turn aborts, because a
half-built result set would mislead the architect.
"""
from __future__ import annotations
import html
import json
import re
from typing import List, Sequence, Set, Tuple

from loguru import logger

from ..errors import AnalysisParseError
from ..models import (
    HIDDEN_PLACEHOLDER,
    ConversationTurn,
    Project,
    SearchHit,
    SemanticSearchResult,
    rank_hits,
)
from ..services.base import Embedder, LLMClient, VectorIndex
from .file_context import FileContextLoader
from .prompts import QUERY_REWRITE_INSTRUCTION, SEARCH_ANALYSIS

_FENCED = re.compile(r"```([A-Za-z0-9_+-]*)[ \t]*([\s\S]*?)```")


def build_contextual_query(
    initial_query: str,
    history: Sequence[ConversationTurn],
    latest_message: str,
    window: int = 6,
) -> str:
    """Initial task + the last `window` user/assistant turns (oldest first) + latest message."""
    parts = ["Consider the following initial task:", initial_query]

    recent = [t for t in history if t.role in ("user", "assistant")]
    recent = recent[-window:] if window > 0 else []
    if recent:
        parts.append("")
        parts.append("Review the recent conversation history to understand the current context and goal:")
        parts.extend(f"{t.role}: {HIDDEN_PLACEHOLDER if t.hidden else t.content}" for t in recent)

    parts.append("")
    parts.append("Based on this, and the user's latest message:")
    parts.append(latest_message)
    parts.append("")
    parts.append(QUERY_REWRITE_INSTRUCTION)
    return "\n".join(parts)


def extract_json_block(text: str) -> str:
    """First ```json block, else first untagged block, else the whole text."""
    blocks = [(m.group(1).lower(), m.group(2)) for m in _FENCED.finditer(text)]
    for wanted in ("json", ""):
        for lang, body in blocks:
            if lang == wanted:
                return body.strip()
    return text.strip()


def parse_analysis(raw: str) -> Tuple[Set[str], str]:
    """
    Extract (suggested_files, bm25_keywords) from the analysis reply.

    The JSON may sit inside a fenced block anywhere in the reply. Raises
    AnalysisParseError when no JSON object can be decoded.
    """
    candidate = extract_json_block(html.unescape(raw or ""))
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise AnalysisParseError(
            f"Failed to parse search analysis JSON: {e}. Failed data: {candidate[:500]}"
        ) from e
    if not isinstance(data, dict):
        raise AnalysisParseError("Search analysis JSON is not an object")

    files = data.get("suggested_files")
    suggested = {f for f in files if isinstance(f, str) and f.strip()} if isinstance(files, list) else set()
    keywords = data.get("bm25_keywords")
    return suggested, keywords.strip() if isinstance(keywords, str) else ""


class SemanticSearch:
    def __init__(
        self,
        llm: LLMClient,
        embedder: Embedder,
        vectors: VectorIndex,
        loader: FileContextLoader,
        top_n: int = 5,
        dimensions: int = 1536,
        history_window: int = 6,
    ) -> None:
        self.llm = llm
        self.embedder = embedder
        self.vectors = vectors
        self.loader = loader
        self.top_n = top_n
        self.dimensions = dimensions
        self.history_window = history_window

    def _analysis_prompt(self, project: Project, query: str, hits: List[SearchHit]) -> str:
        descriptions = "\n".join(
            f"{path}: {desc}" for path, desc in sorted(project.file_descriptions.items())
        )
        code: List[str] = []
        for hit in hits:
            content = self.loader.read_source(project, hit.path)
            if content is None:
                code.append(f"// File: {hit.path} (content not available)\n")
            else:
                code.append(f"// File: {hit.path}\n{content}\n")
        return SEARCH_ANALYSIS.format(query=query, descriptions=descriptions, code="\n".join(code))

    async def search(
        self,
        project: Project,
        initial_query: str,
        recent_turns: Sequence[ConversationTurn],
        latest_message: str,
        thoughts: List[str],
    ) -> SemanticSearchResult:
        thoughts.append("Generating contextual query for semantic search.")
        contextual = build_contextual_query(
            initial_query, recent_turns, latest_message, self.history_window
        )
        query = (await self.llm.complete(contextual, project.specific_model)).strip()
        thoughts.append(f"Detailed vector query from LLM: '{query}'")

        vector = await self.embedder.embed(query, self.dimensions)
        triples = await self.vectors.similarity_search(project.collection_key, vector, self.top_n)
        hits = rank_hits([SearchHit(path=p, summary=s, score=score) for p, s, score in triples])
        thoughts.append(f"Vector search returned {len(hits)} results.")
        logger.debug(f"Semantic search for {project.name}: {[h.path for h in hits]}")

        analysis = await self.llm.complete(
            self._analysis_prompt(project, query, hits), project.specific_model
        )
        suggested, keywords = parse_analysis(analysis)
        thoughts.append(f"LLM analysis suggested {len(suggested)} files for full source.")
        thoughts.append(f"LLM analysis provided keyword search terms: '{keywords}'")
        return SemanticSearchResult(hits=hits, suggested_paths=suggested, followup_keywords=keywords)
