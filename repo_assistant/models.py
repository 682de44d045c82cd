"""
models.py
---------
Pydantic models used by the API layer, the collaborators, and the LangGraph state.
"""
from __future__ import annotations
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Set, Union
from pydantic import BaseModel, Field

Role = Literal["user", "assistant", "system"]

HIDDEN_PLACEHOLDER = (
    "User hid this message due to it no longer being contextually necessary "
    "and/or it was redundant info."
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# --------------------------------------------------------------------------------------
# Projects & conversation turns
# --------------------------------------------------------------------------------------
class EmbeddingMetadata(BaseModel):
    file_path: str
    last_updated: Optional[datetime] = None
    vector_id: Optional[str] = None


class Project(BaseModel):
    name: str
    root_dir: str = Field(".", description="Filesystem root of the project checkout")
    source_dir: str = Field("src", description="Source root used to canonicalize file references")
    provider: str = "openai"
    specific_model: Optional[str] = None
    file_descriptions: Dict[str, str] = Field(default_factory=dict)
    embeddings: Dict[str, EmbeddingMetadata] = Field(default_factory=dict)

    @property
    def collection_key(self) -> str:
        return f"project_{self.name}"


class ConversationTurn(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    role: Role
    content: str
    hidden: bool = False
    commit_ref: Optional[str] = None
    timestamp: datetime = Field(default_factory=_utcnow)
    context_files: Optional[List[str]] = None
    thoughts: Optional[List[str]] = None
    provider: Optional[str] = None
    model: Optional[str] = None
    hidden_context: Optional[List[str]] = None


_HIDDEN_CODES = {
    ("user", False): "P",
    ("user", True): "p",
    ("assistant", False): "R",
    ("assistant", True): "r",
}


def hidden_markers(history: List[ConversationTurn]) -> List[str]:
    """One code per prior user/assistant turn: P/p for prompts, R/r for replies, lowercase if hidden."""
    codes = (_HIDDEN_CODES.get((t.role, t.hidden)) for t in history)
    return [c for c in codes if c]


class AgentTurnRequest(BaseModel):
    message: str = Field(..., description="The user's latest chat message")
    grounding: bool = Field(False, description="Allow the final generation call to search the web")
    commit_ref: Optional[str] = None


# --------------------------------------------------------------------------------------
# Search results
# --------------------------------------------------------------------------------------
class SearchHit(BaseModel):
    path: str
    score: float
    summary: Optional[str] = None


def rank_hits(hits: List[SearchHit]) -> List[SearchHit]:
    """Descending score; ties broken by path so ordering is reproducible."""
    return sorted(hits, key=lambda h: (-h.score, h.path))


class SemanticSearchResult(BaseModel):
    hits: List[SearchHit] = Field(default_factory=list)
    suggested_paths: Set[str] = Field(default_factory=set)
    followup_keywords: str = ""


class LoadMode(str, Enum):
    FULL_SOURCE = "full_source"
    SUMMARY_ONLY = "summary_only"


# --------------------------------------------------------------------------------------
# Architect decisions
# --------------------------------------------------------------------------------------
class Generate(BaseModel):
    kind: Literal["generate"] = "generate"


class FetchSource(BaseModel):
    kind: Literal["fetch_source"] = "fetch_source"
    paths: List[str] = Field(..., min_length=1)


class SearchMore(BaseModel):
    kind: Literal["search_more"] = "search_more"
    keywords: str = Field(..., min_length=1)


Decision = Annotated[Union[Generate, FetchSource, SearchMore], Field(discriminator="kind")]


# --------------------------------------------------------------------------------------
# State machine
# --------------------------------------------------------------------------------------
class InitialSearch(BaseModel):
    kind: Literal["initial_search"] = "initial_search"


class ArchitectDecision(BaseModel):
    kind: Literal["architect_decision"] = "architect_decision"


class FetchingSource(BaseModel):
    kind: Literal["fetching_source"] = "fetching_source"
    paths: List[str]


class SearchingMore(BaseModel):
    kind: Literal["searching_more"] = "searching_more"
    keywords: str


class ReadyToGenerate(BaseModel):
    kind: Literal["ready_to_generate"] = "ready_to_generate"


class Error(BaseModel):
    kind: Literal["error"] = "error"
    message: str


AgentState = Annotated[
    Union[InitialSearch, ArchitectDecision, FetchingSource, SearchingMore, ReadyToGenerate, Error],
    Field(discriminator="kind"),
]

TERMINAL_KINDS = {"ready_to_generate", "error"}


class AgentContext(BaseModel):
    """
    Everything one agent run knows about the project's files.

    A path lives in at most one of `full_source` / `summaries`; full content always
    wins. Owned by a single run and discarded when the turn ends.
    """
    full_source: Dict[str, str] = Field(default_factory=dict)
    summaries: Dict[str, str] = Field(default_factory=dict)
    thoughts: List[str] = Field(default_factory=list)
    turn_count: int = 0
    max_turns: int = 5

    def add_full_source(self, path: str, content: str) -> None:
        self.full_source[path] = content
        self.summaries.pop(path, None)

    def add_summary(self, path: str, text: str) -> None:
        if path not in self.full_source:
            self.summaries[path] = text

    def add_thought(self, text: str) -> None:
        self.thoughts.append(text)

    def increment_turn(self) -> bool:
        """Count one architect visit; True once the cap is reached."""
        self.turn_count += 1
        if self.turn_count >= self.max_turns:
            self.add_thought(
                f"Warning: Reached maximum architect turns ({self.max_turns}). Forcing generation."
            )
            return True
        return False

    def knows(self, path: str) -> bool:
        return path in self.full_source or path in self.summaries

    def total_files(self) -> int:
        return len(self.full_source) + len(self.summaries)


class GraphState(BaseModel):
    initial_query: str
    user_message: str
    history: List[ConversationTurn] = Field(default_factory=list)
    project: Project
    agent_context: AgentContext = Field(default_factory=AgentContext)
    step: AgentState = Field(default_factory=InitialSearch)
