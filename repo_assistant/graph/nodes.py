"""
nodes.py
--------
Agent node implementations for the LangGraph retrieval loop.

This module defines:
- `AgentServices`: the collaborator bundle every node draws on
- The initial search step (semantic search -> consolidation -> context)
- The architect step (turn cap, then one decision call)
- The fetch-source and search-more steps, which always hand back to the architect

Key design notes:
- Nodes mutate the run's `AgentContext` in place and return the state, setting
  `state.step` to the next `AgentState`; graph.py routes on `step.kind`.
- Errors raised by collaborators (`AssistantError`) turn into the terminal `Error`
  state. Per-file problems never do: they are recorded as thoughts and skipped.
- The architect's turn counter is the only loop bound.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from loguru import logger

from ..config import Settings
from ..errors import AssistantError
from ..models import (
    ArchitectDecision,
    Decision,
    Error,
    FetchingSource,
    FetchSource,
    GraphState,
    ReadyToGenerate,
    SearchingMore,
    SearchMore,
)
from ..services.base import Embedder, KeywordSearcher, LLMClient, VectorIndex
from .architect import Architect, select_summaries
from .consolidate import consolidate, populate_file_context
from .file_context import FileContextLoader, summary_key_to_path
from .paths import normalize_project_path
from .search import SemanticSearch


@dataclass
class AgentServices:
    llm: LLMClient
    embedder: Embedder
    vectors: VectorIndex
    keywords: KeywordSearcher
    loader: FileContextLoader


def decision_to_state(decision: Decision):
    if isinstance(decision, FetchSource):
        return FetchingSource(paths=decision.paths)
    if isinstance(decision, SearchMore):
        return SearchingMore(keywords=decision.keywords)
    return ReadyToGenerate()


def _fail(state: GraphState, message: str) -> GraphState:
    logger.warning(f"Agent run for {state.project.name} failed: {message}")
    state.agent_context.add_thought(f"Error: {message}")
    state.step = Error(message=message)
    return state


class AgentNodes:
    """Holds the run-independent collaborators; all per-run data lives in `GraphState`."""

    def __init__(self, services: AgentServices, settings: Settings) -> None:
        self.services = services
        self.settings = settings
        self.search = SemanticSearch(
            services.llm,
            services.embedder,
            services.vectors,
            services.loader,
            top_n=settings.semantic_top_n,
            dimensions=settings.embedding_dimensions,
            history_window=settings.history_window,
        )
        self.architect = Architect(services.llm)

    # ----------------------------------------------------------------------------------
    # Initial search
    # ----------------------------------------------------------------------------------
    async def initial_search(self, state: GraphState) -> GraphState:
        project, ctx = state.project, state.agent_context
        ctx.add_thought("--- PHASE 1: Initial Search ---")
        try:
            result = await self.search.search(
                project, state.initial_query, state.history, state.user_message, ctx.thoughts
            )
            lexical: List[Tuple[str, float]] = []
            if self.settings.initial_keyword_top_n > 0 and result.followup_keywords:
                lexical = await self.services.keywords.keyword_search(
                    project,
                    result.followup_keywords,
                    str(self.services.loader.project_dir(project)),
                    self.settings.initial_keyword_top_n,
                )
                ctx.add_thought(f"Keyword search returned {len(lexical)} results.")
        except AssistantError as e:
            return _fail(state, str(e))

        suggested = set()
        for raw in sorted(result.suggested_paths):
            normalized = normalize_project_path(raw, project)
            if normalized is None:
                ctx.add_thought(f"Could not normalize suggested file path: {raw}")
                continue
            suggested.add(normalized)

        ctx.add_thought("Consolidating search results and populating file context.")
        paths = consolidate(project, result.hits, lexical, suggested, ctx.thoughts)
        ctx.add_thought(f"Total unique relevant files identified across all searches: {len(paths)}.")

        full_source, summaries = populate_file_context(
            self.services.loader, project, paths, suggested, ctx.thoughts
        )
        for path, content in full_source.items():
            ctx.add_full_source(path, content)
        for path, summary in summaries.items():
            ctx.add_summary(path, summary)

        ctx.add_thought(
            f"Currently have {len(ctx.full_source)} files with full source and "
            f"{len(ctx.summaries)} summaries."
        )
        state.step = ArchitectDecision()
        return state

    # ----------------------------------------------------------------------------------
    # Architect
    # ----------------------------------------------------------------------------------
    async def architect_turn(self, state: GraphState) -> GraphState:
        ctx = state.agent_context
        if ctx.increment_turn():
            state.step = ReadyToGenerate()
            return state

        ctx.add_thought(f"--- Architect Turn {ctx.turn_count} ---")
        summaries = select_summaries(ctx, self.settings.architect_summary_cap)
        ctx.add_thought(
            f"Refined proactive descriptions for Architect to {len(summaries)} files "
            "(not already full source)."
        )
        try:
            decision = await self.architect.decide(
                state.project,
                state.initial_query,
                state.user_message,
                summaries,
                ctx.full_source,
                ctx.thoughts,
            )
        except AssistantError as e:
            return _fail(state, str(e))

        state.step = decision_to_state(decision)
        return state

    # ----------------------------------------------------------------------------------
    # Fetch source
    # ----------------------------------------------------------------------------------
    async def fetch_source(self, state: GraphState) -> GraphState:
        project, ctx = state.project, state.agent_context
        requested = state.step.paths if isinstance(state.step, FetchingSource) else []
        ctx.add_thought(f"--- FETCH_SOURCE: {len(requested)} files ---")

        paths: List[str] = []
        for raw in requested:
            normalized = normalize_project_path(raw, project)
            if normalized is None:
                ctx.add_thought(f"Could not normalize requested file path: {raw}")
                continue
            if normalized not in paths:
                paths.append(normalized)

        loaded = self.services.loader.load_full_contents(project, paths, ctx.thoughts)
        for path, content in loaded.items():
            ctx.add_full_source(path, content)

        ctx.add_thought(
            f"After FETCH_SOURCE: {len(ctx.full_source)} files with full source, "
            f"{len(ctx.summaries)} summaries."
        )
        state.step = ArchitectDecision()
        return state

    # ----------------------------------------------------------------------------------
    # Search more
    # ----------------------------------------------------------------------------------
    async def search_more(self, state: GraphState) -> GraphState:
        project, ctx = state.project, state.agent_context
        keywords = state.step.keywords if isinstance(state.step, SearchingMore) else ""
        ctx.add_thought(f"--- SEARCH_MORE: '{keywords}' ---")
        try:
            hits = await self.services.keywords.keyword_search(
                project,
                keywords,
                str(self.services.loader.project_dir(project)),
                self.settings.search_more_top_n,
            )
        except AssistantError as e:
            return _fail(state, str(e))
        ctx.add_thought(f"Refined keyword search returned {len(hits)} results.")

        for key, _score in hits:
            target = summary_key_to_path(key, project.name)
            if target is None:
                ctx.add_thought(f"Could not extract target path from summary hit: {key}")
                continue
            path = normalize_project_path(target, project)
            if path is None:
                ctx.add_thought(f"Could not normalize path from keyword search results: {target}")
                continue
            if ctx.knows(path):
                continue
            summary = self.services.loader.read_summary(project, path)
            if summary is None:
                ctx.add_thought(f"Failed to parse summary for refined keyword result: {path}")
                continue
            ctx.add_summary(path, summary)
            ctx.add_thought(f"Added new summary from refined search: {path}")

        ctx.add_thought(
            f"After SEARCH_MORE: {len(ctx.full_source)} files with full source, "
            f"{len(ctx.summaries)} summaries."
        )
        state.step = ArchitectDecision()
        return state
