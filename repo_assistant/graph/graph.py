"""
graph.py
--------
LangGraph wiring. Defines the retrieval state machine, its transitions, and the
agentic-turn entry point that runs it and then generates the reply.

Flow:
START -> initial_search -> architect -> (fetch_source | search_more -> architect)* -> END
then, outside the loop, ReadyToGenerate -> ResponseGenerator.

Only fetch_source and search_more re-enter the loop and both route back through the
architect, whose turn counter forces ReadyToGenerate once `max_turns` is reached.
"""

from __future__ import annotations

from typing import Any, List, Optional, Sequence, Tuple

from langgraph.errors import GraphRecursionError
from langgraph.graph import END, START, StateGraph
from loguru import logger

from ..config import Settings
from ..errors import AgentError, AssistantError
from ..models import TERMINAL_KINDS, AgentContext, ConversationTurn, Error, GraphState, Project
from ..store import QueryStore
from .generation import ResponseGenerator
from .nodes import AgentNodes, AgentServices

ROUTES = {
    "architect_decision": "architect",
    "fetching_source": "fetch_source",
    "searching_more": "search_more",
}


# --------------------------------------------------------------------------------------
# Helpers
# --------------------------------------------------------------------------------------
def _result_to_state(result: Any) -> GraphState:
    """
    Normalize a LangGraph invoke result (a dict of channel values, or the model
    itself depending on version) into a `GraphState`.
    """
    if isinstance(result, GraphState):
        return result
    if isinstance(result, dict):
        return GraphState.model_validate(result)
    raise AgentError(f"Unexpected agent graph result: {type(result).__name__}")


def router(state: GraphState) -> str:
    """
    Route on the state the last node set:
    - ArchitectDecision -> 'architect'
    - FetchingSource / SearchingMore -> their nodes
    - ReadyToGenerate / Error (terminal) -> END
    """
    return ROUTES.get(state.step.kind, END)


def recursion_limit(max_turns: int) -> int:
    # initial search + max_turns architect visits + (max_turns - 1) re-entries, plus slack
    return 2 * max_turns + 4


# --------------------------------------------------------------------------------------
# Graph build & run
# --------------------------------------------------------------------------------------
def build_graph(nodes: AgentNodes):
    """Build and compile the retrieval state machine."""
    g = StateGraph(GraphState)

    g.add_node("initial_search", nodes.initial_search)
    g.add_node("architect", nodes.architect_turn)
    g.add_node("fetch_source", nodes.fetch_source)
    g.add_node("search_more", nodes.search_more)

    path_map = {
        "architect": "architect",
        "fetch_source": "fetch_source",
        "search_more": "search_more",
        END: END,
    }
    g.add_edge(START, "initial_search")
    g.add_conditional_edges("initial_search", router, path_map)
    g.add_conditional_edges("architect", router, path_map)
    g.add_conditional_edges("fetch_source", router, path_map)
    g.add_conditional_edges("search_more", router, path_map)

    return g.compile()


class AgenticTurnHandler:
    """
    Runs one agentic turn: retrieval loop, then final generation.

    Everything the turn touches is passed in here or as call arguments; nothing is
    read from ambient configuration inside the loop.
    """

    def __init__(self, services: AgentServices, queries: QueryStore, settings: Settings) -> None:
        self.services = services
        self.queries = queries
        self.settings = settings
        self.graph = build_graph(AgentNodes(services, settings))
        self.generator = ResponseGenerator(services.llm, settings.generation_summary_cap)

    async def retrieve(
        self,
        project: Project,
        initial_query: str,
        user_message: str,
        previous_turns: Sequence[ConversationTurn],
        context: AgentContext,
    ) -> AgentContext:
        """Drive the state machine to a terminal state and return the filled context."""
        initial = GraphState(
            project=project,
            initial_query=initial_query,
            user_message=user_message,
            history=list(previous_turns),
            agent_context=context,
        )
        try:
            raw = await self.graph.ainvoke(
                initial, config={"recursion_limit": recursion_limit(context.max_turns)}
            )
        except GraphRecursionError as e:
            raise AgentError(f"Agent loop exceeded its step budget: {e}") from e

        final = _result_to_state(raw)
        if final.step.kind not in TERMINAL_KINDS:
            raise AgentError(f"Agent stopped in non-terminal state '{final.step.kind}'")
        if isinstance(final.step, Error):
            raise AgentError(final.step.message)
        return final.agent_context

    async def run_turn(
        self,
        project: Project,
        query_id: str,
        user_message: str,
        grounding_enabled: bool,
        previous_turns: Sequence[ConversationTurn],
        commit_ref: Optional[str] = None,
        hidden_markers: Optional[List[str]] = None,
    ) -> Tuple[ConversationTurn, ConversationTurn]:
        """Return (user_turn, assistant_turn) for the new message."""
        initial_query = self.queries.query_text(project.name, query_id)
        context = AgentContext(max_turns=self.settings.max_turns)
        context.add_thought("Agentic mode is enabled. Starting agent decision process.")
        if grounding_enabled:
            context.add_thought("Grounding with web search is enabled for the final LLM call.")

        logger.info(f"Agentic turn for {project.name}/{query_id} started")
        context = await self.retrieve(project, initial_query, user_message, previous_turns, context)

        user_turn = ConversationTurn(
            role="user",
            content=user_message,
            commit_ref=commit_ref,
            context_files=sorted(context.full_source),
            provider=project.provider,
            model=project.specific_model,
            hidden_context=list(hidden_markers or []),
        )
        try:
            reply = await self.generator.generate(
                project, initial_query, previous_turns, user_turn, context, grounding_enabled
            )
        except AssistantError as e:
            raise AgentError(str(e)) from e

        logger.info(
            f"Agentic turn for {project.name}/{query_id} finished after "
            f"{context.turn_count} architect turn(s), {context.total_files()} files in context "
            f"({len(context.full_source)} full source)"
        )
        return user_turn, reply

    async def handle_agentic_turn(
        self,
        project: Project,
        query_id: str,
        user_message: str,
        grounding_enabled: bool,
        previous_turns: Sequence[ConversationTurn],
        commit_ref: Optional[str] = None,
        hidden_markers: Optional[List[str]] = None,
    ) -> ConversationTurn:
        _, reply = await self.run_turn(
            project,
            query_id,
            user_message,
            grounding_enabled,
            previous_turns,
            commit_ref,
            hidden_markers,
        )
        return reply
