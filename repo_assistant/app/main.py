"""
main.py
-------
FastAPI app exposing the agentic chat endpoint. Includes /health for liveness checks.

A run is cancelled if the client disconnects while it is in flight: the agent task
is cancelled at its current await, so no further LLM/search calls are made.
"""
from __future__ import annotations
import asyncio
from typing import Any, Awaitable
from fastapi import Depends, FastAPI, HTTPException, Request
from loguru import logger
from ..config import settings
from ..errors import AgentError, NotFoundError
from ..graph.graph import AgenticTurnHandler
from ..log import configure_logging
from ..models import AgentTurnRequest, ConversationTurn, hidden_markers
from ..store import ProjectStore, QueryStore
from .deps import get_handler, get_project_store, get_query_store

configure_logging(settings.log_level)

app = FastAPI(title="Repo Assistant Agent", version="1.0.0")

DISCONNECT_POLL_SECONDS = 0.5


async def run_until_disconnect(request: Request, work: Awaitable[Any]) -> Any:
    """Await `work`, cancelling it if the client goes away first."""
    task = asyncio.ensure_future(work)
    while True:
        try:
            done, _ = await asyncio.wait({task}, timeout=DISCONNECT_POLL_SECONDS)
        except asyncio.CancelledError:
            task.cancel()
            raise
        if done:
            return task.result()
        if await request.is_disconnected():
            logger.info(f"Client disconnected from {request.url.path}; cancelling agent run")
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            raise HTTPException(status_code=499, detail="Client closed request")


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "ok"}


@app.post("/projects/{project_name}/queries/{query_id}/agent", response_model=ConversationTurn)
async def agent_turn(
    project_name: str,
    query_id: str,
    req: AgentTurnRequest,
    request: Request,
    projects: ProjectStore = Depends(get_project_store),
    queries: QueryStore = Depends(get_query_store),
    handler: AgenticTurnHandler = Depends(get_handler),
):
    """
    Run one agentic turn for a query chat and persist both the user message and the
    assistant reply into the query's history.
    """
    try:
        project = projects.read(project_name)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    if queries.resolve(project_name, query_id) is None:
        raise HTTPException(status_code=404, detail=f"Query not found: {query_id}")

    history = queries.history(project_name, query_id)
    try:
        user_turn, reply = await run_until_disconnect(
            request,
            handler.run_turn(
                project,
                query_id,
                req.message,
                req.grounding,
                history,
                req.commit_ref,
                hidden_markers(history),
            ),
        )
    except AgentError as e:
        logger.error(f"Agentic turn failed for {project_name}/{query_id}: {e.message}")
        raise HTTPException(status_code=502, detail=e.message) from e

    queries.append_turns(project_name, query_id, [user_turn, reply])
    return reply
