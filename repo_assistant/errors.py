"""
errors.py
---------
Exception types raised across the agent pipeline.

Collaborator failures abort the turn; nothing in here is retried. The entry point
converts whatever escapes the graph into a single `AgentError`.
"""
from __future__ import annotations


class AssistantError(Exception):
    """Base class for repo_assistant errors."""


class CollaboratorError(AssistantError):
    """An external call (LLM, embedding, vector index, keyword index) failed."""

    def __init__(self, call: str, detail: str) -> None:
        super().__init__(f"{call} failed: {detail}")
        self.call = call
        self.detail = detail


class AnalysisParseError(AssistantError):
    """The semantic-search analysis response was not the expected JSON payload."""


class ArchitectError(AssistantError):
    """The architect response had no usable `action`."""


class AgentError(AssistantError):
    """A whole agentic turn failed; `message` is what the caller surfaces."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(AssistantError):
    """A project or query document does not exist."""
