"""Tests for the OpenAI-backed LLM and embedding collaborators, with the clients faked."""

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from repo_assistant.errors import CollaboratorError
from repo_assistant.models import HIDDEN_PLACEHOLDER, ConversationTurn
from repo_assistant.services import llm as llm_module
from repo_assistant.services.embeddings import EmbeddingService
from repo_assistant.services.llm import (
    WEB_SEARCH_TOOL,
    LLMService,
    content_to_text,
    turn_to_message,
)


class FakeChat:
    def __init__(self, content="ok", error=None):
        self.content = content
        self.error = error
        self.messages = None
        self.tools = None

    async def ainvoke(self, messages):
        self.messages = messages
        if self.error is not None:
            raise self.error
        return AIMessage(content=self.content)

    def bind_tools(self, tools):
        self.tools = tools
        return self


class FakeEmbeddingsClient:
    def __init__(self, error=None):
        self.error = error

    async def aembed_query(self, text):
        if self.error is not None:
            raise self.error
        return [float(len(text))]


def test_content_to_text():
    assert content_to_text("plain") == "plain"
    blocks = [
        {"type": "output_text", "text": "Hello "},
        {"type": "web_search_call", "id": "ws_1"},
        {"type": "text", "text": "world"},
        "!",
    ]
    assert content_to_text(blocks) == "Hello world!"
    assert content_to_text(None) == ""


def test_turn_to_message_roles_and_hidden_turns():
    assert isinstance(turn_to_message(ConversationTurn(role="user", content="q")), HumanMessage)
    assert isinstance(turn_to_message(ConversationTurn(role="assistant", content="a")), AIMessage)
    assert isinstance(turn_to_message(ConversationTurn(role="system", content="s")), SystemMessage)

    hidden = turn_to_message(ConversationTurn(role="assistant", content="secret", hidden=True))
    assert hidden.content == HIDDEN_PLACEHOLDER


class TestLLMService:
    @pytest.mark.asyncio
    async def test_complete_sends_single_human_message(self):
        chat = FakeChat("rewritten")
        service = LLMService("key", "gpt-4o-mini")
        service._chat = lambda model_hint: chat

        assert await service.complete("prompt") == "rewritten"
        assert len(chat.messages) == 1
        assert chat.messages[0].content == "prompt"

    @pytest.mark.asyncio
    async def test_converse_orders_messages_and_keeps_hidden_slots(self):
        chat = FakeChat("answer")
        service = LLMService("key", "gpt-4o-mini")
        service._chat = lambda model_hint: chat
        history = [
            ConversationTurn(role="user", content="first"),
            ConversationTurn(role="assistant", content="stale", hidden=True),
        ]

        reply = await service.converse("system", history, ConversationTurn(role="user", content="now"))

        assert reply == "answer"
        assert [m.content for m in chat.messages] == ["system", "first", HIDDEN_PLACEHOLDER, "now"]
        assert chat.tools is None

    @pytest.mark.asyncio
    async def test_grounding_binds_web_search(self):
        chat = FakeChat([{"type": "output_text", "text": "grounded"}])
        service = LLMService("key", "gpt-4o-mini")
        service._chat = lambda model_hint: chat

        reply = await service.converse("system", [], ConversationTurn(role="user", content="q"), grounding=True)

        assert reply == "grounded"
        assert chat.tools == [WEB_SEARCH_TOOL]

    @pytest.mark.asyncio
    async def test_transport_errors_become_collaborator_errors(self):
        service = LLMService("key", "gpt-4o-mini")
        service._chat = lambda model_hint: FakeChat(error=RuntimeError("rate limited"))

        with pytest.raises(CollaboratorError, match="LLM completion failed: rate limited"):
            await service.complete("prompt")

    @pytest.mark.asyncio
    async def test_client_construction_errors_become_collaborator_errors(self, monkeypatch):
        def refuse(**kwargs):
            raise ValueError("api_key client option must be set")

        monkeypatch.setattr(llm_module, "ChatOpenAI", refuse)
        service = LLMService("", "gpt-4o-mini")

        with pytest.raises(CollaboratorError, match="LLM completion failed: api_key"):
            await service.complete("hi")
        with pytest.raises(CollaboratorError, match="LLM conversation failed: api_key"):
            await service.converse("system", [], ConversationTurn(role="user", content="q"))

    @pytest.mark.asyncio
    async def test_tool_binding_errors_become_collaborator_errors(self):
        class UnbindableChat(FakeChat):
            def bind_tools(self, tools):
                raise ValueError("tool not supported by model")

        service = LLMService("key", "gpt-4o-mini")
        service._chat = lambda model_hint: UnbindableChat()

        with pytest.raises(CollaboratorError, match="LLM conversation failed: tool not supported"):
            await service.converse("system", [], ConversationTurn(role="user", content="q"), grounding=True)


class TestEmbeddingService:
    @pytest.mark.asyncio
    async def test_embed_uses_client_for_dimensions(self):
        service = EmbeddingService("key", "text-embedding-3-small", dimensions=8)
        service._clients[8] = FakeEmbeddingsClient()

        assert await service.embed("abcd") == [4.0]

    @pytest.mark.asyncio
    async def test_embedding_errors_become_collaborator_errors(self):
        service = EmbeddingService("key", "text-embedding-3-small", dimensions=8)
        service._clients[8] = FakeEmbeddingsClient(error=RuntimeError("bad key"))

        with pytest.raises(CollaboratorError, match="embedding failed: bad key"):
            await service.embed("abcd")
