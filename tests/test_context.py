"""Tests for the per-run agent context."""

import random

from repo_assistant.models import AgentContext, ConversationTurn, hidden_markers


class TestContextPrecedence:
    def test_full_source_evicts_summary(self):
        ctx = AgentContext()
        ctx.add_summary("src/a.rs", "summary")
        ctx.add_full_source("src/a.rs", "fn a() {}")

        assert ctx.full_source == {"src/a.rs": "fn a() {}"}
        assert ctx.summaries == {}

    def test_summary_after_full_source_is_ignored(self):
        ctx = AgentContext()
        ctx.add_full_source("src/a.rs", "fn a() {}")
        ctx.add_summary("src/a.rs", "summary")

        assert "src/a.rs" not in ctx.summaries
        assert ctx.full_source["src/a.rs"] == "fn a() {}"

    def test_random_operation_sequences_keep_maps_disjoint(self):
        rng = random.Random(1234)
        paths = [f"src/f{i}.rs" for i in range(6)]
        for _ in range(200):
            ctx = AgentContext()
            promoted = set()
            for _ in range(rng.randint(1, 20)):
                path = rng.choice(paths)
                if rng.random() < 0.4:
                    ctx.add_full_source(path, "code")
                    promoted.add(path)
                else:
                    ctx.add_summary(path, "summary")
                assert not set(ctx.full_source) & set(ctx.summaries)
            assert promoted == set(ctx.full_source)

    def test_knows_and_total_files(self):
        ctx = AgentContext()
        ctx.add_summary("src/a.rs", "s")
        ctx.add_full_source("src/b.rs", "code")

        assert ctx.knows("src/a.rs")
        assert ctx.knows("src/b.rs")
        assert not ctx.knows("src/c.rs")
        assert ctx.total_files() == 2


class TestTurnCounter:
    def test_cap_reached_on_max_turns_visit(self):
        ctx = AgentContext(max_turns=3)

        assert ctx.increment_turn() is False
        assert ctx.increment_turn() is False
        assert ctx.increment_turn() is True
        assert ctx.turn_count == 3
        assert ctx.thoughts[-1] == (
            "Warning: Reached maximum architect turns (3). Forcing generation."
        )

    def test_single_turn_cap_fires_immediately(self):
        ctx = AgentContext(max_turns=1)
        assert ctx.increment_turn() is True
        assert ctx.turn_count == 1


class TestHiddenMarkers:
    def test_one_code_per_prompt_or_reply(self):
        history = [
            ConversationTurn(role="user", content="q1"),
            ConversationTurn(role="system", content="setup"),
            ConversationTurn(role="assistant", content="a1", hidden=True),
            ConversationTurn(role="user", content="q2", hidden=True),
            ConversationTurn(role="assistant", content="a2"),
        ]
        assert hidden_markers(history) == ["P", "r", "p", "R"]

    def test_empty_history(self):
        assert hidden_markers([]) == []
