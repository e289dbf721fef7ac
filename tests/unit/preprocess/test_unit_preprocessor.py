# tests/unit/preprocess/test_unit_preprocessor.py — v1
"""Tests for preprocess/preprocessor.py."""

from __future__ import annotations

import pytest

from signalcx.core.models import ConversationMessage
from signalcx.preprocess.preprocessor import (
    FULL_DATASET_MAX,
    parse_timestamp,
    preprocess,
    resolution_hours,
    stratified_sample,
)
from signalcx.privacy.scrubber import EMAIL_PLACEHOLDER


class TestParseTimestamp:
    def test_zulu(self):
        assert parse_timestamp("2026-03-01T09:00:00Z").utcoffset().total_seconds() == 0

    def test_naive_is_utc(self):
        assert parse_timestamp("2026-03-01T09:00:00").tzinfo is not None

    @pytest.mark.parametrize("value", [None, "", "yesterday"])
    def test_unparsable(self, value):
        assert parse_timestamp(value) is None


class TestResolutionHours:
    def test_solved(self, ticket_factory):
        t = ticket_factory(2, created_at="2026-03-03T09:00:00Z", solved_at="2026-03-03T13:00:00Z")
        assert resolution_hours(t) == 4.0

    def test_unsolved(self, ticket_factory):
        assert resolution_hours(ticket_factory(1)) is None


class TestPreprocess:
    def test_groups(self, sample_tickets):
        processed = preprocess(sample_tickets)
        assert processed.agent_names == ["alice", "bob"]
        assert [t.id for t in processed.agent_tickets("alice")] == [1, 2, 5]
        assert processed.agent_tickets("nobody") == []
        assert len(processed.category_tickets("billing")) == 3
        assert set(processed.by_sentiment) == {"Neutral", "Negative"}
        assert processed.by_priority["urgent"][0].id == 5

    def test_stats(self, sample_tickets):
        stats = preprocess(sample_tickets).stats
        assert stats.total_tickets == 6
        assert stats.total_agents == 2
        assert stats.avg_tickets_per_agent == 3.0
        # ticket 2: 03-03 09:00 -> 13:00 = 4h; ticket 4: 03-05 09:00 -> 21:00 = 12h
        assert stats.avg_resolution_hours == 8.0
        assert stats.category_counts == {"account": 3, "billing": 3}

    def test_time_range(self, sample_tickets):
        tr = preprocess(sample_tickets).time_range
        assert tr.oldest.startswith("2026-03-02")
        assert tr.newest.startswith("2026-03-07")
        assert tr.days == 5.0
        assert "5.0 days" in tr.describe()

    def test_empty(self):
        processed = preprocess([])
        assert processed.tickets == []
        assert processed.stats.total_tickets == 0
        assert processed.time_range.describe() == "unknown"
        assert processed.sample.size == 0

    def test_free_text_scrubbed(self, ticket_factory):
        t = ticket_factory(
            1,
            subject="Reach me at jo@corp.com",
            conversation=[ConversationMessage(sender="customer", message="jo@corp.com",
                                              timestamp="2026-03-01T09:00:00Z")],
            assignee="agent@corp.com",
        )
        clean = preprocess([t]).tickets[0]
        assert clean.subject == f"Reach me at {EMAIL_PLACEHOLDER}"
        assert clean.conversation[0].message == EMAIL_PLACEHOLDER
        assert clean.assignee == "agent@corp.com"

    def test_recent_limit(self, sample_tickets):
        processed = preprocess(sample_tickets, recent_limit=2)
        assert [t.id for t in processed.recent_tickets] == [6, 5]

    def test_recent_agent_tickets_newest_first(self, sample_tickets):
        processed = preprocess(sample_tickets)
        assert [t.id for t in processed.recent_agent_tickets("alice", limit=2)] == [5, 2]


class TestStratifiedSample:
    def test_small_dataset_whole(self, sample_tickets):
        processed = preprocess(sample_tickets)
        assert processed.sample.strategy == "full_dataset"
        assert processed.sample.size == 6

    def test_medium_dataset_deterministic(self, ticket_factory):
        tickets = [
            ticket_factory(i, category="account" if i % 3 else "billing")
            for i in range(1, 301)
        ]
        by_cat: dict = {}
        for t in tickets:
            by_cat.setdefault(t.category, []).append(t)
        first = stratified_sample(tickets, by_cat)
        second = stratified_sample(list(reversed(tickets)), by_cat)
        assert first.strategy == "high_coverage_sample"
        assert first.size == 240
        assert len({t.id for t in first.tickets}) == 240
        assert {t.id for t in first.tickets} == {t.id for t in second.tickets}

    def test_threshold(self, ticket_factory):
        tickets = [ticket_factory(i) for i in range(1, FULL_DATASET_MAX + 1)]
        assert stratified_sample(tickets, {"account": tickets}).strategy == "full_dataset"
