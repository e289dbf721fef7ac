# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides ticket factories, a controllable clock, an in-memory result
cache, mock LLM clients and canned phase responses.
No external dependencies — all I/O is mocked.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock

import pytest

from signalcx.cache.memory_store import MemoryCacheStore
from signalcx.cache.result_cache import ResultCache
from signalcx.core.models import Ticket
from signalcx.llm.models import Completion


class FakeClock:
    """Manually advanced POSIX-seconds clock."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# === FIXTURES: Sample data ===


@pytest.fixture
def ticket_factory() -> Callable[..., Ticket]:
    """Build a Ticket with sensible defaults; keyword args override."""

    def _make(ticket_id: int = 1, **overrides: Any) -> Ticket:
        defaults: dict[str, Any] = dict(
            id=ticket_id,
            subject=f"Cannot log in ({ticket_id})",
            description="Login page shows an error after password reset.",
            category="account",
            priority="normal",
            status="open",
            created_at=f"2026-03-{(ticket_id % 28) + 1:02d}T09:00:00Z",
            assignee="alice",
            tags=["login"],
            sla_breached=False,
        )
        defaults.update(overrides)
        return Ticket(**defaults)

    return _make


@pytest.fixture
def sample_tickets(ticket_factory) -> list[Ticket]:
    """Six tickets across two agents and two categories."""
    return [
        ticket_factory(1, assignee="alice", category="account"),
        ticket_factory(2, assignee="alice", category="billing", status="solved",
                       solved_at="2026-03-03T13:00:00Z", csat_score=4),
        ticket_factory(3, assignee="bob", category="billing", sla_breached=True),
        ticket_factory(4, assignee="bob", category="account", status="solved",
                       solved_at="2026-03-05T21:00:00Z", csat_score=2,
                       sentiment="Negative"),
        ticket_factory(5, assignee="alice", category="account", priority="urgent"),
        ticket_factory(6, assignee=None, category="billing"),
    ]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def result_cache(clock: FakeClock) -> ResultCache:
    """In-memory ResultCache on the fake clock (30 min default TTL)."""
    return ResultCache(MemoryCacheStore(), default_ttl_s=1800, clock=clock)


# === FIXTURES: Canned phase responses ===


@pytest.fixture
def discovery_response() -> dict[str, Any]:
    return {
        "data_quality": {"completeness": 0.9, "consistency": 0.85, "issues": []},
        "distributions": [
            {
                "dimension": "category",
                "distribution": [
                    {"value": "account", "count": 3, "percentage": 50.0},
                    {"value": "billing", "count": 3, "percentage": 50.0},
                ],
                "insights": ["Even split between account and billing"],
            }
        ],
        "patterns": [
            {
                "pattern": "Login failures after password reset",
                "confidence": 0.8,
                "evidence": ["3 tickets mention password reset"],
                "impact": "high",
                "ticket_ids": [1, 5],
            }
        ],
        "key_metrics": {
            "total_tickets": 6,
            "avg_resolution_time": 6.0,
            "sla_breach_rate": 0.17,
            "avg_csat_score": 3.0,
            "top_categories": ["account", "billing"],
            "top_agents": ["alice", "bob"],
        },
        "anomalies": [],
        "recommendations": ["Investigate the password reset flow"],
        "confidence_score": 0.82,
    }


@pytest.fixture
def hypothesis_response() -> dict[str, Any]:
    def _hyp(hid: str, deps: list[str]) -> dict[str, Any]:
        return {
            "id": hid,
            "title": f"Hypothesis {hid}",
            "description": "Password reset emails are delayed",
            "type": "process",
            "priority": "high",
            "confidence": 0.7,
            "evidence": ["Login failures cluster after resets"],
            "test_strategy": {
                "approach": "Compare resolution times",
                "data_required": ["created_at", "solved_at"],
                "tools": ["trend_analysis"],
                "metrics": ["avg_resolution_time"],
            },
            "expected_outcome": "Longer resolution for reset tickets",
            "business_impact": "Fewer repeat contacts",
            "related_patterns": ["Login failures after password reset"],
            "dependencies": deps,
        }

    return {
        "hypotheses": [_hyp("H1", []), _hyp("H2", ["H1"])],
        "priority_matrix": [
            {"hypothesis_id": "H1", "impact_score": 8, "effort_score": 3,
             "risk_score": 2, "recommended_order": 1},
            {"hypothesis_id": "H2", "impact_score": 6, "effort_score": 5,
             "risk_score": 4, "recommended_order": 2},
        ],
        "investigation_plan": {
            "phases": [
                {"phase": 1, "hypotheses": ["H1"], "parallelizable": False,
                 "estimated_time": "1 day"},
                {"phase": 2, "hypotheses": ["H2"], "parallelizable": False,
                 "estimated_time": "2 days"},
            ],
            "dependencies": [{"hypothesis": "H2", "depends_on": ["H1"]}],
        },
        "risk_assessment": [
            {"risk": "Small sample", "impact": "medium", "mitigation": "Widen window"}
        ],
        "success_criteria": ["Difference significant at p<0.05"],
        "confidence_score": 0.75,
    }


@pytest.fixture
def targeted_response() -> dict[str, Any]:
    return {
        "analysis_results": [
            {
                "hypothesis_id": "H1",
                "test_approach": "Resolution time comparison",
                "tools_used": ["trend_analysis"],
                "findings": [
                    {"finding": "Reset tickets take 2x longer", "evidence": ["median 12h vs 6h"],
                     "confidence": 0.8, "statistical_significance": 0.95}
                ],
                "metrics": [{"metric": "median_resolution", "value": 12.0, "unit": "hours"}],
                "validation": {"hypothesis_supported": True, "support_level": "strong",
                               "alternative_explanations": []},
                "insights": ["Reset flow is a bottleneck"],
                "limitations": ["Small sample"],
                "recommended_actions": [
                    {"action": "Fix reset email queue", "priority": "high",
                     "impact": "Faster logins", "effort": "medium"}
                ],
            }
        ],
        "cross_hypothesis_insights": [
            {"insight": "Both hypotheses point at the reset flow",
             "related_hypotheses": ["H1", "H2"], "confidence": 0.7,
             "business_impact": "High"}
        ],
        "methodology_notes": ["Prefix sample of 50 tickets"],
        "data_quality_issues": [],
        "priority_findings": [
            {"finding": "Reset emails delayed", "urgency": "high",
             "action_required": "Escalate to platform", "timeline": "this week"}
        ],
        "confidence_score": 0.78,
    }


def forecast_for(agent: str, confidence: float = 0.85) -> dict[str, Any]:
    """Performance forecast response body for one agent."""
    return {
        "agent_id": agent,
        "agent_name": agent,
        "predicted_tickets_next_week": 12,
        "predicted_csat_next_week": 4.2,
        "confidence": confidence,
        "risk_factors": ["Rising backlog"],
        "recommendations": ["Pair on billing tickets"],
    }


@pytest.fixture
def forecast_response() -> Callable[..., dict[str, Any]]:
    return forecast_for


# === FIXTURES: LLM mocks ===


@pytest.fixture
def mock_completion() -> Completion:
    """Standard mock provider reply."""
    return Completion(
        phase="discovery",
        text='{"summary": "Test summary"}',
        provider="anthropic",
        model="claude-sonnet-4-20250514",
        prompt_tokens=100,
        completion_tokens=50,
        elapsed_ms=500,
    )


@pytest.fixture
def mock_llm_client(mock_completion: Completion) -> AsyncMock:
    """Mock BaseLLMClient with default reply."""
    client = AsyncMock()
    client.complete = AsyncMock(return_value=mock_completion)
    client.provider = "mock"
    return client


# === FIXTURES: Temp directories ===


@pytest.fixture
def tmp_cache_dir(tmp_path: Path) -> Path:
    """Temporary cache directory."""
    cache_dir = tmp_path / "cache"
    cache_dir.mkdir()
    return cache_dir
