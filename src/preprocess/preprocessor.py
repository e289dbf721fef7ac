# src/preprocess/preprocessor.py — v1
"""Single-pass ticket preprocessing.

Scrubs free text, groups tickets by agent / category / priority /
sentiment, computes summary statistics and draws a deterministic
stratified sample. The result is the shared input of every per-entity
analysis (see pipeline.entity_analyzer).
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Iterable

from pydantic import BaseModel, Field

from signalcx.core.models import Ticket
from signalcx.privacy.scrubber import Scrubber, scrub_pii

logger = logging.getLogger(__name__)

RECENT_TICKET_LIMIT = 100
FULL_DATASET_MAX = 200
MEDIUM_DATASET_MAX = 1000
LARGE_SAMPLE_MIN = 1000
LARGE_SAMPLE_MAX = 2000
SAMPLE_RATIO = 0.8
RECENT_SHARE = 0.7

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class TicketStats(BaseModel):
    """Aggregate statistics over the whole ticket set."""

    total_tickets: int = 0
    total_agents: int = 0
    avg_tickets_per_agent: float = 0.0
    recent_ticket_count: int = 0
    avg_resolution_hours: float = 0.0
    category_counts: dict[str, int] = Field(default_factory=dict)
    priority_counts: dict[str, int] = Field(default_factory=dict)
    sentiment_counts: dict[str, int] = Field(default_factory=dict)


class TimeRange(BaseModel):
    oldest: str | None = None
    newest: str | None = None
    days: float = 0.0

    def describe(self) -> str:
        if self.oldest is None or self.newest is None:
            return "unknown"
        return f"{self.oldest} to {self.newest} ({self.days:.1f} days)"


class TicketSample(BaseModel):
    tickets: list[Ticket] = Field(default_factory=list)
    strategy: str = "full_dataset"

    @property
    def size(self) -> int:
        return len(self.tickets)


class ProcessedTickets(BaseModel):
    """Preprocessed, scrubbed view of a ticket set."""

    tickets: list[Ticket] = Field(default_factory=list)
    agent_map: dict[str, list[Ticket]] = Field(default_factory=dict)
    by_category: dict[str, list[Ticket]] = Field(default_factory=dict)
    by_priority: dict[str, list[Ticket]] = Field(default_factory=dict)
    by_sentiment: dict[str, list[Ticket]] = Field(default_factory=dict)
    recent_tickets: list[Ticket] = Field(default_factory=list)
    stats: TicketStats = Field(default_factory=TicketStats)
    time_range: TimeRange = Field(default_factory=TimeRange)
    sample: TicketSample = Field(default_factory=TicketSample)

    @property
    def agent_names(self) -> list[str]:
        return list(self.agent_map)

    def agent_tickets(self, agent: str) -> list[Ticket]:
        return self.agent_map.get(agent, [])

    def recent_agent_tickets(self, agent: str, limit: int = 20) -> list[Ticket]:
        """An agent's most recent tickets, newest first."""
        return sorted(self.agent_tickets(agent), key=_created_key, reverse=True)[:limit]

    def category_tickets(self, category: str) -> list[Ticket]:
        return self.by_category.get(category, [])


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def resolution_hours(ticket: Ticket) -> float | None:
    """Hours from creation to solve, or None for unsolved / unparsable."""
    created = parse_timestamp(ticket.created_at)
    solved = parse_timestamp(ticket.solved_at)
    if created is None or solved is None:
        return None
    return (solved - created).total_seconds() / 3600


def preprocess(
    tickets: Iterable[Ticket],
    scrubber: Scrubber = scrub_pii,
    recent_limit: int = RECENT_TICKET_LIMIT,
) -> ProcessedTickets:
    """Scrub, group and summarize tickets in one pass."""
    agent_map: dict[str, list[Ticket]] = {}
    by_category: dict[str, list[Ticket]] = {}
    by_priority: dict[str, list[Ticket]] = {}
    by_sentiment: dict[str, list[Ticket]] = {}
    resolution_total = 0.0
    resolved = 0
    oldest: datetime | None = None
    newest: datetime | None = None

    scrubbed: list[Ticket] = []
    for ticket in tickets:
        clean = ticket.model_copy(
            update={
                "subject": scrubber(ticket.subject),
                "description": scrubber(ticket.description),
                "conversation": [
                    m.model_copy(update={"message": scrubber(m.message)})
                    for m in ticket.conversation
                ],
            }
        )
        scrubbed.append(clean)

        created = parse_timestamp(clean.created_at)
        if created is not None:
            oldest = created if oldest is None else min(oldest, created)
            newest = created if newest is None else max(newest, created)

        hours = resolution_hours(clean)
        if hours is not None:
            resolution_total += hours
            resolved += 1

        if clean.assignee:
            agent_map.setdefault(clean.assignee, []).append(clean)
        by_category.setdefault(clean.category, []).append(clean)
        if clean.priority:
            by_priority.setdefault(clean.priority, []).append(clean)
        by_sentiment.setdefault(clean.sentiment or "Neutral", []).append(clean)

    recent = sorted(scrubbed, key=_created_key, reverse=True)[:recent_limit]
    days = 0.0
    if oldest is not None and newest is not None:
        days = max(1.0, (newest - oldest).total_seconds() / 86400)

    stats = TicketStats(
        total_tickets=len(scrubbed),
        total_agents=len(agent_map),
        avg_tickets_per_agent=len(scrubbed) / len(agent_map) if agent_map else 0.0,
        recent_ticket_count=len(recent),
        avg_resolution_hours=resolution_total / resolved if resolved else 0.0,
        category_counts={k: len(v) for k, v in by_category.items()},
        priority_counts={k: len(v) for k, v in by_priority.items()},
        sentiment_counts=dict(Counter(t.sentiment or "Neutral" for t in scrubbed)),
    )

    processed = ProcessedTickets(
        tickets=scrubbed,
        agent_map=agent_map,
        by_category=by_category,
        by_priority=by_priority,
        by_sentiment=by_sentiment,
        recent_tickets=recent,
        stats=stats,
        time_range=TimeRange(
            oldest=oldest.isoformat() if oldest else None,
            newest=newest.isoformat() if newest else None,
            days=days,
        ),
        sample=stratified_sample(scrubbed, by_category),
    )
    logger.info(
        "Preprocessed %d tickets: %d agents, %d categories, sample=%d (%s)",
        stats.total_tickets, stats.total_agents, len(by_category),
        processed.sample.size, processed.sample.strategy,
    )
    return processed


def stratified_sample(
    tickets: list[Ticket],
    by_category: dict[str, list[Ticket]],
) -> TicketSample:
    """Category-stratified sample mixing recent and older tickets.

    Small datasets are returned whole. Remaining slots are filled with the
    unused tickets in ascending id order, so the sample is reproducible.
    """
    total = len(tickets)
    if total <= FULL_DATASET_MAX:
        return TicketSample(tickets=list(tickets), strategy="full_dataset")
    if total <= MEDIUM_DATASET_MAX:
        target = int(total * SAMPLE_RATIO)
        strategy = "high_coverage_sample"
    else:
        target = min(LARGE_SAMPLE_MAX, max(LARGE_SAMPLE_MIN, int(total * SAMPLE_RATIO)))
        strategy = "stratified_sample"

    per_category = target // max(len(by_category), 1)
    sample: list[Ticket] = []
    for members in by_category.values():
        count = min(per_category, len(members))
        ordered = sorted(members, key=_created_key, reverse=True)
        recent_count = int(count * RECENT_SHARE)
        sample.extend(ordered[:recent_count])
        older_count = count - recent_count
        if older_count > 0 and len(ordered) > recent_count:
            taken = {t.id for t in ordered[:recent_count]}
            older = [t for t in ordered[len(ordered) // 2 :] if t.id not in taken]
            sample.extend(older[:older_count])

    used = {t.id for t in sample}
    if len(sample) < target:
        unused = sorted((t for t in tickets if t.id not in used), key=lambda t: t.id)
        sample.extend(unused[: target - len(sample)])

    return TicketSample(tickets=sample[:target], strategy=strategy)


def _created_key(ticket: Ticket) -> datetime:
    return parse_timestamp(ticket.created_at) or _EPOCH
