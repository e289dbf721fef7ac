# src/core/models.py — v1
"""Shared domain models: Ticket, ConversationMessage and common tiers.

Tickets are untrusted input: free-text fields may carry PII and must be
scrubbed before they leave the process (see pipeline.plugin_kit.base_phase).
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

ImpactLevel = Literal["low", "medium", "high", "critical"]
TicketStatus = Literal["new", "open", "pending", "on-hold", "solved", "closed"]
TicketPriority = Literal["urgent", "high", "normal", "low"]
Sentiment = Literal["Positive", "Neutral", "Negative"]


class ConversationMessage(BaseModel):
    """Single message in a ticket conversation."""

    sender: Literal["customer", "agent"]
    message: str
    timestamp: str


class Ticket(BaseModel):
    """A support ticket as delivered by the ticketing backend."""

    id: int
    subject: str
    description: str = ""
    category: str = "uncategorized"
    priority: TicketPriority | None = None
    status: TicketStatus = "open"
    created_at: str
    first_response_at: str | None = None
    solved_at: str | None = None
    requester: str | None = None
    assignee: str | None = None
    tags: list[str] = Field(default_factory=list)
    sla_breached: bool = False
    csat_score: float | None = Field(default=None, ge=1, le=5)
    sentiment: Sentiment | None = None
    conversation: list[ConversationMessage] = Field(default_factory=list)
