# src/cache/fingerprint.py — v2
"""Dataset fingerprinting for result-cache keys.

A fingerprint summarizes a dataset by the identities of its entities, the
entity count and a mode discriminator. Identifiers are sorted before hashing
so the fingerprint does not depend on input ordering.

Mutable entity content (status changes, new replies) is NOT covered unless
the caller passes ``content``; within the TTL window such changes are
served from cache.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Iterable

from pydantic import BaseModel


def compute_fingerprint(
    entity_ids: Iterable[Any],
    mode: str,
    content: Any = None,
) -> str:
    """Compute an order-insensitive fingerprint.

    Args:
        entity_ids: Identifiers of the entities in the dataset.
        mode: Analysis mode / parameter discriminator.
        content: Optional JSON-serializable content folded into the digest.

    Returns:
        ``"<mode>:<count>:<sha256 hex>"``.
    """
    ids = sorted(str(i) for i in entity_ids)
    hasher = hashlib.sha256()
    hasher.update(mode.encode("utf-8"))
    hasher.update(b"\x00")
    hasher.update(str(len(ids)).encode("ascii"))
    hasher.update(b"\x00")
    # Unit separator keeps ["a,b"] and ["a", "b"] distinct.
    hasher.update("\x1f".join(ids).encode("utf-8"))
    if content is not None:
        hasher.update(b"\x00")
        hasher.update(content_digest(content).encode("ascii"))
    return f"{mode}:{len(ids)}:{hasher.hexdigest()}"


def content_digest(content: Any) -> str:
    """SHA-256 of the canonical JSON form of ``content``."""
    return hashlib.sha256(_canonical_json(content).encode("utf-8")).hexdigest()


def fingerprint_payload(kind: str, payload: Any) -> str:
    """Fingerprint an arbitrary phase input.

    Inputs exposing ``entity_ids()`` are fingerprinted by identity, with an
    optional ``cache_mode()`` refining the mode (e.g. the sample size);
    anything else falls back to a digest of its canonical JSON form (key
    order independent).
    """
    entity_ids = getattr(payload, "entity_ids", None)
    if callable(entity_ids):
        mode = kind
        cache_mode = getattr(payload, "cache_mode", None)
        if callable(cache_mode):
            mode = f"{kind}/{cache_mode()}"
        return compute_fingerprint(entity_ids(), mode)
    return f"{kind}:payload:{content_digest(payload)}"


def _canonical_json(content: Any) -> str:
    if isinstance(content, BaseModel):
        content = content.model_dump(mode="json")
    return json.dumps(content, sort_keys=True, separators=(",", ":"), default=str)
