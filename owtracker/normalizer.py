# owtracker/normalizer.py
"""
Validation and default-filling for records before they reach the store.

Validation rejects records missing required fields. Normalization never
rejects; it only fills in what the caller left out so that every stored
record is self-consistent.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from owtracker.seasons import parse_timestamp, resolve_season

logger = logging.getLogger(__name__)


class ValidationError(ValueError):
    """Raised when a record is missing a required field."""


def utc_now_iso(now: Optional[datetime] = None) -> str:
    """UTC timestamp in ``2024-05-01T18:30:00.000Z`` form."""
    moment = now or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _has_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _require_mapping(record: Any, label: str) -> Dict[str, Any]:
    if not isinstance(record, dict) or not record:
        raise ValidationError(f"{label} payload is missing")
    return record


# --- Validation ---

def validate_match(match: Any) -> Dict[str, Any]:
    match = _require_mapping(match, "Match")
    if not _has_text(match.get("id")):
        raise ValidationError("Match id is missing")
    return match


def validate_improvement(ticket: Any) -> Dict[str, Any]:
    ticket = _require_mapping(ticket, "Improvement")
    if not _has_text(ticket.get("id")):
        raise ValidationError("Improvement id is missing")
    if not _has_text(ticket.get("title")):
        raise ValidationError("Improvement title is missing")
    return ticket


def validate_archive_link(link: Any) -> Dict[str, Any]:
    link = _require_mapping(link, "Archive link")
    if not _has_text(link.get("id")):
        raise ValidationError("Archive link id is missing")
    if not _has_text(link.get("title")):
        raise ValidationError("Archive link title is missing")
    if not _has_text(link.get("url")):
        raise ValidationError("Archive link url is missing")
    return link


def validate_player_rank(entry: Any) -> Dict[str, str]:
    """Check the composite key of a player rank entry and return it cleaned."""
    entry = _require_mapping(entry, "Player rank")
    cleaned = {}
    for key in ("player", "season", "queue", "role"):
        value = entry.get(key)
        if not _has_text(value):
            raise ValidationError(f"Player rank {key} is missing")
        cleaned[key] = value.strip()
    rank = entry.get("rank")
    cleaned["rank"] = "" if rank is None else str(rank)
    return cleaned


def is_valid_match(match: Any) -> bool:
    try:
        validate_match(match)
    except ValidationError:
        return False
    return True


def is_valid_improvement(ticket: Any) -> bool:
    try:
        validate_improvement(ticket)
    except ValidationError:
        return False
    return True


# --- Normalization ---

def normalize_match(match: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    """Fill ``createdAt`` and ``season``; the season follows ``createdAt``."""
    normalized = dict(match)
    if normalized.get("createdAt") is None:
        normalized["createdAt"] = utc_now_iso(now)
    if normalized.get("season") is None:
        if parse_timestamp(normalized["createdAt"]) is None:
            logger.debug(
                "Match %s has unreadable createdAt %r; tagging it with the current season",
                normalized.get("id"), normalized["createdAt"],
            )
        normalized["season"] = resolve_season(normalized["createdAt"])
    return normalized


def normalize_improvement(ticket: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    normalized = dict(ticket)
    if normalized.get("createdAt") is None:
        normalized["createdAt"] = utc_now_iso(now)
    completed = bool(normalized.get("completed"))
    normalized["completed"] = completed
    if completed:
        normalized["completedAt"] = normalized.get("completedAt") or utc_now_iso(now)
    else:
        normalized["completedAt"] = None
    return normalized


def normalize_archive_link(link: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    normalized = dict(link)
    if normalized.get("createdAt") is None:
        normalized["createdAt"] = utc_now_iso(now)
    return normalized
