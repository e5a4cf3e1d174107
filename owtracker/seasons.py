"""
owtracker/seasons.py
====================
Static season calendar. A season has no stored end date; it ends when the
next season starts. The table is extended by hand whenever a new season is
announced. Lookups past the last entry resolve to the last known season and
lookups before the first entry clamp to the first one.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable

SEASON_TABLE: tuple[tuple[str, str], ...] = (
    ("Season 1", "2022-10-04"),
    ("Season 2", "2022-12-06"),
    ("Season 3", "2023-02-07"),
    ("Season 4", "2023-04-11"),
    ("Season 5", "2023-06-13"),
    ("Season 6", "2023-08-10"),
    ("Season 7", "2023-10-10"),
    ("Season 8", "2023-12-05"),
    ("Season 9", "2024-02-13"),
    ("Season 10", "2024-04-16"),
    ("Season 11", "2024-06-20"),
    ("Season 12", "2024-08-20"),
    ("Season 13", "2024-10-15"),
    ("Season 14", "2024-12-10"),
    ("Season 15", "2025-02-18"),
    ("Season 16", "2025-04-22"),
    ("Season 17", "2025-06-24"),
    ("Season 18", "2025-08-26"),
    ("Season 19", "2025-10-14"),
    ("Season 20", "2025-12-09"),
    ("Season 21", "2026-02-10"),
    ("Season 22", "2026-04-14"),
    ("Season 23", "2026-06-16"),
    ("Season 24", "2026-08-18"),
    ("Season 25", "2026-10-13"),
)


def parse_timestamp(raw: object) -> datetime | None:
    """Parse an ISO-8601 string or datetime into an aware UTC datetime."""
    if isinstance(raw, datetime):
        dt = raw
    else:
        text = str(raw or "").strip()
        if not text:
            return None
        text = text.replace("Z", "+00:00")
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _start_of(date_text: str) -> datetime:
    return datetime.fromisoformat(date_text).replace(tzinfo=timezone.utc)


def resolve_season(when: object = None, table: tuple[tuple[str, str], ...] = SEASON_TABLE) -> str:
    """Return the label of the season running at ``when`` (default: now)."""
    if not table:
        raise ValueError("season table is empty")
    moment = parse_timestamp(when) if when is not None else None
    if moment is None:
        moment = datetime.now(timezone.utc)

    for label, start in reversed(table):
        if _start_of(start) <= moment:
            return label
    return table[0][0]


def season_labels(table: tuple[tuple[str, str], ...] = SEASON_TABLE) -> list[str]:
    return [label for label, _ in table]


def order_season_labels(
    labels: Iterable[str], table: tuple[tuple[str, str], ...] = SEASON_TABLE
) -> list[str]:
    """Calendar order first, then labels missing from the table in first-seen order."""
    present = list(dict.fromkeys(labels))
    known = season_labels(table)
    ordered = [label for label in known if label in present]
    return ordered + [label for label in present if label not in known]


def season_bounds(
    label: str, table: tuple[tuple[str, str], ...] = SEASON_TABLE
) -> tuple[datetime, datetime | None] | None:
    """Return ``(start, end)`` for a season; ``end`` is None for the latest one."""
    for index, (name, start) in enumerate(table):
        if name != label:
            continue
        end = _start_of(table[index + 1][1]) if index + 1 < len(table) else None
        return _start_of(start), end
    return None


def season_calendar(table: tuple[tuple[str, str], ...] = SEASON_TABLE) -> list[dict]:
    rows = []
    for index, (label, start) in enumerate(table):
        end = table[index + 1][1] if index + 1 < len(table) else None
        rows.append({"season": label, "start": start, "end": end})
    return rows
