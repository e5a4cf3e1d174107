"""
owtracker/plugins/season_stats.py
=================================
Buckets matches by season. Buckets follow the season calendar; labels that
are not in the calendar (hand-entered or from an older table) come last in
the order they were first seen.
"""

from __future__ import annotations

from datetime import datetime

from owtracker.plugins.common import tally
from owtracker.seasons import SEASON_TABLE, order_season_labels, parse_timestamp, resolve_season


def match_season(match: dict, table: tuple[tuple[str, str], ...] = SEASON_TABLE) -> str:
    """Stored season tag, or the season derived from ``createdAt`` for legacy rows."""
    season = match.get("season")
    if season:
        return str(season)
    return resolve_season(match.get("createdAt"), table)


def filter_by_season(matches: list[dict], season: str | None) -> list[dict]:
    if not season:
        return list(matches)
    return [m for m in matches if match_season(m) == season]


def filter_by_date_range(
    matches: list[dict], start: datetime | str | None = None, end: datetime | str | None = None
) -> list[dict]:
    """Keep matches created in ``[start, end)``. Rows without a readable date are dropped."""
    start_dt = parse_timestamp(start) if start is not None else None
    end_dt = parse_timestamp(end) if end is not None else None
    kept = []
    for match in matches:
        created = parse_timestamp(match.get("createdAt"))
        if created is None:
            continue
        if start_dt is not None and created < start_dt:
            continue
        if end_dt is not None and created >= end_dt:
            continue
        kept.append(match)
    return kept


class SeasonStatsPlugin:
    def __init__(self, matches: list[dict], table: tuple[tuple[str, str], ...] = SEASON_TABLE):
        self.matches = list(matches)
        self.table = table
        self._result: dict | None = None

    def analyze(self) -> dict:
        buckets: dict[str, list[dict]] = {}
        for match in self.matches:
            buckets.setdefault(match_season(match, self.table), []).append(match)

        ordered = order_season_labels(buckets, self.table)

        result = {
            "current_season": resolve_season(None, self.table),
            "seasons": [{"season": label, **tally(buckets[label])} for label in ordered],
        }
        self._result = result
        return result

    def summary(self) -> None:
        r = self._result or self.analyze()
        print(f"\n=== SEASONS (current: {r['current_season']}) ===")
        for s in r["seasons"]:
            print(f"  {s['season']:<12} {s['total']:>4} {s['wins']:>4}W {s['losses']:>4}L {s['win_rate']:>4}%")
