"""
owtracker/plugins/common.py
===========================
Helpers shared by the statistics plugins. Every plugin works on match dicts
in stored order (newest first); that order decides ties.
"""

from __future__ import annotations

from typing import Any, Iterable

from owtracker.constants import RESULT_LOSE, RESULT_WIN


def win_rate(wins: int, total: int) -> int:
    """Whole-number percentage; 0 when there is nothing to count."""
    if total <= 0:
        return 0
    return int(round(wins / total * 100))


def is_win(match: dict) -> bool:
    return match.get("result") == RESULT_WIN


def is_loss(match: dict) -> bool:
    return match.get("result") == RESULT_LOSE


def players_of(match: dict) -> list[dict]:
    players = match.get("players")
    if not isinstance(players, list):
        return []
    return [p for p in players if isinstance(p, dict)]


def filter_by_role(matches: Iterable[dict], role: str | None) -> list[dict]:
    """Keep matches where anyone played ``role``; no filter when role is None."""
    if not role:
        return list(matches)
    return [m for m in matches if any(p.get("role") == role for p in players_of(m))]


def find_player(match: dict, name: str, role: str | None = None) -> dict | None:
    for player in players_of(match):
        if player.get("name") != name:
            continue
        if role and player.get("role") != role:
            continue
        return player
    return None


def tally(matches: Iterable[dict]) -> dict[str, Any]:
    total = 0
    wins = 0
    losses = 0
    for match in matches:
        total += 1
        if is_win(match):
            wins += 1
        elif is_loss(match):
            losses += 1
    return {"total": total, "wins": wins, "losses": losses, "win_rate": win_rate(wins, total)}


def top_by_count(counts: dict[str, int]) -> tuple[str | None, int]:
    """Most frequent key; the first key reaching the maximum wins ties."""
    top_key = None
    top_count = 0
    for key, count in counts.items():
        if count > top_count:
            top_key = key
            top_count = count
    return top_key, top_count
