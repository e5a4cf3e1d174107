"""
owtracker/plugins/player_breakdown.py
=====================================
Per-player record for every roster name: overall win rate, most played
role and character, role split, best/worst character and the personal
Stadion highscore.

Ties for "most played" and "best/worst" go to whichever value is reached
first while walking the matches in stored order (newest first).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from owtracker.constants import (
    DEFAULT_PLAYER_NAMES,
    MIN_CHARACTER_MATCHES,
    NO_VALUE,
    QUEUE_STADIUM,
    ROLES,
)
from owtracker.plugins.common import (
    filter_by_role,
    find_player,
    is_loss,
    is_win,
    top_by_count,
    win_rate,
)
from owtracker.seasons import parse_timestamp

SORT_KEYS = ("date", "result", "queue", "role")
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _numeric_score(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


class PlayerBreakdownPlugin:
    def __init__(
        self,
        matches: list[dict],
        roster: list[str] | tuple[str, ...] = DEFAULT_PLAYER_NAMES,
        role_filter: str | None = None,
    ):
        self.roster = list(roster)
        self.role_filter = role_filter or None
        self.matches = filter_by_role(matches, self.role_filter)
        self._result: dict | None = None

    def analyze(self) -> dict:
        players = [self._player_stats(name) for name in self.roster]
        result = {
            "role_filter": self.role_filter,
            "players": players,
        }
        self._result = result
        return result

    def summary(self) -> None:
        r = self._result or self.analyze()
        print(f"\n=== PLAYERS ({r['role_filter'] or 'all roles'}) ===")
        print(f"  {'Player':<12} {'M':>4} {'W':>4} {'L':>4} {'Win%':>5}  {'Top role':<10} {'Top hero':<16} {'High':>6}")
        for p in r["players"]:
            high = "-" if p["highscore"] is None else f"{p['highscore']:g}"
            print(
                f"  {p['name']:<12} {p['total']:>4} {p['wins']:>4} {p['losses']:>4} "
                f"{p['win_rate']:>4}%  {p['top_role']:<10} {p['top_character']:<16} {high:>6}"
            )
            if p["best_character"]:
                best = p["best_character"]
                worst = p["worst_character"]
                print(
                    f"      best {best['character']} ({best['win_rate']}%, {best['total']})  "
                    f"worst {worst['character']} ({worst['win_rate']}%, {worst['total']})"
                )

    def player_matches(self, name: str) -> list[dict]:
        """Matches the player took part in, under the filtered role when one is set."""
        return [m for m in self.matches if find_player(m, name, self.role_filter)]

    def match_history(self, name: str, sort_key: str = "date", direction: str = "desc") -> list[dict]:
        """The player's matches annotated with the role/character they played, sorted."""
        if sort_key not in SORT_KEYS:
            raise ValueError(f"Unknown sort key '{sort_key}'")
        if direction not in ("asc", "desc"):
            raise ValueError(f"Unknown sort direction '{direction}'")

        rows = []
        for match in self.player_matches(name):
            entry = find_player(match, name, self.role_filter) or {}
            row = dict(match)
            row["player_role"] = entry.get("role") or NO_VALUE
            row["player_character"] = entry.get("character") or None
            rows.append(row)

        def _key(row: dict):
            if sort_key == "date":
                return parse_timestamp(row.get("createdAt")) or _EPOCH
            if sort_key == "role":
                return str(row.get("player_role") or "")
            return str(row.get(sort_key) or "")

        rows.sort(key=_key, reverse=(direction == "desc"))
        return rows

    def _player_stats(self, name: str) -> dict:
        player_matches = self.player_matches(name)
        wins = sum(1 for m in player_matches if is_win(m))
        losses = sum(1 for m in player_matches if is_loss(m))
        total = len(player_matches)

        role_counts: dict[str, int] = {}
        role_wins: dict[str, int] = {}
        character_counts: dict[str, int] = {}
        character_wins: dict[str, int] = {}
        highscore = None

        for match in player_matches:
            entry = find_player(match, name)
            if not entry:
                continue
            role = entry.get("role")
            won = is_win(match)
            if role:
                role_counts[role] = role_counts.get(role, 0) + 1
                role_wins[role] = role_wins.get(role, 0) + (1 if won else 0)
            character = entry.get("character")
            if character:
                character_counts[character] = character_counts.get(character, 0) + 1
                character_wins[character] = character_wins.get(character, 0) + (1 if won else 0)
            if match.get("queue") == QUEUE_STADIUM:
                score = _numeric_score(match.get("score"))
                if score is not None and (highscore is None or score > highscore):
                    highscore = score

        top_role, top_role_count = top_by_count(role_counts)
        top_character, top_character_count = top_by_count(character_counts)
        best_character, worst_character = self._best_and_worst(character_counts, character_wins)

        return {
            "name": name,
            "total": total,
            "wins": wins,
            "losses": losses,
            "win_rate": win_rate(wins, total),
            "top_role": top_role or NO_VALUE,
            "top_role_count": top_role_count,
            "top_character": top_character or NO_VALUE,
            "top_character_count": top_character_count,
            "roles": [
                {
                    "role": role,
                    "count": role_counts.get(role, 0),
                    "wins": role_wins.get(role, 0),
                    "win_rate": win_rate(role_wins.get(role, 0), role_counts.get(role, 0)),
                }
                for role in ROLES
            ],
            "best_character": best_character,
            "worst_character": worst_character,
            "highscore": highscore,
        }

    @staticmethod
    def _best_and_worst(counts: dict[str, int], wins: dict[str, int]) -> tuple[dict | None, dict | None]:
        best = None
        worst = None
        for character, total in counts.items():
            if total < MIN_CHARACTER_MATCHES:
                continue
            row = {
                "character": character,
                "total": total,
                "wins": wins.get(character, 0),
                "win_rate": win_rate(wins.get(character, 0), total),
            }
            if best is None or row["win_rate"] > best["win_rate"]:
                best = row
            if worst is None or row["win_rate"] < worst["win_rate"]:
                worst = row
        return best, worst
