"""
owtracker/plugins/combo_stats.py
================================
Win rate per lineup. A lineup is the set of (role, player) pairs in a match,
ordered Tank, DPS, Support and case-insensitively by name within a role, so the
order players were entered in does not matter.
"""

from __future__ import annotations

from owtracker.constants import MAX_COMBO_ENTRIES, ROLE_ORDER
from owtracker.plugins.common import filter_by_role, is_win, players_of, win_rate


def lineup_key(players: list[dict]) -> tuple[str, list[dict]]:
    """Return the canonical key and the sorted lineup for a match's players."""
    ordered = sorted(
        players,
        key=lambda p: (
            ROLE_ORDER.get(p.get("role"), len(ROLE_ORDER)),
            str(p.get("name") or "").casefold(),
            str(p.get("name") or ""),
        ),
    )
    key = "|".join(f"{p.get('role')}:{p.get('name')}" for p in ordered)
    return key, ordered


def format_lineup(players: list[dict]) -> str:
    return " + ".join(f"{p.get('role')}:{p.get('name')}" for p in players) or "(empty)"


class ComboStatsPlugin:
    def __init__(self, matches: list[dict], role_filter: str | None = None):
        self.role_filter = role_filter or None
        self.matches = filter_by_role(matches, self.role_filter)
        self._result: dict | None = None

    def analyze(self) -> dict:
        combos = self._aggregate()
        # sorted() is stable: equal win rates keep first-seen order
        best = sorted(combos, key=lambda c: c["win_rate"], reverse=True)[:MAX_COMBO_ENTRIES]
        worst = sorted(combos, key=lambda c: c["win_rate"])[:MAX_COMBO_ENTRIES]
        result = {
            "role_filter": self.role_filter,
            "combos": combos,
            "best": best,
            "worst": worst,
        }
        self._result = result
        return result

    def summary(self) -> None:
        r = self._result or self.analyze()
        if not r["combos"]:
            print("[ComboStats] No matches recorded.")
            return
        print(f"\n=== LINEUPS ({r['role_filter'] or 'all roles'}) ===")
        for title, rows in (("BEST", r["best"]), ("WORST", r["worst"])):
            print(f"\n  {title}")
            for c in rows:
                print(
                    f"  {format_lineup(c['players']):<48} "
                    f"{c['wins']:>3}W {c['losses']:>3}L  {c['win_rate']:>3}%"
                )

    def _aggregate(self) -> list[dict]:
        stats: dict[str, dict] = {}
        for match in self.matches:
            key, ordered = lineup_key(players_of(match))
            if key not in stats:
                stats[key] = {
                    "key": key,
                    "players": [
                        {"role": p.get("role"), "name": p.get("name")} for p in ordered
                    ],
                    "wins": 0,
                    "losses": 0,
                }
            if is_win(match):
                stats[key]["wins"] += 1
            else:
                stats[key]["losses"] += 1

        combos = []
        for entry in stats.values():
            total = entry["wins"] + entry["losses"]
            combos.append({**entry, "total": total, "win_rate": win_rate(entry["wins"], total)})
        return combos
