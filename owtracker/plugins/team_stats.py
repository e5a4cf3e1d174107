"""
owtracker/plugins/team_stats.py
===============================
Overall team record for the (optionally role-filtered) match list.
"""

from __future__ import annotations

from owtracker.plugins.common import filter_by_role, tally


class TeamStatsPlugin:
    def __init__(self, matches: list[dict], role_filter: str | None = None):
        self.role_filter = role_filter or None
        self.matches = filter_by_role(matches, self.role_filter)
        self._result: dict | None = None

    def analyze(self) -> dict:
        result = tally(self.matches)
        result["role_filter"] = self.role_filter
        self._result = result
        return result

    def summary(self) -> None:
        r = self._result or self.analyze()
        scope = r["role_filter"] or "all roles"
        print(f"\n=== TEAM ({scope}) ===")
        print(f"  Matches: {r['total']}  W {r['wins']} / L {r['losses']}  Win rate: {r['win_rate']}%")
