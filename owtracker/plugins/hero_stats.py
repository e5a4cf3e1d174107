"""
owtracker/plugins/hero_stats.py
===============================
Win rate per hero across every match and every player. Never role filtered.
Heroes with fewer than MIN_HERO_MATCHES games are listed but left out of the
best/worst rankings.
"""

from __future__ import annotations

from owtracker.constants import MAX_HERO_ENTRIES, MIN_HERO_MATCHES
from owtracker.plugins.common import is_win, players_of, win_rate


class HeroStatsPlugin:
    def __init__(self, matches: list[dict]):
        self.matches = list(matches)
        self._result: dict | None = None

    def analyze(self) -> dict:
        heroes = self._aggregate()
        ranked = [h for h in heroes if h["total"] >= MIN_HERO_MATCHES]
        best = sorted(ranked, key=lambda h: (-h["win_rate"], -h["total"]))[:MAX_HERO_ENTRIES]
        worst = sorted(ranked, key=lambda h: (h["win_rate"], -h["total"]))[:MAX_HERO_ENTRIES]
        result = {
            "heroes": heroes,
            "best": best,
            "worst": worst,
            "min_matches": MIN_HERO_MATCHES,
        }
        self._result = result
        return result

    def summary(self) -> None:
        r = self._result or self.analyze()
        if not r["best"]:
            print(f"[HeroStats] No hero with at least {r['min_matches']} matches.")
            return
        print(f"\n=== HEROES (min {r['min_matches']} matches) ===")
        for title, rows in (("BEST", r["best"]), ("WORST", r["worst"])):
            print(f"\n  {title}")
            print(f"  {'Hero':<16} {'Role':<8} {'M':>4} {'Win%':>5}")
            for h in rows:
                print(f"  {h['character']:<16} {h['role'] or '-':<8} {h['total']:>4} {h['win_rate']:>4}%")

    def _aggregate(self) -> list[dict]:
        agg: dict[str, dict] = {}
        for match in self.matches:
            won = is_win(match)
            for player in players_of(match):
                character = player.get("character")
                if not character:
                    continue
                if character not in agg:
                    agg[character] = {
                        "character": character,
                        "role": player.get("role"),
                        "wins": 0,
                        "losses": 0,
                    }
                if won:
                    agg[character]["wins"] += 1
                else:
                    agg[character]["losses"] += 1

        heroes = []
        for entry in agg.values():
            total = entry["wins"] + entry["losses"]
            heroes.append({**entry, "total": total, "win_rate": win_rate(entry["wins"], total)})
        return heroes
