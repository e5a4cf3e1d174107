"""
owtracker/plugins/mode_stats.py
===============================
Overall record plus the same numbers split by queue. Never role filtered.
"""

from __future__ import annotations

from owtracker.plugins.common import tally


class ModeStatsPlugin:
    def __init__(self, matches: list[dict]):
        self.matches = list(matches)
        self._result: dict | None = None

    def analyze(self) -> dict:
        by_queue: dict[str, list[dict]] = {}
        for match in self.matches:
            queue = str(match.get("queue") or "-")
            by_queue.setdefault(queue, []).append(match)

        result = tally(self.matches)
        result["modes"] = [{"queue": queue, **tally(rows)} for queue, rows in by_queue.items()]
        self._result = result
        return result

    def summary(self) -> None:
        r = self._result or self.analyze()
        print("\n=== MODES ===")
        print(f"  {'Queue':<14} {'M':>4} {'W':>4} {'L':>4} {'Win%':>5}")
        print(f"  {'Total':<14} {r['total']:>4} {r['wins']:>4} {r['losses']:>4} {r['win_rate']:>4}%")
        for m in r["modes"]:
            print(f"  {m['queue']:<14} {m['total']:>4} {m['wins']:>4} {m['losses']:>4} {m['win_rate']:>4}%")
