"""SQLite diagnostics for stored match payloads.

Run:
    python -m owtracker.tools.data_integrity_check
or:
    python -m owtracker.tools.data_integrity_check --db data/owtracker.db --backfill-seasons
"""

from __future__ import annotations

import argparse
import json
import os
import sqlite3
from collections import Counter
from pathlib import Path

from owtracker.config import DEFAULT_DB, parse_roster, resolve_path
from owtracker.constants import QUEUE_STADIUM, RANK_OPTIONS, RESULTS, ROLE_CHARACTERS, ROLES
from owtracker.seasons import resolve_season


def resolve_db_path(arg_db: str | None) -> Path:
    env_db = os.getenv("OWTRACKER_DB_PATH", "").strip()
    return Path(resolve_path(arg_db or env_db or DEFAULT_DB))


def check_match(match: dict, roster: tuple[str, ...]) -> list[str]:
    """Return the problems found in one match payload."""
    issues = []
    if not match.get("createdAt"):
        issues.append("missing createdAt")
    if not match.get("season"):
        issues.append("missing season")
    if match.get("result") not in RESULTS:
        issues.append(f"unknown result {match.get('result')!r}")

    queue = match.get("queue")
    rank = match.get("rank")
    if rank and queue in RANK_OPTIONS and rank not in RANK_OPTIONS[queue]:
        issues.append(f"rank {rank!r} not valid for queue {queue!r}")
    if match.get("score") is not None and queue != QUEUE_STADIUM:
        issues.append(f"score recorded on {queue!r} match")

    players = match.get("players")
    if not isinstance(players, list):
        issues.append("players is not a list")
        return issues
    if not players:
        issues.append("no players")

    names = Counter()
    for player in players:
        if not isinstance(player, dict):
            issues.append("player entry is not an object")
            continue
        name = player.get("name")
        role = player.get("role")
        names[name] += 1
        if name not in roster:
            issues.append(f"player {name!r} not in roster")
        if role not in ROLES:
            issues.append(f"player {name!r} has unknown role {role!r}")
            continue
        character = player.get("character")
        if character and character not in ROLE_CHARACTERS[role]:
            issues.append(f"{character!r} is not a {role} hero")
    for name, count in names.items():
        if count > 1:
            issues.append(f"player {name!r} listed {count} times")
    return issues


def scan(conn: sqlite3.Connection, roster: tuple[str, ...]) -> dict[str, list[str]]:
    cur = conn.cursor()
    cur.execute("SELECT id, payload FROM matches ORDER BY datetime(created_at) DESC")
    problems = {}
    for match_id, raw in cur.fetchall():
        try:
            match = json.loads(raw)
        except (TypeError, json.JSONDecodeError):
            problems[match_id] = ["payload is not valid JSON"]
            continue
        issues = check_match(match, roster)
        if issues:
            problems[match_id] = issues
    return problems


def backfill_seasons(conn: sqlite3.Connection) -> int:
    """Tag matches stored without a season using their createdAt."""
    cur = conn.cursor()
    cur.execute("SELECT id, payload FROM matches WHERE season IS NULL OR TRIM(season) = ''")
    fixed = 0
    for match_id, raw in cur.fetchall():
        try:
            match = json.loads(raw)
        except (TypeError, json.JSONDecodeError):
            continue
        match["season"] = match.get("season") or resolve_season(match.get("createdAt"))
        conn.execute(
            "UPDATE matches SET payload = ?, season = ? WHERE id = ?",
            (json.dumps(match, ensure_ascii=False), match["season"], match_id),
        )
        fixed += 1
    conn.commit()
    return fixed


def main() -> int:
    parser = argparse.ArgumentParser(description="Match payload integrity check")
    parser.add_argument("--db", default=None, help="Path to SQLite database")
    parser.add_argument("--players", default=None, help="Comma-separated roster (default: OWTRACKER_PLAYERS)")
    parser.add_argument("--backfill-seasons", action="store_true", help="Write missing season tags")
    args = parser.parse_args()

    db_path = resolve_db_path(args.db)
    if not db_path.exists():
        print(f"Database not found: {db_path}")
        return 1

    roster = parse_roster(args.players or os.getenv("OWTRACKER_PLAYERS"))
    conn = sqlite3.connect(str(db_path))
    try:
        total = conn.execute("SELECT COUNT(*) FROM matches").fetchone()[0]
        print(f"Database: {db_path}")
        print(f"Matches:  {total}")

        if args.backfill_seasons:
            print(f"Season tags written: {backfill_seasons(conn)}")

        problems = scan(conn, roster)
        print(f"Matches with issues: {len(problems)}")
        for match_id, issues in problems.items():
            print(f"  - {match_id}")
            for issue in issues:
                print(f"      {issue}")
    finally:
        conn.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
