# tests/helpers.py

import os
import tempfile
from itertools import count

from owtracker.database import Database

_ids = count(1)


def create_test_db() -> tuple[Database, str]:
    """Create a fresh database in a temporary file. Returns (db, path)."""
    fd, db_path = tempfile.mkstemp(suffix='.db')
    os.close(fd)
    return Database(db_path), db_path


def remove_test_db(db: Database, db_path: str) -> None:
    db.close()
    for suffix in ("", "-wal", "-shm"):
        if os.path.exists(db_path + suffix):
            os.remove(db_path + suffix)


def player(name: str, role: str, character: str | None = None) -> dict:
    entry = {"id": f"p-{next(_ids)}", "name": name, "role": role}
    if character is not None:
        entry["character"] = character
    return entry


def make_match(result: str, *players: dict, queue: str = "Rangliste", created_at: str | None = None,
               **extra) -> dict:
    """Build a match payload; ``players`` are entries from ``player()``."""
    match = {
        "id": extra.pop("id", f"m-{next(_ids)}"),
        "queue": queue,
        "result": result,
        "players": list(players),
    }
    if created_at is not None:
        match["createdAt"] = created_at
    match.update(extra)
    return match


def scenario_matches() -> list[dict]:
    """Three matches: Pudel+Nora win and lose, Pudel+Philipp win."""
    return [
        make_match("Win", player("Pudel", "Tank"), player("Nora", "DPS"),
                   created_at="2025-03-03T20:00:00.000Z"),
        make_match("Lose", player("Nora", "DPS"), player("Pudel", "Tank"),
                   created_at="2025-03-02T20:00:00.000Z"),
        make_match("Win", player("Pudel", "Tank"), player("Philipp", "Support"),
                   created_at="2025-03-01T20:00:00.000Z"),
    ]
