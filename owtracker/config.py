# owtracker/config.py

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from owtracker.constants import DEFAULT_PLAYER_NAMES

PROJECT_ROOT = Path(__file__).resolve().parents[1]

DEFAULT_DB = "data/owtracker.db"
DEFAULT_UPLOAD_DIR = "data/uploads"
DEFAULT_FRONTEND_DIST = "frontend/dist"


def resolve_path(raw: str) -> str:
    """Return an absolute path anchored to project root when relative."""
    path = Path(raw)
    if path.is_absolute():
        return str(path)
    return str(PROJECT_ROOT / path)


def parse_roster(raw: str | None) -> tuple[str, ...]:
    """Split a comma-separated roster, dropping blanks and duplicates."""
    if not raw:
        return DEFAULT_PLAYER_NAMES
    names = []
    seen = set()
    for part in raw.split(","):
        name = part.strip()
        if not name or name in seen:
            continue
        seen.add(name)
        names.append(name)
    return tuple(names) or DEFAULT_PLAYER_NAMES


@dataclass(frozen=True)
class Settings:
    db_path: str = DEFAULT_DB
    upload_dir: str = DEFAULT_UPLOAD_DIR
    frontend_dist: str = DEFAULT_FRONTEND_DIST
    players: tuple[str, ...] = field(default=DEFAULT_PLAYER_NAMES)
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Read settings from OWTRACKER_* environment variables."""
    raw_port = os.getenv("OWTRACKER_PORT", "").strip()
    try:
        port = int(raw_port) if raw_port else 8080
    except ValueError:
        port = 8080

    return Settings(
        db_path=os.getenv("OWTRACKER_DB_PATH", "").strip() or DEFAULT_DB,
        upload_dir=os.getenv("OWTRACKER_UPLOAD_DIR", "").strip() or DEFAULT_UPLOAD_DIR,
        frontend_dist=os.getenv("OWTRACKER_FRONTEND_DIST", "").strip() or DEFAULT_FRONTEND_DIST,
        players=parse_roster(os.getenv("OWTRACKER_PLAYERS")),
        host=os.getenv("OWTRACKER_HOST", "").strip() or "0.0.0.0",
        port=port,
        log_level=(os.getenv("OWTRACKER_LOG_LEVEL", "").strip() or "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
