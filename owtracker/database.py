# owtracker/database.py

import json
import logging
import os
import sqlite3
import time
from typing import Any, Dict, Iterable, List, Optional

from owtracker.config import resolve_path
from owtracker.normalizer import utc_now_iso

logger = logging.getLogger(__name__)


class Database:
    """Handle all database operations.

    Matches, improvement tickets and archive links are stored as opaque JSON
    payloads next to the few scalar columns used for sorting and filtering.
    """

    def __init__(self, db_path: str = 'data/owtracker.db'):
        self.db_path = resolve_path(db_path)
        self.conn = None
        self.init_database()

    def init_database(self):
        """Create tables if they don't exist."""
        try:
            db_dir = os.path.dirname(self.db_path)
            if db_dir:
                try:
                    os.makedirs(db_dir, exist_ok=True)
                except OSError as e:
                    raise RuntimeError(f"Failed to create database directory '{db_dir}': {e}")

            self.conn = sqlite3.connect(self.db_path, timeout=30.0, check_same_thread=False)
            self.conn.row_factory = sqlite3.Row
            self.conn.execute("PRAGMA busy_timeout = 30000")
            self._set_wal_mode_best_effort()

            cursor = self.conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS matches (
                    id          TEXT PRIMARY KEY,
                    payload     TEXT NOT NULL,
                    created_at  TEXT NOT NULL,
                    season      TEXT
                )
            """)
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_matches_season ON matches(season)")

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS improvements (
                    id          TEXT PRIMARY KEY,
                    payload     TEXT NOT NULL,
                    created_at  TEXT NOT NULL,
                    completed   INTEGER NOT NULL DEFAULT 0
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS archive_links (
                    id          TEXT PRIMARY KEY,
                    payload     TEXT NOT NULL,
                    created_at  TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS player_ranks (
                    player      TEXT NOT NULL,
                    season      TEXT NOT NULL,
                    queue       TEXT NOT NULL,
                    role        TEXT NOT NULL,
                    rank        TEXT NOT NULL DEFAULT '',
                    updated_at  TEXT NOT NULL,
                    UNIQUE (player, season, queue, role)
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS scratchpad (
                    id          INTEGER PRIMARY KEY CHECK (id = 1),
                    content     TEXT NOT NULL DEFAULT '',
                    updated_at  TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS file_transfers (
                    id              INTEGER PRIMARY KEY AUTOINCREMENT,
                    filename        TEXT NOT NULL,
                    relative_path   TEXT NOT NULL,
                    content_type    TEXT NOT NULL,
                    size_bytes      INTEGER NOT NULL,
                    stored_name     TEXT NOT NULL,
                    created_at      TEXT NOT NULL
                )
            """)

            self._commit_with_retry(context="init schema commit")
        except sqlite3.Error as e:
            raise RuntimeError(f"Failed to initialize database at '{self.db_path}': {e}")

    def _commit_with_retry(self, retries: int = 8, delay_seconds: float = 0.25, context: str = "commit") -> None:
        """
        Retry commit on transient SQLITE_BUSY/locked errors.
        """
        last_error = None
        for attempt in range(retries):
            try:
                self.conn.commit()
                return
            except sqlite3.OperationalError as e:
                last_error = e
                if "locked" not in str(e).lower() and "busy" not in str(e).lower():
                    raise
                if attempt == retries - 1:
                    break
                time.sleep(delay_seconds)
        raise RuntimeError(
            f"Failed to {context}: database remained locked after {retries} attempts ({last_error})"
        )

    def _set_wal_mode_best_effort(self, retries: int = 5, delay_seconds: float = 0.2) -> None:
        """Try to enable WAL without failing startup if the DB is temporarily locked."""
        for attempt in range(retries):
            try:
                self.conn.execute("PRAGMA journal_mode = WAL")
                return
            except sqlite3.OperationalError as e:
                msg = str(e).lower()
                if "locked" not in msg and "busy" not in msg:
                    raise
                if attempt == retries - 1:
                    logger.warning("Could not enable WAL mode (database locked); continuing. (%s)", e)
                    return
                time.sleep(delay_seconds)

    @staticmethod
    def _load_payload(raw: Any) -> Dict[str, Any]:
        return json.loads(raw)

    def _fetch_payloads(self, sql: str, params: Iterable[Any] = ()) -> List[Dict]:
        cursor = self.conn.cursor()
        cursor.execute(sql, tuple(params))
        return [self._load_payload(row["payload"]) for row in cursor.fetchall()]

    def _delete_by_id(self, table: str, record_id: Any, label: str) -> bool:
        try:
            cursor = self.conn.cursor()
            cursor.execute(f"DELETE FROM {table} WHERE id = ?", (record_id,))
            self._commit_with_retry(context=f"delete {label}")
            return cursor.rowcount > 0
        except sqlite3.Error as e:
            self.conn.rollback()
            raise RuntimeError(f"Failed to delete {label} '{record_id}': {e}")

    def _delete_all(self, table: str, label: str) -> int:
        try:
            cursor = self.conn.cursor()
            cursor.execute(f"DELETE FROM {table}")
            self._commit_with_retry(context=f"delete all {label}")
            return cursor.rowcount
        except sqlite3.Error as e:
            self.conn.rollback()
            raise RuntimeError(f"Failed to delete all {label}: {e}")

    # --- Matches ---

    _UPSERT_MATCH = """
        INSERT INTO matches (id, payload, created_at, season)
        VALUES (?, ?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET
            payload = excluded.payload,
            created_at = excluded.created_at,
            season = excluded.season
    """

    @staticmethod
    def _match_params(match: Dict[str, Any]) -> tuple:
        return (
            match["id"],
            json.dumps(match, ensure_ascii=False),
            str(match["createdAt"]),
            match.get("season"),
        )

    def get_matches(self, season: Optional[str] = None) -> List[Dict]:
        """Get all matches, newest first, optionally restricted to one season."""
        try:
            if season:
                return self._fetch_payloads(
                    """
                    SELECT payload FROM matches
                    WHERE season = ?
                    ORDER BY datetime(created_at) DESC, rowid DESC
                    """,
                    (season,),
                )
            return self._fetch_payloads(
                "SELECT payload FROM matches ORDER BY datetime(created_at) DESC, rowid DESC"
            )
        except sqlite3.Error as e:
            raise RuntimeError(f"Failed to load matches: {e}")

    def get_match(self, match_id: str) -> Optional[Dict]:
        try:
            rows = self._fetch_payloads("SELECT payload FROM matches WHERE id = ?", (match_id,))
            return rows[0] if rows else None
        except sqlite3.Error as e:
            raise RuntimeError(f"Failed to get match '{match_id}': {e}")

    def upsert_match(self, match: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a match or replace the stored payload for its id."""
        try:
            cursor = self.conn.cursor()
            cursor.execute(self._UPSERT_MATCH, self._match_params(match))
            self._commit_with_retry(context="save match")
            return match
        except sqlite3.Error as e:
            self.conn.rollback()
            raise RuntimeError(f"Failed to save match '{match.get('id')}': {e}")

    def import_matches(self, matches: List[Dict[str, Any]]) -> int:
        """Upsert already normalized matches in a single transaction."""
        try:
            cursor = self.conn.cursor()
            for match in matches:
                cursor.execute(self._UPSERT_MATCH, self._match_params(match))
            self._commit_with_retry(context="import matches")
            return len(matches)
        except sqlite3.Error as e:
            self.conn.rollback()
            raise RuntimeError(f"Failed to import matches: {e}")
        except Exception:
            self.conn.rollback()
            raise

    def delete_match(self, match_id: str) -> bool:
        return self._delete_by_id("matches", match_id, "match")

    def delete_all_matches(self) -> int:
        return self._delete_all("matches", "matches")

    def match_count(self) -> int:
        cursor = self.conn.cursor()
        cursor.execute("SELECT COUNT(*) FROM matches")
        return cursor.fetchone()[0]

    def get_match_seasons(self) -> List[str]:
        """Distinct season labels present in stored matches."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT DISTINCT season FROM matches WHERE season IS NOT NULL")
        return [row["season"] for row in cursor.fetchall()]

    # --- Improvement tickets ---

    _UPSERT_IMPROVEMENT = """
        INSERT INTO improvements (id, payload, created_at, completed)
        VALUES (?, ?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET
            payload = excluded.payload,
            created_at = excluded.created_at,
            completed = excluded.completed
    """

    @staticmethod
    def _improvement_params(ticket: Dict[str, Any]) -> tuple:
        return (
            ticket["id"],
            json.dumps(ticket, ensure_ascii=False),
            str(ticket["createdAt"]),
            1 if ticket.get("completed") else 0,
        )

    def get_improvements(self) -> List[Dict]:
        """Get all tickets, open ones first, newest first within each group."""
        try:
            return self._fetch_payloads(
                """
                SELECT payload FROM improvements
                ORDER BY completed ASC, datetime(created_at) DESC, rowid DESC
                """
            )
        except sqlite3.Error as e:
            raise RuntimeError(f"Failed to load improvements: {e}")

    def get_improvement(self, ticket_id: str) -> Optional[Dict]:
        try:
            rows = self._fetch_payloads("SELECT payload FROM improvements WHERE id = ?", (ticket_id,))
            return rows[0] if rows else None
        except sqlite3.Error as e:
            raise RuntimeError(f"Failed to get improvement '{ticket_id}': {e}")

    def upsert_improvement(self, ticket: Dict[str, Any]) -> Dict[str, Any]:
        try:
            cursor = self.conn.cursor()
            cursor.execute(self._UPSERT_IMPROVEMENT, self._improvement_params(ticket))
            self._commit_with_retry(context="save improvement")
            return ticket
        except sqlite3.Error as e:
            self.conn.rollback()
            raise RuntimeError(f"Failed to save improvement '{ticket.get('id')}': {e}")

    def update_improvement_completion(
        self, ticket_id: str, completed: bool, completed_at: Optional[str]
    ) -> Optional[Dict]:
        """Set ``completed``/``completedAt`` together. Returns None if the ticket is unknown."""
        try:
            cursor = self.conn.cursor()
            cursor.execute("SELECT payload FROM improvements WHERE id = ?", (ticket_id,))
            row = cursor.fetchone()
            if not row:
                return None
            ticket = self._load_payload(row["payload"])
            ticket["completed"] = bool(completed)
            ticket["completedAt"] = completed_at if completed else None
            cursor.execute(
                "UPDATE improvements SET payload = ?, completed = ? WHERE id = ?",
                (json.dumps(ticket, ensure_ascii=False), 1 if completed else 0, ticket_id),
            )
            self._commit_with_retry(context="update improvement")
            return ticket
        except sqlite3.Error as e:
            self.conn.rollback()
            raise RuntimeError(f"Failed to update improvement '{ticket_id}': {e}")

    def import_improvements(self, tickets: List[Dict[str, Any]]) -> int:
        try:
            cursor = self.conn.cursor()
            for ticket in tickets:
                cursor.execute(self._UPSERT_IMPROVEMENT, self._improvement_params(ticket))
            self._commit_with_retry(context="import improvements")
            return len(tickets)
        except sqlite3.Error as e:
            self.conn.rollback()
            raise RuntimeError(f"Failed to import improvements: {e}")
        except Exception:
            self.conn.rollback()
            raise

    def delete_improvement(self, ticket_id: str) -> bool:
        return self._delete_by_id("improvements", ticket_id, "improvement")

    def delete_all_improvements(self) -> int:
        return self._delete_all("improvements", "improvements")

    # --- Archive links ---

    def get_archive_links(self) -> List[Dict]:
        try:
            return self._fetch_payloads(
                "SELECT payload FROM archive_links ORDER BY datetime(created_at) DESC, rowid DESC"
            )
        except sqlite3.Error as e:
            raise RuntimeError(f"Failed to load archive links: {e}")

    def upsert_archive_link(self, link: Dict[str, Any]) -> Dict[str, Any]:
        try:
            cursor = self.conn.cursor()
            cursor.execute(
                """
                INSERT INTO archive_links (id, payload, created_at)
                VALUES (?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    payload = excluded.payload,
                    created_at = excluded.created_at
                """,
                (link["id"], json.dumps(link, ensure_ascii=False), str(link["createdAt"])),
            )
            self._commit_with_retry(context="save archive link")
            return link
        except sqlite3.Error as e:
            self.conn.rollback()
            raise RuntimeError(f"Failed to save archive link '{link.get('id')}': {e}")

    def delete_archive_link(self, link_id: str) -> bool:
        return self._delete_by_id("archive_links", link_id, "archive link")

    def delete_all_archive_links(self) -> int:
        return self._delete_all("archive_links", "archive links")

    # --- Player ranks ---

    @staticmethod
    def _rank_row(row: sqlite3.Row) -> Dict[str, str]:
        return {
            "player": row["player"],
            "season": row["season"],
            "queue": row["queue"],
            "role": row["role"],
            "rank": row["rank"],
            "updatedAt": row["updated_at"],
        }

    def get_player_ranks(self, season: str) -> List[Dict]:
        """Get every rank entry recorded for one season."""
        try:
            cursor = self.conn.cursor()
            cursor.execute(
                """
                SELECT player, season, queue, role, rank, updated_at
                FROM player_ranks
                WHERE season = ?
                ORDER BY player, queue, role
                """,
                (season,),
            )
            return [self._rank_row(row) for row in cursor.fetchall()]
        except sqlite3.Error as e:
            raise RuntimeError(f"Failed to load player ranks for '{season}': {e}")

    def upsert_player_rank(self, player: str, season: str, queue: str, role: str, rank: str = "") -> Dict:
        """Store the current rank for a (player, season, queue, role) key."""
        updated_at = utc_now_iso()
        try:
            cursor = self.conn.cursor()
            cursor.execute(
                """
                INSERT INTO player_ranks (player, season, queue, role, rank, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(player, season, queue, role) DO UPDATE SET
                    rank = excluded.rank,
                    updated_at = excluded.updated_at
                """,
                (player, season, queue, role, rank or "", updated_at),
            )
            self._commit_with_retry(context="save player rank")
        except sqlite3.Error as e:
            self.conn.rollback()
            raise RuntimeError(f"Failed to save rank for '{player}': {e}")
        return {
            "player": player,
            "season": season,
            "queue": queue,
            "role": role,
            "rank": rank or "",
            "updatedAt": updated_at,
        }

    def delete_all_player_ranks(self) -> int:
        return self._delete_all("player_ranks", "player ranks")

    # --- Scratchpad ---

    def get_scratchpad(self) -> Dict[str, str]:
        cursor = self.conn.cursor()
        cursor.execute("SELECT content, updated_at FROM scratchpad WHERE id = 1")
        row = cursor.fetchone()
        if not row:
            return {"content": "", "updated_at": None}
        return {"content": row["content"], "updated_at": row["updated_at"]}

    def save_scratchpad(self, content: str) -> Dict[str, str]:
        updated_at = utc_now_iso()
        try:
            cursor = self.conn.cursor()
            cursor.execute(
                """
                INSERT INTO scratchpad (id, content, updated_at)
                VALUES (1, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    content = excluded.content,
                    updated_at = excluded.updated_at
                """,
                (content, updated_at),
            )
            self._commit_with_retry(context="save scratchpad")
        except sqlite3.Error as e:
            self.conn.rollback()
            raise RuntimeError(f"Failed to save scratchpad: {e}")
        return {"content": content, "updated_at": updated_at}

    @staticmethod
    def _file_row(row: sqlite3.Row) -> Dict[str, Any]:
        return {
            "id": row["id"],
            "filename": row["filename"],
            "relative_path": row["relative_path"],
            "content_type": row["content_type"],
            "size_bytes": row["size_bytes"],
            "stored_name": row["stored_name"],
            "created_at": row["created_at"],
        }

    def add_file_transfer(
        self, filename: str, relative_path: str, content_type: str, size_bytes: int, stored_name: str
    ) -> Dict[str, Any]:
        created_at = utc_now_iso()
        try:
            cursor = self.conn.cursor()
            cursor.execute(
                """
                INSERT INTO file_transfers
                    (filename, relative_path, content_type, size_bytes, stored_name, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (filename, relative_path, content_type, size_bytes, stored_name, created_at),
            )
            self._commit_with_retry(context="save file transfer")
            file_id = cursor.lastrowid
        except sqlite3.Error as e:
            self.conn.rollback()
            raise RuntimeError(f"Failed to save file '{filename}': {e}")
        return self.get_file_transfer(file_id)

    def get_file_transfers(self) -> List[Dict]:
        cursor = self.conn.cursor()
        cursor.execute("SELECT * FROM file_transfers ORDER BY id DESC")
        return [self._file_row(row) for row in cursor.fetchall()]

    def get_file_transfer(self, file_id: int) -> Optional[Dict]:
        cursor = self.conn.cursor()
        cursor.execute("SELECT * FROM file_transfers WHERE id = ?", (file_id,))
        row = cursor.fetchone()
        return self._file_row(row) if row else None

    def delete_file_transfer(self, file_id: int) -> Optional[Dict]:
        """Delete one file record and return it, or None if it did not exist."""
        existing = self.get_file_transfer(file_id)
        if not existing:
            return None
        self._delete_by_id("file_transfers", file_id, "file")
        return existing

    def delete_all_file_transfers(self) -> List[Dict]:
        existing = self.get_file_transfers()
        self._delete_all("file_transfers", "files")
        return existing

    def close(self):
        """Close database connection."""
        if self.conn:
            self.conn.close()
