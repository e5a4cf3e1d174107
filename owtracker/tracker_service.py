# owtracker/tracker_service.py

import logging
from typing import Any, Dict, List, Optional

from owtracker.database import Database
from owtracker.normalizer import (
    ValidationError,
    is_valid_improvement,
    is_valid_match,
    normalize_archive_link,
    normalize_improvement,
    normalize_match,
    utc_now_iso,
    validate_archive_link,
    validate_improvement,
    validate_match,
    validate_player_rank,
)

logger = logging.getLogger(__name__)


class TrackerService:
    """Validated, normalized writes and reads for every tracker collection."""

    def __init__(self, db: Database):
        self.db = db

    # --- Matches ---

    def list_matches(self, season: Optional[str] = None) -> List[Dict]:
        """All matches in stored order (newest first)."""
        return self.db.get_matches(season=season)

    def save_match(self, match: Any) -> Dict:
        """Insert or fully replace a match by id. Returns the stored record."""
        validate_match(match)
        return self.db.upsert_match(normalize_match(match))

    def delete_match(self, match_id: str) -> bool:
        return self.db.delete_match(match_id)

    def delete_all_matches(self) -> int:
        deleted = self.db.delete_all_matches()
        logger.info("Deleted %s matches", deleted)
        return deleted

    # --- Improvement tickets ---

    def list_improvements(self) -> List[Dict]:
        return self.db.get_improvements()

    def save_improvement(self, ticket: Any) -> Dict:
        validate_improvement(ticket)
        return self.db.upsert_improvement(normalize_improvement(ticket))

    def set_improvement_completed(self, ticket_id: str, completed: Any) -> Optional[Dict]:
        """Toggle a ticket. ``completedAt`` is stamped on completion and cleared otherwise."""
        is_completed = bool(completed)
        completed_at = utc_now_iso() if is_completed else None
        return self.db.update_improvement_completion(ticket_id, is_completed, completed_at)

    def delete_improvement(self, ticket_id: str) -> bool:
        return self.db.delete_improvement(ticket_id)

    def delete_all_improvements(self) -> int:
        deleted = self.db.delete_all_improvements()
        logger.info("Deleted %s improvements", deleted)
        return deleted

    # --- Archive links ---

    def list_archive_links(self) -> List[Dict]:
        return self.db.get_archive_links()

    def save_archive_link(self, link: Any) -> Dict:
        validate_archive_link(link)
        cleaned = dict(link)
        for key in ("title", "url"):
            cleaned[key] = cleaned[key].strip()
        return self.db.upsert_archive_link(normalize_archive_link(cleaned))

    def delete_archive_link(self, link_id: str) -> bool:
        return self.db.delete_archive_link(link_id)

    def delete_all_archive_links(self) -> int:
        return self.db.delete_all_archive_links()

    # --- Player ranks ---

    def list_player_ranks(self, season: Optional[str]) -> List[Dict]:
        if not season or not str(season).strip():
            raise ValidationError("season is required")
        return self.db.get_player_ranks(str(season).strip())

    def save_player_rank(self, entry: Any) -> Dict:
        cleaned = validate_player_rank(entry)
        return self.db.upsert_player_rank(
            cleaned["player"],
            cleaned["season"],
            cleaned["queue"],
            cleaned["role"],
            cleaned["rank"],
        )

    def delete_all_player_ranks(self) -> int:
        return self.db.delete_all_player_ranks()

    # --- Import / export ---

    def import_matches(self, matches: List[Any]) -> int:
        """Normalize and store every well-formed match; malformed ones are skipped."""
        valid = [normalize_match(match) for match in matches if is_valid_match(match)]
        skipped = len(matches) - len(valid)
        if skipped:
            logger.debug("Import skipped %s malformed matches", skipped)
        return self.db.import_matches(valid)

    def import_improvements(self, tickets: List[Any]) -> int:
        valid = [normalize_improvement(ticket) for ticket in tickets if is_valid_improvement(ticket)]
        skipped = len(tickets) - len(valid)
        if skipped:
            logger.debug("Import skipped %s malformed improvements", skipped)
        return self.db.import_improvements(valid)

    def import_payload(self, payload: Any) -> Dict[str, int]:
        """Accept a bare match list or an export document with matches/improvements."""
        if isinstance(payload, list):
            matches, improvements = payload, []
        elif isinstance(payload, dict) and isinstance(payload.get("matches"), list):
            matches = payload["matches"]
            improvements = payload.get("improvements") or []
            if not isinstance(improvements, list):
                raise ValidationError("Invalid import file")
        else:
            raise ValidationError("Invalid import file")

        imported = self.import_matches(matches)
        imported_improvements = self.import_improvements(improvements) if improvements else 0
        logger.info(
            "Imported %s matches and %s improvements", imported, imported_improvements
        )
        return {"imported": imported, "improvements": imported_improvements}

    def export_payload(self) -> Dict[str, Any]:
        return {
            "exportedAt": utc_now_iso(),
            "matches": self.db.get_matches(),
            "improvements": self.db.get_improvements(),
        }
