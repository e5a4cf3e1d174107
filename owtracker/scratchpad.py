# owtracker/scratchpad.py
"""
Shared scratchpad: one text buffer plus a drop folder of uploaded files.

Clients poll for changes; the last write wins and nothing is merged.
"""

from __future__ import annotations

import io
import logging
import mimetypes
import os
import posixpath
import uuid
import zipfile
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from owtracker.config import resolve_path
from owtracker.database import Database
from owtracker.normalizer import ValidationError

logger = logging.getLogger(__name__)

MAX_FILE_BYTES = 50 * 1024 * 1024
MAX_UPLOAD_BYTES = 4 * MAX_FILE_BYTES


def upload_too_large(content_length: Optional[str]) -> bool:
    """True when a declared request size is over MAX_UPLOAD_BYTES."""
    try:
        return int(content_length or 0) > MAX_UPLOAD_BYTES
    except ValueError:
        return False


def sanitize_relative_path(raw: Optional[str], fallback: str) -> str:
    """Drop absolute prefixes and ``..`` segments from a client supplied path."""
    text = str(raw or "").replace("\\", "/").strip()
    parts = [part for part in text.split("/") if part not in ("", ".", "..")]
    if not parts:
        parts = [fallback]
    return posixpath.join(*parts)


class ScratchpadService:
    def __init__(self, db: Database, upload_dir: str = "data/uploads"):
        self.db = db
        self.upload_dir = Path(resolve_path(upload_dir))
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    # --- Text ---

    def get_text(self) -> Dict[str, Optional[str]]:
        return self.db.get_scratchpad()

    def save_text(self, content: object) -> Dict[str, str]:
        if content is not None and not isinstance(content, str):
            raise ValidationError("content must be a string")
        return self.db.save_scratchpad(content or "")

    # --- Files ---

    def _stored_path(self, record: Dict) -> Path:
        return self.upload_dir / record["stored_name"]

    @staticmethod
    def _public(record: Dict) -> Dict:
        return {k: v for k, v in record.items() if k != "stored_name"}

    def list_files(self) -> List[Dict]:
        return [self._public(r) for r in self.db.get_file_transfers()]

    @staticmethod
    def _clean_filename(filename: Optional[str], size: int) -> str:
        name = posixpath.basename(str(filename or "").replace("\\", "/").strip())
        if not name:
            raise ValidationError("filename is required")
        if size > MAX_FILE_BYTES:
            raise ValidationError(f"{name} exceeds {MAX_FILE_BYTES // (1024 * 1024)} MB")
        return name

    def upload_file(
        self,
        filename: Optional[str],
        data: bytes,
        relative_path: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> Dict:
        name = self._clean_filename(filename, len(data))
        rel_path = sanitize_relative_path(relative_path, name)
        ctype = content_type or mimetypes.guess_type(name)[0] or "application/octet-stream"
        stored_name = f"{uuid.uuid4().hex}{Path(name).suffix}"

        target = self.upload_dir / stored_name
        target.write_bytes(data)
        try:
            record = self.db.add_file_transfer(name, rel_path, ctype, len(data), stored_name)
        except RuntimeError:
            target.unlink(missing_ok=True)
            raise
        logger.info("Stored upload %s (%s bytes)", rel_path, len(data))
        return self._public(record)

    def upload_files(self, uploads: Iterable[tuple]) -> List[Dict]:
        """Store a batch of ``(filename, data, relative_path, content_type)``.

        Every entry is checked before anything is written, so a bad name or an
        oversized file rejects the whole batch.
        """
        batch = list(uploads)
        if not batch:
            raise ValidationError("no files uploaded")
        for filename, data, _, _ in batch:
            self._clean_filename(filename, len(data))
        return [
            self.upload_file(filename, data, relative_path=rel_path, content_type=ctype)
            for filename, data, rel_path, ctype in batch
        ]

    def open_file(self, file_id: int) -> Optional[tuple[Dict, Path]]:
        """Return ``(metadata, path on disk)`` or None if unknown or missing on disk."""
        record = self.db.get_file_transfer(file_id)
        if not record:
            return None
        path = self._stored_path(record)
        if not path.exists():
            logger.warning("File %s is recorded but missing on disk (%s)", file_id, path)
            return None
        return self._public(record), path

    def delete_file(self, file_id: int) -> bool:
        record = self.db.delete_file_transfer(file_id)
        if not record:
            return False
        self._stored_path(record).unlink(missing_ok=True)
        return True

    def delete_all_files(self) -> int:
        records = self.db.delete_all_file_transfers()
        for record in records:
            self._stored_path(record).unlink(missing_ok=True)
        return len(records)

    def build_archive(self) -> bytes:
        """Zip every stored file under its relative path."""
        buffer = io.BytesIO()
        used: set[str] = set()
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for record in reversed(self.db.get_file_transfers()):
                path = self._stored_path(record)
                if not path.exists():
                    continue
                arcname = record["relative_path"]
                if arcname in used:
                    stem, ext = os.path.splitext(arcname)
                    arcname = f"{stem} ({record['id']}){ext}"
                used.add(arcname)
                archive.write(path, arcname)
        return buffer.getvalue()
