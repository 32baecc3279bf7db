"""Local ledger of unfinished uploads.

Remembers the upload identifier issued for each local file so an interrupted
transfer can be resumed later without the user copying ids around.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from chunkctl.core.config import CONFIG_DIR

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

LEDGER_FILE = CONFIG_DIR / "uploads.json"


# =============================================================================
# Ledger Entry
# =============================================================================


@dataclass
class LedgerEntry:
    """Upload identifier recorded for one local file."""

    path: str
    upload_id: str
    url: str
    file_size: int
    chunk_size: int
    created_at: datetime

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "upload_id": self.upload_id,
            "url": self.url,
            "file_size": self.file_size,
            "chunk_size": self.chunk_size,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, path: str, data: dict) -> LedgerEntry:
        """Create from dictionary."""
        return cls(
            path=path,
            upload_id=data["upload_id"],
            url=data["url"],
            file_size=int(data["file_size"]),
            chunk_size=int(data["chunk_size"]),
            created_at=datetime.fromisoformat(data["created_at"]),
        )


# =============================================================================
# UploadLedger
# =============================================================================


class UploadLedger:
    """JSON-backed map of absolute file path to pending upload."""

    def __init__(self, ledger_file: Path | None = None):
        """Initialize the ledger.

        Args:
            ledger_file: Path to the ledger file.
        """
        self.ledger_file = ledger_file or LEDGER_FILE
        self._lock = threading.Lock()

    @staticmethod
    def _key(path: str | Path) -> str:
        return str(Path(path).expanduser().resolve())

    def _load(self) -> dict[str, dict]:
        if not self.ledger_file.exists():
            return {}
        try:
            with open(self.ledger_file) as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Ignoring unreadable upload ledger %s: %s", self.ledger_file, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict[str, dict]) -> None:
        self.ledger_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.ledger_file, "w") as f:
            json.dump(data, f, indent=2, sort_keys=True)

        # Owner read/write only
        try:
            os.chmod(self.ledger_file, 0o600)
        except OSError as e:
            logger.debug("Could not restrict permissions on %s: %s", self.ledger_file, e)

    # =========================================================================
    # Entries
    # =========================================================================

    def record(
        self,
        path: str | Path,
        upload_id: str,
        url: str,
        file_size: int,
        chunk_size: int,
    ) -> LedgerEntry:
        """Remember the upload identifier for a file.

        An existing entry for the same path and id keeps its creation time.
        """
        key = self._key(path)
        with self._lock:
            data = self._load()
            previous = data.get(key)
            created_at = datetime.now()
            if previous and previous.get("upload_id") == upload_id:
                try:
                    created_at = datetime.fromisoformat(previous["created_at"])
                except (KeyError, ValueError) as e:
                    logger.debug("Resetting creation time for %s: %s", key, e)
            entry = LedgerEntry(
                path=key,
                upload_id=upload_id,
                url=url,
                file_size=file_size,
                chunk_size=chunk_size,
                created_at=created_at,
            )
            data[key] = entry.to_dict()
            self._save(data)
        return entry

    def get(self, path: str | Path, url: str | None = None) -> LedgerEntry | None:
        """Look up the pending upload for a file.

        Args:
            path: Local file path.
            url: Optional server URL to match.

        Returns:
            Entry if one is recorded (for that server), None otherwise.
        """
        key = self._key(path)
        with self._lock:
            raw = self._load().get(key)
        if raw is None:
            return None
        try:
            entry = LedgerEntry.from_dict(key, raw)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Ignoring malformed ledger entry for %s: %s", key, e)
            return None
        if url and entry.url != url:
            return None
        return entry

    def entries(self) -> list[LedgerEntry]:
        """All well-formed entries, oldest first."""
        with self._lock:
            data = self._load()
        result: list[LedgerEntry] = []
        for key, raw in data.items():
            try:
                result.append(LedgerEntry.from_dict(key, raw))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Ignoring malformed ledger entry for %s: %s", key, e)
        return sorted(result, key=lambda entry: entry.created_at)

    def forget(self, path: str | Path) -> bool:
        """Drop the entry for a file.

        Returns:
            True if an entry was removed.
        """
        key = self._key(path)
        with self._lock:
            data = self._load()
            if key not in data:
                return False
            del data[key]
            self._save(data)
        return True
