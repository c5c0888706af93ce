"""SQLite store of videos already published to the messaging channel.

WHY: The bot must never repost a video. It remembers every video it has
published (ID, title, timestamp) so a restart or a repeated poll sees the
same "last uploaded" video and skips it. The same table backs the /list
command and its delete buttons.

HOW: One SQLite table, ``uploaded_video``. A single connection is opened
with check_same_thread=False and every operation runs under a
threading.Lock, because the poller thread and Slack handler threads share
the store.

RULES:
- set_last_uploaded_video_id() is an upsert — an existing ID gets a fresh
  uploaded_at and title
- "Last uploaded" means greatest uploaded_at; uploaded_at strictly increases
- get_last_uploaded_video_id() returns "" when nothing has been published
- delete_video() raises VideoNotFoundError for unknown IDs
- The database file's parent directory is created on open
"""

from __future__ import annotations

import logging
import sqlite3
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 5

_SCHEMA = """
CREATE TABLE IF NOT EXISTS uploaded_video (
    id TEXT NOT NULL PRIMARY KEY,
    title TEXT NOT NULL DEFAULT '',
    uploaded_at REAL NOT NULL
)
"""


class VideoNotFoundError(KeyError):
    """Raised when deleting a video ID that is not in the store."""


@dataclass
class UploadedVideo:
    """One published video as recorded in the store.

    RULES:
    - uploaded_at: epoch seconds of the last publish (or re-publish)
    """

    id: str
    title: str
    uploaded_at: float


class UploadedVideoStore:
    """Thread-safe SQLite store for published video IDs.

    RULES:
    - All public methods acquire self._lock
    - db_path may be ":memory:" for tests
    - Use as a context manager or call close() when done
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = str(db_path)
        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)

        self._lock = threading.Lock()
        self._conn = sqlite3.connect(self._db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        with self._conn:
            self._conn.execute(_SCHEMA)

    def __enter__(self) -> UploadedVideoStore:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        self.close()

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def get_last_uploaded_video_id(self) -> str:
        """Return the ID of the most recently published video, or ""."""
        with self._lock:
            row = self._conn.execute(
                "SELECT id FROM uploaded_video ORDER BY uploaded_at DESC, rowid DESC LIMIT 1"
            ).fetchone()
        return row["id"] if row else ""

    def set_last_uploaded_video_id(self, video_id: str, title: str = "") -> None:
        """Record ``video_id`` as published now (insert or refresh)."""
        with self._lock, self._conn:
            latest = self._conn.execute("SELECT MAX(uploaded_at) FROM uploaded_video").fetchone()[0]
            # uploaded_at strictly increases, even on coarse clocks
            now = time.time()
            if latest is not None and now <= latest:
                now = latest + 1e-6
            self._conn.execute(
                "INSERT INTO uploaded_video (id, title, uploaded_at) VALUES (?, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET title = excluded.title, uploaded_at = excluded.uploaded_at",
                (video_id, title or "", now),
            )
        logger.info("Recorded video %s as uploaded", video_id)

    def list_recent(self, limit: int = DEFAULT_LIST_LIMIT) -> List[UploadedVideo]:
        """Return up to ``limit`` published videos, newest first."""
        with self._lock:
            rows = self._conn.execute(
                "SELECT id, title, uploaded_at FROM uploaded_video "
                "ORDER BY uploaded_at DESC, rowid DESC LIMIT ?",
                (limit,),
            ).fetchall()
        return [UploadedVideo(id=r["id"], title=r["title"], uploaded_at=r["uploaded_at"]) for r in rows]

    def get_video(self, video_id: str) -> Optional[UploadedVideo]:
        with self._lock:
            row = self._conn.execute(
                "SELECT id, title, uploaded_at FROM uploaded_video WHERE id = ?",
                (video_id,),
            ).fetchone()
        if row is None:
            return None
        return UploadedVideo(id=row["id"], title=row["title"], uploaded_at=row["uploaded_at"])

    def delete_video(self, video_id: str) -> None:
        """Remove a published video so the relay may post it again.

        Raises:
            VideoNotFoundError: If no row has this ID.
        """
        with self._lock, self._conn:
            cursor = self._conn.execute("DELETE FROM uploaded_video WHERE id = ?", (video_id,))
            deleted = cursor.rowcount
        if not deleted:
            raise VideoNotFoundError(video_id)
        logger.info("Video deleted successfully: %s", video_id)
