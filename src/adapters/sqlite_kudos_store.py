"""SQLite kudos store adapter for local storage.

Implements KudosStoreProtocol with SQLite backend.
"""

import json
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Final

import pytz

from src.config.logging_config import get_logger
from src.domain.exceptions import RepositoryError
from src.domain.models import KudosEvent

logger = get_logger(__name__)

# Fixed-width UTC format keeps lexical and chronological order identical
TIMESTAMP_FORMAT: Final[str] = "%Y-%m-%dT%H:%M:%S.%fZ"


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=pytz.UTC)
    return value.astimezone(pytz.UTC).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str) -> datetime:
    return datetime.strptime(value, TIMESTAMP_FORMAT).replace(tzinfo=pytz.UTC)


class SQLiteKudosStore:
    """SQLite-based append-only kudos log."""

    def __init__(self, db_path: str) -> None:
        """Initialize store and ensure schema.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path

        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        self._create_schema()

    def _get_connection(self) -> sqlite3.Connection:
        """Get database connection.

        Returns:
            SQLite connection
        """
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _create_schema(self) -> None:
        """Create database schema if not exists."""
        logger.info("sqlite_schema_creation_started", db_path=str(self.db_path))
        try:
            conn = self._get_connection()
            try:
                cursor = conn.cursor()
                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS kudos (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        timestamp TEXT NOT NULL,
                        sender_id TEXT NOT NULL,
                        recipient_ids TEXT NOT NULL,
                        message TEXT NOT NULL,
                        channel_id TEXT NOT NULL
                    )
                """
                )
                cursor.execute(
                    "CREATE INDEX IF NOT EXISTS idx_kudos_timestamp ON kudos(timestamp)"
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as exc:
            raise RepositoryError(f"Failed to create kudos schema: {exc}") from exc

    def append(self, event: KudosEvent) -> None:
        """Insert one kudos event.

        Args:
            event: Event to persist

        Raises:
            RepositoryError: On database errors
        """
        conn = self._get_connection()
        try:
            conn.execute(
                """
                INSERT INTO kudos (
                    timestamp, sender_id, recipient_ids, message, channel_id
                )
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    format_timestamp(event.timestamp),
                    event.sender_id,
                    json.dumps(list(event.recipient_ids)),
                    event.message,
                    event.channel_id,
                ),
            )
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise RepositoryError(f"Failed to record kudos: {exc}") from exc
        finally:
            conn.close()

    def query_recent_since(self, cutoff: datetime) -> list[KudosEvent]:
        """Get kudos sent at or after cutoff, newest first.

        Args:
            cutoff: Inclusive lower bound (UTC)

        Returns:
            List of events

        Raises:
            RepositoryError: On database errors
        """
        try:
            conn = self._get_connection()
            try:
                rows = conn.execute(
                    """
                    SELECT timestamp, sender_id, recipient_ids, message, channel_id
                    FROM kudos
                    WHERE timestamp >= ?
                    ORDER BY timestamp DESC, id DESC
                    """,
                    (format_timestamp(cutoff),),
                ).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as exc:
            raise RepositoryError(f"Failed to load kudos: {exc}") from exc

        return [self._row_to_event(row) for row in rows]

    def count(self) -> int:
        """Return total number of stored kudos."""
        try:
            conn = self._get_connection()
            try:
                row = conn.execute("SELECT COUNT(*) FROM kudos").fetchone()
            finally:
                conn.close()
        except sqlite3.Error as exc:
            raise RepositoryError(f"Failed to count kudos: {exc}") from exc
        return int(row[0]) if row else 0

    def _row_to_event(self, row: sqlite3.Row) -> KudosEvent:
        return KudosEvent(
            timestamp=parse_timestamp(row["timestamp"]),
            sender_id=row["sender_id"],
            recipient_ids=tuple(json.loads(row["recipient_ids"])),
            message=row["message"],
            channel_id=row["channel_id"],
        )
