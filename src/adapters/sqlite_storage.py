"""SQLite storage adapter.

Implements the core StoragePort, plus the CRUD surface the HTTP API needs,
using a simple SQLite database.
"""

from __future__ import annotations

from datetime import datetime, timezone
import json
import sqlite3
from typing import Any, List, Optional

from core.models import BackupRecord, CapturedMessage, WatchConfig

# Columns the API may change on an existing watch config.
UPDATABLE_CONFIG_FIELDS = (
    "server_id",
    "server_name",
    "channel_id",
    "channel_name",
    "backup_channel_id",
    "backup_channel_name",
    "monitor_user_id",
    "is_active",
)


def _to_db_time(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _from_db_time(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_attachment_urls(raw: Optional[str]) -> Optional[List[str]]:
    if not raw:
        return None
    try:
        urls = json.loads(raw)
    except ValueError:
        return None
    return [str(url) for url in urls] if isinstance(urls, list) else None


def _row_to_config(row: sqlite3.Row) -> WatchConfig:
    return WatchConfig(
        id=row["id"],
        server_id=row["server_id"],
        server_name=row["server_name"],
        channel_id=row["channel_id"],
        channel_name=row["channel_name"],
        backup_channel_id=row["backup_channel_id"],
        backup_channel_name=row["backup_channel_name"],
        monitor_user_id=row["monitor_user_id"],
        is_active=bool(row["is_active"]),
        created_at=_from_db_time(row["created_at"]),
    )


def _row_to_message(row: sqlite3.Row) -> CapturedMessage:
    return CapturedMessage(
        id=row["id"],
        external_message_id=row["external_message_id"],
        content=row["content"],
        author_id=row["author_id"],
        author_username=row["author_username"],
        author_avatar=row["author_avatar"],
        channel_id=row["channel_id"],
        channel_name=row["channel_name"],
        server_id=row["server_id"],
        server_name=row["server_name"],
        timestamp=_from_db_time(row["timestamp"]),
        has_attachments=bool(row["has_attachments"]),
        attachment_urls=_parse_attachment_urls(row["attachment_urls"]),
        created_at=_from_db_time(row["created_at"]),
    )


def _row_to_backup(row: sqlite3.Row) -> BackupRecord:
    return BackupRecord(
        id=row["id"],
        message_count=int(row["message_count"]),
        backup_date=_from_db_time(row["backup_date"]),
        channel_id=row["channel_id"],
        status=row["status"],
        created_at=_from_db_time(row["created_at"]),
    )


class SQLiteStorage:
    """Thin SQLite wrapper that satisfies the StoragePort contract."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create tables if they do not exist.

        Tables:
        - messages: captured chat messages, unique per external message id
        - watch_configs: channel/author pairs to archive
        - backups: one row per digest run that reached a backup channel
        """

        with self._connect() as conn:
            # WAL lets the API read while the bot writes captures.
            conn.execute("PRAGMA journal_mode=WAL")
            # messages is append-only from the bot's side; the API may delete.
            # Fields:
            # - external_message_id: Discord message id, the dedup key (UNIQUE)
            # - timestamp: original message time (UTC ISO-8601)
            # - attachment_urls: JSON array of URLs or NULL
            # - created_at: capture time (UTC ISO-8601)
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS messages (
                    id TEXT PRIMARY KEY,
                    external_message_id TEXT NOT NULL UNIQUE,
                    content TEXT NOT NULL,
                    author_id TEXT NOT NULL,
                    author_username TEXT NOT NULL,
                    author_avatar TEXT,
                    channel_id TEXT NOT NULL,
                    channel_name TEXT NOT NULL,
                    server_id TEXT NOT NULL,
                    server_name TEXT NOT NULL,
                    timestamp TIMESTAMP NOT NULL,
                    has_attachments INTEGER NOT NULL DEFAULT 0,
                    attachment_urls TEXT,
                    created_at TIMESTAMP NOT NULL
                )
                """
            )
            # watch_configs is edited only through the API; the pipeline reads it.
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS watch_configs (
                    id TEXT PRIMARY KEY,
                    server_id TEXT NOT NULL,
                    server_name TEXT NOT NULL,
                    channel_id TEXT NOT NULL,
                    channel_name TEXT NOT NULL,
                    backup_channel_id TEXT,
                    backup_channel_name TEXT,
                    monitor_user_id TEXT NOT NULL,
                    is_active INTEGER NOT NULL DEFAULT 1,
                    created_at TIMESTAMP NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS backups (
                    id TEXT PRIMARY KEY,
                    message_count INTEGER NOT NULL,
                    backup_date TIMESTAMP NOT NULL,
                    channel_id TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'completed',
                    created_at TIMESTAMP NOT NULL
                )
                """
            )

    # Messages

    def list_messages(self) -> List[CapturedMessage]:
        """Return all captured messages, newest first."""

        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM messages ORDER BY timestamp DESC, external_message_id DESC"
            ).fetchall()
        return [_row_to_message(row) for row in rows]

    def get_message(self, message_id: str) -> Optional[CapturedMessage]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM messages WHERE id = ?", (message_id,)).fetchone()
        return _row_to_message(row) if row else None

    def get_message_by_external_id(self, external_message_id: str) -> Optional[CapturedMessage]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM messages WHERE external_message_id = ?",
                (external_message_id,),
            ).fetchone()
        return _row_to_message(row) if row else None

    def save_message(self, message: CapturedMessage) -> bool:
        """Insert a message; return False if the external id already exists."""

        attachment_urls = json.dumps(message.attachment_urls) if message.attachment_urls else None
        with self._connect() as conn:
            cur = conn.execute(
                """
                INSERT INTO messages (
                    id,
                    external_message_id,
                    content,
                    author_id,
                    author_username,
                    author_avatar,
                    channel_id,
                    channel_name,
                    server_id,
                    server_name,
                    timestamp,
                    has_attachments,
                    attachment_urls,
                    created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(external_message_id) DO NOTHING
                """,
                (
                    message.id,
                    message.external_message_id,
                    message.content,
                    message.author_id,
                    message.author_username,
                    message.author_avatar,
                    message.channel_id,
                    message.channel_name,
                    message.server_id,
                    message.server_name,
                    _to_db_time(message.timestamp),
                    int(message.has_attachments),
                    attachment_urls,
                    _to_db_time(message.created_at),
                ),
            )
            return cur.rowcount > 0

    def delete_message(self, message_id: str) -> bool:
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM messages WHERE id = ?", (message_id,))
            return cur.rowcount > 0

    # Watch configs

    def list_configs(self) -> List[WatchConfig]:
        """Return all watch configs, newest first."""

        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM watch_configs ORDER BY created_at DESC, id DESC"
            ).fetchall()
        return [_row_to_config(row) for row in rows]

    def list_active_configs(self) -> List[WatchConfig]:
        """Return active watch configs, oldest first (the tie-break order)."""

        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM watch_configs WHERE is_active = 1 ORDER BY created_at ASC, id ASC"
            ).fetchall()
        return [_row_to_config(row) for row in rows]

    def get_config(self, config_id: str) -> Optional[WatchConfig]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM watch_configs WHERE id = ?", (config_id,)).fetchone()
        return _row_to_config(row) if row else None

    def save_config(self, config: WatchConfig) -> WatchConfig:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO watch_configs (
                    id,
                    server_id,
                    server_name,
                    channel_id,
                    channel_name,
                    backup_channel_id,
                    backup_channel_name,
                    monitor_user_id,
                    is_active,
                    created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    config.id,
                    config.server_id,
                    config.server_name,
                    config.channel_id,
                    config.channel_name,
                    config.backup_channel_id,
                    config.backup_channel_name,
                    config.monitor_user_id,
                    int(config.is_active),
                    _to_db_time(config.created_at),
                ),
            )
        return config

    def update_config(self, config_id: str, updates: dict[str, Any]) -> Optional[WatchConfig]:
        """Apply a partial update and return the new row, or None if missing."""

        unknown = set(updates) - set(UPDATABLE_CONFIG_FIELDS)
        if unknown:
            raise ValueError(f"Unsupported config fields: {', '.join(sorted(unknown))}")

        if updates:
            columns = [name for name in UPDATABLE_CONFIG_FIELDS if name in updates]
            values = [
                int(updates[name]) if name == "is_active" else updates[name]
                for name in columns
            ]
            assignments = ", ".join(f"{name} = ?" for name in columns)
            with self._connect() as conn:
                conn.execute(
                    f"UPDATE watch_configs SET {assignments} WHERE id = ?",
                    (*values, config_id),
                )
        return self.get_config(config_id)

    def delete_config(self, config_id: str) -> bool:
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM watch_configs WHERE id = ?", (config_id,))
            return cur.rowcount > 0

    # Backups

    def list_backups(self) -> List[BackupRecord]:
        """Return backup records, newest run first."""

        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM backups ORDER BY backup_date DESC, created_at DESC"
            ).fetchall()
        return [_row_to_backup(row) for row in rows]

    def get_backup(self, backup_id: str) -> Optional[BackupRecord]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM backups WHERE id = ?", (backup_id,)).fetchone()
        return _row_to_backup(row) if row else None

    def save_backup(self, record: BackupRecord) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO backups (id, message_count, backup_date, channel_id, status, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    record.id,
                    record.message_count,
                    _to_db_time(record.backup_date),
                    record.channel_id,
                    record.status,
                    _to_db_time(record.created_at),
                ),
            )
