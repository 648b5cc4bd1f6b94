"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Tuple
import uuid


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BackupStatus:
    """Allowed values for BackupRecord.status."""

    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class InboundEvent:
    """Minimal chat event used by the capture pipeline."""

    external_message_id: str
    content: str
    author_id: str
    author_username: str
    author_avatar: Optional[str]
    channel_id: str
    channel_name: str
    server_id: str
    server_name: str
    created_at: datetime
    attachment_urls: Tuple[str, ...] = ()
    author_is_bot: bool = False

    @property
    def has_attachments(self) -> bool:
        return len(self.attachment_urls) > 0


@dataclass(frozen=True)
class WatchConfig:
    """One channel/author pair whose messages are archived."""

    server_id: str
    server_name: str
    channel_id: str
    channel_name: str
    monitor_user_id: str
    backup_channel_id: Optional[str] = None
    backup_channel_name: Optional[str] = None
    is_active: bool = True
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class CapturedMessage:
    """Persisted representation of a single archived chat message."""

    external_message_id: str
    content: str
    author_id: str
    author_username: str
    author_avatar: Optional[str]
    channel_id: str
    channel_name: str
    server_id: str
    server_name: str
    timestamp: datetime
    has_attachments: bool
    attachment_urls: Optional[List[str]]
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class BackupRecord:
    """Outcome of one digest run."""

    message_count: int
    backup_date: datetime
    channel_id: str
    status: str
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class DigestResult:
    success: bool
    message_count: Optional[int] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class ConnectionStatus:
    """Read-only snapshot of the chat client connection."""

    connected: bool
    account_name: Optional[str] = None
