"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for storage and chat adapters so that the
core can be reused with different backends.
"""

from __future__ import annotations

from typing import List, Optional, Protocol

from core.models import BackupRecord, CapturedMessage, ConnectionStatus, WatchConfig


class StoragePort(Protocol):
    """Storage operations required by the capture and digest pipelines."""

    def list_active_configs(self) -> List[WatchConfig]:
        ...

    def get_message_by_external_id(self, external_message_id: str) -> Optional[CapturedMessage]:
        ...

    def save_message(self, message: CapturedMessage) -> bool:
        ...

    def list_messages(self) -> List[CapturedMessage]:
        ...

    def save_backup(self, record: BackupRecord) -> None:
        ...


class BackupChannelPort(Protocol):
    """A resolved, postable destination channel."""

    @property
    def channel_id(self) -> str:
        ...

    async def post(self, text: str) -> None:
        ...


class ChatSourcePort(Protocol):
    """Chat client operations required by the digest publisher."""

    def connection_status(self) -> ConnectionStatus:
        ...

    async def resolve_channel(self, channel_id: str) -> Optional[BackupChannelPort]:
        ...
