"""Digest publication (core domain).

A digest run reads every captured message, posts a summary plus one post per
calendar day of media into the backup channel, and records the outcome.

Failure recording is asymmetric: problems found before a backup
channel is resolved (offline bot, nothing configured, bad channel) return a
failed DigestResult without a BackupRecord. Once a channel is resolved,
every run ends with exactly one BackupRecord, completed or failed.
"""

from __future__ import annotations

import asyncio
from collections import OrderedDict
from datetime import date, datetime, timezone
import logging
from typing import Iterable, List, Optional

from core.config import DigestConfig
from core.models import BackupRecord, BackupStatus, CapturedMessage, DigestResult, WatchConfig
from core.ports import ChatSourcePort, StoragePort

LOGGER = logging.getLogger(__name__)

ERROR_ALREADY_RUNNING = "Digest already running"
ERROR_NOT_CONNECTED = "Bot not connected"
ERROR_NO_BACKUP_CHANNEL = "No backup channel configured"
ERROR_INVALID_CHANNEL = "Invalid backup channel"

SUMMARY_TITLE = "Weekly Media Archive Backup"
NO_CAPTION = "(no caption)"


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps are stored as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def select_backup_config(configs: Iterable[WatchConfig]) -> Optional[WatchConfig]:
    """Return the first active config that names a backup channel."""

    for config in configs:
        if config.is_active and config.backup_channel_id:
            return config
    return None


def group_by_date(messages: Iterable[CapturedMessage]) -> "OrderedDict[date, List[CapturedMessage]]":
    """Group media messages by UTC calendar day, in ascending date order.

    Messages without attachment URLs are skipped. Inside a day, messages are
    ordered by timestamp and then by external id.
    """

    buckets: dict[date, List[CapturedMessage]] = {}
    for message in messages:
        if not message.has_attachments or not message.attachment_urls:
            continue
        buckets.setdefault(_as_utc(message.timestamp).date(), []).append(message)

    grouped: "OrderedDict[date, List[CapturedMessage]]" = OrderedDict()
    for day in sorted(buckets):
        grouped[day] = sorted(
            buckets[day],
            key=lambda m: (_as_utc(m.timestamp), m.external_message_id),
        )
    return grouped


def format_summary(messages: List[CapturedMessage]) -> str:
    with_media = sum(1 for message in messages if message.has_attachments)
    lines = [
        f"**{SUMMARY_TITLE}**",
        f"Backup completed with **{len(messages)}** total items archived.",
        "",
        f"**Total items:** {len(messages)}",
        f"**With media:** {with_media}",
    ]
    return "\n".join(lines)


def format_date_group(day: date, messages: List[CapturedMessage], config: DigestConfig) -> str:
    """Render one day of media, capped by count and by characters."""

    parts = [f"**Media from {day.isoformat()}**\n\n"]
    for message in messages[: config.max_messages_per_group]:
        urls = "\n".join(message.attachment_urls or [])
        parts.append(
            f"**{message.author_username}** in #{message.channel_name}:\n"
            f"{message.content or NO_CAPTION}\n"
            f"{urls}\n\n"
        )
    return "".join(parts)[: config.max_post_chars]


class DigestPublisher:
    """Posts the media digest into the configured backup channel."""

    def __init__(
        self,
        storage: StoragePort,
        chat_source: ChatSourcePort,
        config: Optional[DigestConfig] = None,
    ) -> None:
        self._storage = storage
        self._chat_source = chat_source
        self._config = config or DigestConfig()
        self._lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    async def run(self) -> DigestResult:
        """Run one digest; overlapping calls are rejected, not queued."""

        if self._lock.locked():
            LOGGER.warning("Digest requested while another run is in progress")
            return DigestResult(success=False, error=ERROR_ALREADY_RUNNING)

        async with self._lock:
            return await self._run()

    async def _run(self) -> DigestResult:
        status = self._chat_source.connection_status()
        if not status.connected:
            LOGGER.info("Bot not connected, skipping digest")
            return DigestResult(success=False, error=ERROR_NOT_CONNECTED)

        try:
            configs = self._storage.list_active_configs()
            messages = self._storage.list_messages()
        except Exception as exc:
            LOGGER.exception("Failed to load digest inputs")
            return DigestResult(success=False, error=str(exc))

        if not messages:
            LOGGER.info("No messages to back up")
            return DigestResult(success=True, message_count=0)

        backup_config = select_backup_config(configs)
        if backup_config is None:
            LOGGER.info("No backup channel configured")
            return DigestResult(success=False, error=ERROR_NO_BACKUP_CHANNEL)

        channel_id = str(backup_config.backup_channel_id)
        try:
            channel = await self._chat_source.resolve_channel(channel_id)
        except Exception:
            LOGGER.exception("Failed to resolve backup channel %s", channel_id)
            channel = None
        if channel is None:
            LOGGER.info("Backup channel %s not found or not a text channel", channel_id)
            return DigestResult(success=False, error=ERROR_INVALID_CHANNEL)

        try:
            await self._publish(channel, messages)
            self._storage.save_backup(
                BackupRecord(
                    message_count=len(messages),
                    backup_date=datetime.now(timezone.utc),
                    channel_id=channel_id,
                    status=BackupStatus.COMPLETED,
                )
            )
        except Exception as exc:
            LOGGER.exception("Digest failed")
            self._record_failure(channel_id)
            return DigestResult(success=False, error=str(exc))

        LOGGER.info("Digest completed: %s messages", len(messages))
        return DigestResult(success=True, message_count=len(messages))

    async def _publish(self, channel, messages: List[CapturedMessage]) -> None:
        await channel.post(format_summary(messages))

        for index, (day, day_messages) in enumerate(group_by_date(messages).items()):
            # Bounded pause between group posts for the platform rate limits.
            if index:
                await asyncio.sleep(self._config.post_delay_seconds)
            await channel.post(format_date_group(day, day_messages, self._config))

    def _record_failure(self, channel_id: str) -> None:
        try:
            self._storage.save_backup(
                BackupRecord(
                    message_count=0,
                    backup_date=datetime.now(timezone.utc),
                    channel_id=channel_id,
                    status=BackupStatus.FAILED,
                )
            )
        except Exception:
            LOGGER.exception("Failed to record failed digest for channel %s", channel_id)
