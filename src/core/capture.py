"""Core message capture pipeline.

This module is integration-agnostic. It only relies on the storage port, so
the same pipeline serves live gateway events and any future backfill source.

The pipeline enforces a strict order:
1) Match the event against active watches
2) Message-level idempotency on the external message id
3) Build the CapturedMessage
4) Persist it
"""

from __future__ import annotations

import logging
from typing import Optional

from core.models import CapturedMessage, InboundEvent
from core.ports import StoragePort
from core.watch_filter import should_capture

LOGGER = logging.getLogger(__name__)


class CapturePipeline:
    """Orchestrates watch matching, dedup, and persistence for inbound events."""

    def __init__(self, storage: StoragePort) -> None:
        self._storage = storage

    def capture(self, event: InboundEvent) -> Optional[CapturedMessage]:
        """Process one inbound event; never raises.

        Returns the stored message, or None when the event was dropped or
        failed. A failed event is logged and lost, the stream keeps going.
        """

        try:
            return self._capture(event)
        except Exception:
            LOGGER.exception(
                "Error while capturing message %s",
                getattr(event, "external_message_id", "<unknown>"),
            )
            return None

    def _capture(self, event: InboundEvent) -> Optional[CapturedMessage]:
        config = should_capture(event, self._storage.list_active_configs())
        if config is None:
            return None

        # Gateway redeliveries and restarts can replay the same message id.
        if self._storage.get_message_by_external_id(event.external_message_id) is not None:
            return None

        urls = list(event.attachment_urls)
        message = CapturedMessage(
            external_message_id=event.external_message_id,
            content=event.content or "",
            author_id=event.author_id,
            author_username=event.author_username,
            author_avatar=event.author_avatar,
            channel_id=event.channel_id,
            channel_name=event.channel_name,
            server_id=event.server_id,
            server_name=event.server_name,
            timestamp=event.created_at,
            has_attachments=len(urls) > 0,
            attachment_urls=urls or None,
        )

        # The store enforces uniqueness too, so a lost race is a silent no-op.
        if not self._storage.save_message(message):
            return None

        LOGGER.info(
            "Saved message from %s in #%s (watch %s)",
            message.author_username,
            message.channel_name,
            config.id,
        )
        return message
