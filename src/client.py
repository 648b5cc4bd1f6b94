"""Discord client for mediavault.

The client owns the gateway lifecycle and the connection state derived from
it. Everything else reads a ConnectionStatus snapshot, never the client's
internals. All filtering is deferred to the core capture pipeline.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

import discord
from dotenv import load_dotenv

from adapters.discord_channel import DiscordBackupChannel
from adapters.discord_mapper import build_event
from core.capture import CapturePipeline
from core.connection import ConnectionTracker
from core.models import ConnectionStatus

LOGGER = logging.getLogger(__name__)


class ArchiveClient(discord.Client):
    """discord.Client that feeds messages to the capture pipeline."""

    def __init__(self, pipeline: Optional[CapturePipeline] = None, *, intents: discord.Intents) -> None:
        super().__init__(intents=intents)
        self._pipeline = pipeline
        self._status_tracker = ConnectionTracker()

    def connection_status(self) -> ConnectionStatus:
        return self._status_tracker.snapshot()

    async def resolve_channel(self, channel_id: str) -> Optional[DiscordBackupChannel]:
        """Return a postable wrapper for a text channel, or None."""

        try:
            snowflake = int(channel_id)
        except (TypeError, ValueError):
            return None

        channel = self.get_channel(snowflake)
        if channel is None:
            try:
                channel = await self.fetch_channel(snowflake)
            except (discord.NotFound, discord.Forbidden, discord.InvalidData):
                return None
        if not isinstance(channel, discord.TextChannel):
            return None
        return DiscordBackupChannel(channel)

    async def on_ready(self) -> None:
        account_name = self.user.name if self.user else None
        self._status_tracker.mark_connected(account_name)
        LOGGER.info("Discord bot logged in as %s (%s guilds)", self.user, len(self.guilds))

    async def on_resumed(self) -> None:
        account_name = self.user.name if self.user else None
        self._status_tracker.mark_connected(account_name)
        LOGGER.info("Discord session resumed")

    async def on_disconnect(self) -> None:
        # discord.py reconnects on its own; we only track the state.
        self._status_tracker.mark_disconnected()
        LOGGER.warning("Discord bot disconnected")

    async def on_message(self, message: discord.Message) -> None:
        if self._pipeline is None:
            return
        try:
            event = build_event(message)
        except Exception:
            LOGGER.exception("Error while mapping message %s", getattr(message, "id", "<unknown>"))
            return
        self._pipeline.capture(event)


def build_intents() -> discord.Intents:
    intents = discord.Intents.default()
    intents.guilds = True
    intents.guild_messages = True
    intents.message_content = True  # Privileged; enable it in the developer portal.
    return intents


def build_client(pipeline: Optional[CapturePipeline] = None) -> ArchiveClient:
    """Create the Discord client with the intents the archive needs."""

    logging.getLogger(__name__).info("Initializing Discord client")
    return ArchiveClient(pipeline, intents=build_intents())


def bot_token() -> str:
    """Read DISCORD_BOT_TOKEN via python-dotenv to keep secrets out of the repo."""

    load_dotenv()
    token = os.getenv("DISCORD_BOT_TOKEN")
    # Fail fast on a missing token to avoid an ambiguous gateway error.
    if not token:
        raise RuntimeError("Missing DISCORD_BOT_TOKEN in environment")
    return token
