"""Discord-to-core message mapping adapter.

This keeps discord.py-specific details out of the core pipeline.
"""

from __future__ import annotations

from typing import Optional

import discord

from core.models import InboundEvent

UNKNOWN_CHANNEL = "unknown"
UNKNOWN_SERVER = "Unknown Server"


def _avatar_url(author) -> Optional[str]:
    avatar = getattr(author, "display_avatar", None)
    url = getattr(avatar, "url", None)
    return str(url) if url else None


def build_event(message: discord.Message) -> InboundEvent:
    """Build a core InboundEvent from a discord.py Message."""

    author = message.author
    channel = message.channel
    guild = message.guild

    # Snowflakes are ints in discord.py; the store keeps them as strings.
    return InboundEvent(
        external_message_id=str(message.id),
        content=message.content or "",
        author_id=str(author.id),
        author_username=author.name,
        author_avatar=_avatar_url(author),
        channel_id=str(channel.id),
        channel_name=getattr(channel, "name", None) or UNKNOWN_CHANNEL,
        server_id=str(guild.id) if guild else "",
        server_name=guild.name if guild else UNKNOWN_SERVER,
        created_at=message.created_at,
        attachment_urls=tuple(attachment.url for attachment in message.attachments),
        author_is_bot=bool(getattr(author, "bot", False)),
    )
