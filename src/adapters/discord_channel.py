"""Discord backup channel adapter.

Wraps a resolved text channel so the digest publisher can post plain text
without knowing about embeds.
"""

from __future__ import annotations

import discord

# Discord caps embed descriptions at 4096 characters.
EMBED_DESCRIPTION_LIMIT = 4096
EMBED_COLOUR = 0x5865F2


class DiscordBackupChannel:
    """Backup channel adapter that posts each digest part as an embed."""

    def __init__(self, channel: discord.TextChannel) -> None:
        self._channel = channel

    @property
    def channel_id(self) -> str:
        return str(self._channel.id)

    async def post(self, text: str) -> None:
        """Send the text as the description of a timestamped embed."""

        embed = discord.Embed(
            description=text[:EMBED_DESCRIPTION_LIMIT],
            colour=EMBED_COLOUR,
            timestamp=discord.utils.utcnow(),
        )
        await self._channel.send(embed=embed)
