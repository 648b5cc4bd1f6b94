from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import discord

from adapters.discord_channel import DiscordBackupChannel
from client import ArchiveClient


class RecordingPipeline:
    def __init__(self) -> None:
        self.events = []

    def capture(self, event):
        self.events.append(event)
        return None


class DummyAuthor:
    id = 42
    name = "alice"
    bot = False
    display_avatar = None


class DummyChannel:
    id = 7
    name = "media"


class DummyMessage:
    id = 1001
    content = "hello"
    author = DummyAuthor()
    channel = DummyChannel()
    guild = None
    attachments: list = []
    created_at = datetime(2024, 1, 1, tzinfo=timezone.utc)


class BrokenMessage:
    id = 1002

    @property
    def author(self):
        raise AttributeError("partial message")


class FakeTextChannel:
    id = 555

    def __init__(self) -> None:
        self.sent = []

    async def send(self, *, embed: discord.Embed) -> None:
        self.sent.append(embed)


def test_on_message_forwards_mapped_event() -> None:
    pipeline = RecordingPipeline()
    client = ArchiveClient(pipeline, intents=discord.Intents.none())

    asyncio.run(client.on_message(DummyMessage()))

    assert len(pipeline.events) == 1
    assert pipeline.events[0].external_message_id == "1001"
    assert pipeline.events[0].author_avatar is None


def test_on_message_survives_malformed_message() -> None:
    pipeline = RecordingPipeline()
    client = ArchiveClient(pipeline, intents=discord.Intents.none())

    asyncio.run(client.on_message(BrokenMessage()))

    assert pipeline.events == []


def test_new_client_reports_disconnected() -> None:
    client = ArchiveClient(intents=discord.Intents.none())
    assert client.connection_status().connected is False


def test_resolve_channel_rejects_non_numeric_id() -> None:
    client = ArchiveClient(intents=discord.Intents.none())
    assert asyncio.run(client.resolve_channel("not-a-snowflake")) is None


def test_backup_channel_posts_embed() -> None:
    channel = FakeTextChannel()
    backup = DiscordBackupChannel(channel)

    asyncio.run(backup.post("**Media from 2024-01-01**"))

    assert backup.channel_id == "555"
    assert channel.sent[0].description == "**Media from 2024-01-01**"
