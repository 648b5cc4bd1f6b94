from __future__ import annotations

from datetime import datetime, timezone

from adapters.discord_mapper import UNKNOWN_SERVER, build_event


class DummyAsset:
    def __init__(self, url: str) -> None:
        self.url = url


class DummyAuthor:
    def __init__(self, author_id: int, name: str, bot: bool = False) -> None:
        self.id = author_id
        self.name = name
        self.bot = bot
        self.display_avatar = DummyAsset(f"https://cdn.example/avatars/{author_id}.png")


class DummyChannel:
    def __init__(self, channel_id: int, name: "str | None" = "media") -> None:
        self.id = channel_id
        self.name = name


class DummyGuild:
    def __init__(self, guild_id: int, name: str) -> None:
        self.id = guild_id
        self.name = name


class DummyAttachment:
    def __init__(self, url: str) -> None:
        self.url = url


class DummyMessage:
    def __init__(
        self,
        *,
        message_id: int = 1001,
        content: str = "hello",
        author: "DummyAuthor | None" = None,
        channel: "DummyChannel | None" = None,
        guild: "DummyGuild | None" = None,
        attachments: "list[DummyAttachment] | None" = None,
    ) -> None:
        self.id = message_id
        self.content = content
        self.author = author or DummyAuthor(42, "alice")
        self.channel = channel or DummyChannel(7)
        self.guild = guild
        self.attachments = attachments or []
        self.created_at = datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_build_event_stringifies_snowflakes() -> None:
    message = DummyMessage(guild=DummyGuild(9, "Server"))

    event = build_event(message)

    assert event.external_message_id == "1001"
    assert event.author_id == "42"
    assert event.channel_id == "7"
    assert event.server_id == "9"
    assert event.server_name == "Server"
    assert event.author_avatar == "https://cdn.example/avatars/42.png"
    assert event.has_attachments is False


def test_build_event_keeps_attachment_order() -> None:
    message = DummyMessage(
        attachments=[DummyAttachment("https://cdn.example/2.png"), DummyAttachment("https://cdn.example/1.png")]
    )

    event = build_event(message)

    assert event.attachment_urls == ("https://cdn.example/2.png", "https://cdn.example/1.png")
    assert event.has_attachments is True


def test_build_event_without_guild_or_channel_name() -> None:
    message = DummyMessage(channel=DummyChannel(7, name=None), content=None)

    event = build_event(message)

    assert event.server_id == ""
    assert event.server_name == UNKNOWN_SERVER
    assert event.channel_name == "unknown"
    assert event.content == ""


def test_build_event_flags_bot_authors() -> None:
    event = build_event(DummyMessage(author=DummyAuthor(5, "helper", bot=True)))
    assert event.author_is_bot is True
