from __future__ import annotations

from datetime import datetime, timedelta, timezone

from core.models import InboundEvent, WatchConfig
from core.watch_filter import should_capture


def _event(
    *,
    channel_id: str = "C1",
    author_id: str = "U1",
    content: str = "hello",
    attachment_urls: tuple = (),
    author_is_bot: bool = False,
) -> InboundEvent:
    return InboundEvent(
        external_message_id="m1",
        content=content,
        author_id=author_id,
        author_username="alice",
        author_avatar=None,
        channel_id=channel_id,
        channel_name="media",
        server_id="S1",
        server_name="Server",
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        attachment_urls=attachment_urls,
        author_is_bot=author_is_bot,
    )


def _config(*, config_id: str = "w1", created_at: datetime | None = None, **overrides) -> WatchConfig:
    fields = dict(
        server_id="S1",
        server_name="Server",
        channel_id="C1",
        channel_name="media",
        monitor_user_id="U1",
        id=config_id,
        created_at=created_at or datetime(2024, 1, 1, tzinfo=timezone.utc),
    )
    fields.update(overrides)
    return WatchConfig(**fields)


def test_matching_event_returns_config() -> None:
    config = _config()
    assert should_capture(_event(), [config]) == config


def test_bot_author_is_never_captured() -> None:
    assert should_capture(_event(author_is_bot=True), [_config()]) is None


def test_author_mismatch_is_dropped() -> None:
    assert should_capture(_event(author_id="U2"), [_config()]) is None


def test_channel_mismatch_is_dropped() -> None:
    assert should_capture(_event(channel_id="C2"), [_config()]) is None


def test_empty_event_without_attachments_is_dropped() -> None:
    assert should_capture(_event(content=""), [_config()]) is None


def test_whitespace_only_content_is_captured() -> None:
    assert should_capture(_event(content="   "), [_config()]) is not None


def test_attachment_only_event_is_captured() -> None:
    event = _event(content="", attachment_urls=("https://cdn.example/a.png",))
    assert should_capture(event, [_config()]) is not None


def test_inactive_config_is_ignored() -> None:
    assert should_capture(_event(), [_config(is_active=False)]) is None


def test_earliest_created_config_wins_regardless_of_order() -> None:
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    newer = _config(config_id="newer", created_at=base + timedelta(days=1))
    older = _config(config_id="older", created_at=base)

    assert should_capture(_event(), [newer, older]).id == "older"
    assert should_capture(_event(), [older, newer]).id == "older"


def test_same_created_at_falls_back_to_id() -> None:
    first = _config(config_id="a")
    second = _config(config_id="b")
    assert should_capture(_event(), [second, first]).id == "a"
