from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from core.capture import CapturePipeline
from core.models import CapturedMessage, InboundEvent, WatchConfig


class FakeStorage:
    def __init__(self, configs: Optional[list[WatchConfig]] = None) -> None:
        self.configs = list(configs or [])
        self.saved: list[CapturedMessage] = []
        self.fail_reads = False

    def list_active_configs(self) -> list[WatchConfig]:
        if self.fail_reads:
            raise RuntimeError("database is locked")
        return [config for config in self.configs if config.is_active]

    def get_message_by_external_id(self, external_message_id: str) -> Optional[CapturedMessage]:
        for message in self.saved:
            if message.external_message_id == external_message_id:
                return message
        return None

    def save_message(self, message: CapturedMessage) -> bool:
        if self.get_message_by_external_id(message.external_message_id):
            return False
        self.saved.append(message)
        return True


def _watch() -> WatchConfig:
    return WatchConfig(
        server_id="S1",
        server_name="Server",
        channel_id="C1",
        channel_name="media",
        monitor_user_id="U1",
    )


def _event(
    *,
    message_id: str = "m1",
    author_id: str = "U1",
    content: str = "hello",
    attachment_urls: tuple = (),
    author_is_bot: bool = False,
) -> InboundEvent:
    return InboundEvent(
        external_message_id=message_id,
        content=content,
        author_id=author_id,
        author_username="alice",
        author_avatar="https://cdn.example/avatar.png",
        channel_id="C1",
        channel_name="media",
        server_id="S1",
        server_name="Server",
        created_at=datetime(2024, 3, 5, 12, 30, tzinfo=timezone.utc),
        attachment_urls=attachment_urls,
        author_is_bot=author_is_bot,
    )


def test_text_message_is_captured() -> None:
    storage = FakeStorage([_watch()])
    pipeline = CapturePipeline(storage)

    stored = pipeline.capture(_event())

    assert stored is not None
    assert len(storage.saved) == 1
    saved = storage.saved[0]
    assert saved.content == "hello"
    assert saved.has_attachments is False
    assert saved.attachment_urls is None
    assert saved.timestamp == datetime(2024, 3, 5, 12, 30, tzinfo=timezone.utc)


def test_attachments_are_kept_in_order() -> None:
    storage = FakeStorage([_watch()])
    pipeline = CapturePipeline(storage)
    urls = ("https://cdn.example/2.png", "https://cdn.example/1.png")

    pipeline.capture(_event(content="", attachment_urls=urls))

    saved = storage.saved[0]
    assert saved.has_attachments is True
    assert saved.attachment_urls == list(urls)
    assert saved.content == ""


def test_author_mismatch_is_not_captured() -> None:
    storage = FakeStorage([_watch()])
    CapturePipeline(storage).capture(_event(author_id="U2"))
    assert not storage.saved


def test_bot_messages_are_not_captured() -> None:
    storage = FakeStorage([_watch()])
    CapturePipeline(storage).capture(_event(author_is_bot=True))
    assert not storage.saved


def test_empty_message_is_not_captured() -> None:
    storage = FakeStorage([_watch()])
    CapturePipeline(storage).capture(_event(content=""))
    assert not storage.saved


def test_same_external_id_is_captured_once() -> None:
    storage = FakeStorage([_watch()])
    pipeline = CapturePipeline(storage)

    first = pipeline.capture(_event())
    second = pipeline.capture(_event(content="edited"))

    assert first is not None
    assert second is None
    assert len(storage.saved) == 1
    assert storage.saved[0].content == "hello"


def test_store_failure_is_swallowed() -> None:
    storage = FakeStorage([_watch()])
    storage.fail_reads = True
    pipeline = CapturePipeline(storage)

    assert pipeline.capture(_event()) is None

    # The next event still goes through once the store recovers.
    storage.fail_reads = False
    assert pipeline.capture(_event(message_id="m2")) is not None
    assert len(storage.saved) == 1
