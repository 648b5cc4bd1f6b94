from __future__ import annotations

import logging

import pytest

from log_setup import MASK, SecretMaskingFormatter, configure_logging, secret_values


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def _record(message: str) -> logging.LogRecord:
    return logging.LogRecord("client", logging.INFO, __file__, 1, message, None, None)


def test_formatter_masks_every_secret() -> None:
    formatter = SecretMaskingFormatter(["tok-123", "hunter2", ""])

    line = formatter.format(_record("login with tok-123 and hunter2"))

    assert "tok-123" not in line
    assert "hunter2" not in line
    assert line.endswith(f"login with {MASK} and {MASK}")


def test_formatter_masks_longest_secret_whole() -> None:
    formatter = SecretMaskingFormatter(["abc", "abcdef"])
    assert formatter.format(_record("key=abcdef")).endswith(f"key={MASK}")


def test_secret_values_skips_unset_names() -> None:
    environ = {"DISCORD_BOT_TOKEN": "tok-123", "SITE_PASSWORD": ""}

    values = secret_values(["DISCORD_BOT_TOKEN", "SITE_PASSWORD", "SESSION_SECRET"], environ)

    assert values == ["tok-123"]


def test_file_handler_writes_masked_lines(tmp_path, restore_root_logger) -> None:
    path = tmp_path / "logs" / "mediavault.log"

    handlers = configure_logging(logging.INFO, ["tok-123"], console=False, file_path=str(path))
    logging.getLogger("client").info("connecting with tok-123")
    for handler in handlers:
        handler.flush()

    text = path.read_text(encoding="utf-8")
    assert "tok-123" not in text
    assert f"connecting with {MASK}" in text


def test_no_handlers_leaves_root_untouched(restore_root_logger) -> None:
    before = logging.getLogger().handlers[:]
    assert configure_logging(logging.INFO, [], console=False) == []
    assert logging.getLogger().handlers == before
