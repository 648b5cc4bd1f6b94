"""Logging setup for mediavault.

Every handler shares one formatter that masks the values of the secret
environment variables (bot token, dashboard password, session secret) so
they never reach the console or the log file.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Iterable, Mapping, Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MASK = "***"


class SecretMaskingFormatter(logging.Formatter):
    def __init__(self, secrets: Iterable[str]) -> None:
        super().__init__(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
        # Longest first so a secret containing another is masked whole.
        self._secrets = sorted({secret for secret in secrets if secret}, key=len, reverse=True)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, MASK)
        return message


def secret_values(env_names: Iterable[str], environ: Optional[Mapping[str, str]] = None) -> list[str]:
    """Current values of the named environment variables, unset ones skipped."""

    environ = os.environ if environ is None else environ
    return [environ[name] for name in env_names if environ.get(name)]


def _file_handler(path: str, max_bytes: int, backup_count: int) -> logging.Handler:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    return RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")


def configure_logging(
    level: int,
    secrets: Iterable[str],
    console: bool = True,
    file_path: Optional[str] = None,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 5,
) -> list[logging.Handler]:
    """Install the masking handlers on the root logger and return them."""

    handlers: list[logging.Handler] = []
    if console:
        handlers.append(logging.StreamHandler())
    if file_path:
        handlers.append(_file_handler(file_path, max_bytes, backup_count))
    if not handlers:
        return handlers

    formatter = SecretMaskingFormatter(secrets)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)
    return handlers
