"""Watch matching logic (core domain)."""

from __future__ import annotations

from typing import Iterable, Optional

from core.models import InboundEvent, WatchConfig


def watch_sort_key(config: WatchConfig) -> tuple:
    """Tie-break order for overlapping watches: oldest first, then by id."""

    return (config.created_at, config.id)


def should_capture(event: InboundEvent, active_configs: Iterable[WatchConfig]) -> Optional[WatchConfig]:
    """Return the watch config that claims this event, or None.

    Matching logic:
    - Bot-authored events never match.
    - A config matches when its channel and monitored author equal the
      event's channel and author.
    - If several configs match, the earliest created one wins regardless of
      the order they were passed in.
    - Events with no attachments and empty content are never captured.
    """

    if event.author_is_bot:
        return None

    candidates = [
        config
        for config in active_configs
        if config.is_active
        and config.channel_id == event.channel_id
        and config.monitor_user_id == event.author_id
    ]
    if not candidates:
        return None

    if not event.has_attachments and not event.content:
        return None

    return min(candidates, key=watch_sort_key)
