"""Weekly digest schedule built on discord.ext.tasks."""

from __future__ import annotations

from datetime import datetime, time
import logging
from typing import Optional

from discord.ext import tasks

from core.config import WEEKDAYS, DigestSchedule
from core.digest import DigestPublisher

LOGGER = logging.getLogger(__name__)


class WeeklyDigestScheduler:
    """Fire daily at the configured time and run the digest on one weekday.

    tasks.loop has no weekday support, so the loop ticks every day and skips
    the days that do not match.
    """

    def __init__(self, publisher: DigestPublisher, schedule: DigestSchedule) -> None:
        self._publisher = publisher
        self._schedule = schedule
        fire_at = time(schedule.at.hour, schedule.at.minute, tzinfo=schedule.timezone)
        self._loop = tasks.loop(time=fire_at)(self._tick)

    def is_due(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(self._schedule.timezone)
        return now.astimezone(self._schedule.timezone).weekday() == self._schedule.weekday

    async def _tick(self) -> None:
        if not self.is_due():
            return
        LOGGER.info("Running weekly digest")
        result = await self._publisher.run()
        if result.success:
            LOGGER.info("Weekly digest finished: %s messages", result.message_count)
        else:
            LOGGER.warning("Weekly digest failed: %s", result.error)

    def start(self) -> None:
        """Start the loop; must be called from a running event loop."""

        if not self._schedule.enabled:
            LOGGER.info("Weekly digest disabled")
            return
        self._loop.start()
        LOGGER.info(
            "Weekly digest scheduled for every %s at %s (%s)",
            WEEKDAYS[self._schedule.weekday].capitalize(),
            self._schedule.at.strftime("%H:%M"),
            self._schedule.timezone,
        )

    def stop(self) -> None:
        if self._loop.is_running():
            self._loop.cancel()
