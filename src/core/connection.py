"""Connection state owned by the chat client lifecycle."""

from __future__ import annotations

from typing import Optional

from core.models import ConnectionStatus


class ConnectionTracker:
    """Mutable connection state with immutable snapshots for readers.

    Only the component that drives the gateway lifecycle calls the mark_*
    methods; everybody else reads a ConnectionStatus value.
    """

    def __init__(self) -> None:
        self._status = ConnectionStatus(connected=False)

    def mark_connected(self, account_name: Optional[str]) -> None:
        self._status = ConnectionStatus(connected=True, account_name=account_name)

    def mark_disconnected(self) -> None:
        # Keep the last known account name so the dashboard can still label it.
        self._status = ConnectionStatus(connected=False, account_name=self._status.account_name)

    def snapshot(self) -> ConnectionStatus:
        return self._status
