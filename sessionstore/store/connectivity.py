"""
Connectivity state machine for the session store.

Tracks whether the store holds a usable repository handle and routes
backend failures either to a custom error handler or to "disconnect"
listeners. There is no automatic reconnection.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

CONNECT = "connect"
DISCONNECT = "disconnect"

Listener = Callable[..., None]


class ConnectionState(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class Connectivity:
    """Connected/Disconnected state plus lifecycle notifications."""

    def __init__(
        self,
        owner: Any,
        on_error: Optional[Callable[[Any, BaseException], None]] = None,
    ):
        self.owner = owner
        self.on_error = on_error
        self.state = ConnectionState.DISCONNECTED
        self._listeners: Dict[str, List[Listener]] = {CONNECT: [], DISCONNECT: []}

    @property
    def connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    def on(self, event: str, listener: Listener) -> None:
        """Subscribe to "connect" or "disconnect" """
        self._check_event(event)
        self._listeners[event].append(listener)

    def off(self, event: str, listener: Listener) -> None:
        self._check_event(event)
        if listener in self._listeners[event]:
            self._listeners[event].remove(listener)

    def emit(self, event: str, *args: Any) -> None:
        self._check_event(event)
        for listener in list(self._listeners[event]):
            listener(*args)

    def mark_connected(self) -> None:
        self.state = ConnectionState.CONNECTED
        logger.info("Session store connected")
        self.emit(CONNECT)

    def mark_disconnected(self, error: Optional[BaseException] = None) -> None:
        self.state = ConnectionState.DISCONNECTED
        logger.warning("Session store disconnected", extra={
            "error_type": type(error).__name__ if error else None,
        })
        self.emit(DISCONNECT, error)

    def report_failure(self, error: BaseException) -> None:
        """
        Handle a failed store operation.

        The state always becomes Disconnected. A custom handler then owns
        every notification and recovery step; without one, "disconnect"
        listeners are told so the middleware can stop serving requests.
        """
        self.state = ConnectionState.DISCONNECTED
        if self.on_error is not None:
            self.on_error(self.owner, error)
            return
        self.mark_disconnected(error)

    @staticmethod
    def _check_event(event: str) -> None:
        if event not in (CONNECT, DISCONNECT):
            raise ValueError(f"Unknown store event: {event!r}")
