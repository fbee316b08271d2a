"""Server lifecycle: the initialize/initialized handshake and connection state."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from toolwire.protocol.errors import MethodNotAllowedYetError, ServerStateError
from toolwire.protocol.messages import PROTOCOL_VERSION


class LifecycleState(Enum):
    """Server lifecycle states, in the only order they can occur."""

    CREATED = "created"
    LISTENING = "listening"
    READY = "ready"
    STOPPED = "stopped"


# Methods a client may call before the handshake completes.
PRE_READY_METHODS = frozenset({"initialize", "ping"})


@dataclass
class LifecycleManager:
    """Tracks the server's lifecycle state and the handshake.

    ``initialize`` may be repeated; the server only becomes ready once the
    ``initialized`` notification follows a successful ``initialize``.
    """

    server_info: dict[str, str] = field(default_factory=lambda: {"name": "toolwire", "version": "0.1.0"})
    state: LifecycleState = LifecycleState.CREATED
    client_info: dict[str, Any] | None = None
    initialize_seen: bool = False
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__), repr=False)

    @property
    def is_ready(self) -> bool:
        return self.state is LifecycleState.READY

    @property
    def is_stopped(self) -> bool:
        return self.state is LifecycleState.STOPPED

    def start(self) -> None:
        """CREATED -> LISTENING.

        Raises:
            ServerStateError: If the server was already started.
        """
        if self.state is not LifecycleState.CREATED:
            msg = f"Cannot start server in state {self.state.value!r}"
            raise ServerStateError(msg)
        self._transition(LifecycleState.LISTENING)

    def require_method_allowed(self, method: str) -> None:
        """Raise unless *method* may be dispatched in the current state.

        Raises:
            MethodNotAllowedYetError: If the handshake has not completed.
        """
        if self.state is LifecycleState.READY or method in PRE_READY_METHODS:
            return
        raise MethodNotAllowedYetError(method, self.state.value)

    def handle_initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        """Record the client's identity and return the server's."""
        client = params.get("client")
        if isinstance(client, dict):
            self.client_info = client
        self.initialize_seen = True
        self.logger.info("Initialize from client %s", self.client_info or "<anonymous>")
        return {"protocolVersion": PROTOCOL_VERSION, "server": dict(self.server_info)}

    def handle_initialized(self) -> None:
        """LISTENING -> READY, once ``initialize`` has been answered.

        An early or repeated notification is logged and ignored.
        """
        if self.state is LifecycleState.READY:
            self.logger.debug("Duplicate initialized notification ignored")
            return
        if self.state is not LifecycleState.LISTENING or not self.initialize_seen:
            self.logger.warning("initialized notification before initialize; dropped")
            return
        self._transition(LifecycleState.READY)

    def stop(self) -> None:
        """Any state -> STOPPED."""
        if self.state is not LifecycleState.STOPPED:
            self._transition(LifecycleState.STOPPED)

    def _transition(self, new_state: LifecycleState) -> None:
        self.logger.debug("Server state %s -> %s", self.state.value, new_state.value)
        self.state = new_state
