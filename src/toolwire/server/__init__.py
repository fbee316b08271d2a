"""Protocol server: lifecycle state machine and request dispatch."""

from toolwire.server.lifecycle import LifecycleManager, LifecycleState
from toolwire.server.server import ProtocolServer

__all__ = ["LifecycleManager", "LifecycleState", "ProtocolServer"]
