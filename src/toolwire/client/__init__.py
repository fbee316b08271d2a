"""Protocol client: request correlation over a channel."""

from toolwire.client.client import ProtocolClient
from toolwire.client.provider import ToolProvider

__all__ = ["ProtocolClient", "ToolProvider"]
