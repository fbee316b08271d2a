"""Host side: conversation state, model backends and the tool-call loop."""

from toolwire.host.backend import DEFAULT_MODELS, LiteLLMBackend, ModelBackend, create_backend
from toolwire.host.config import ConfigError, HostConfig, ModelConfig, load_host_config
from toolwire.host.models import ChatMessage, ConversationHistory, ToolCall, ToolOutcome
from toolwire.host.orchestrator import HostOrchestrator
from toolwire.host.parser import parse_tool_calls

__all__ = [
    "DEFAULT_MODELS",
    "ChatMessage",
    "ConfigError",
    "ConversationHistory",
    "HostConfig",
    "HostOrchestrator",
    "LiteLLMBackend",
    "ModelBackend",
    "ModelConfig",
    "ToolCall",
    "ToolOutcome",
    "create_backend",
    "load_host_config",
    "parse_tool_calls",
]
