"""Host configuration: model settings and the host's YAML config file."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError

Provider = Literal["anthropic", "openai"]


class ConfigError(Exception):
    """A configuration file could not be read or is invalid."""


class ModelConfig(BaseModel):
    """Configuration for a specific model/provider combination.

    The ``model`` field uses LiteLLM's naming convention:
    ``provider/model_name`` (e.g. ``openai/gpt-4o``).
    """

    model: str
    api_key: str | None = None
    api_base: str | None = None
    max_tokens: int = Field(default=1000, gt=0)
    extra: dict[str, Any] = Field(default_factory=lambda: dict[str, Any]())

    @property
    def provider(self) -> str:
        """Extract the provider prefix from the model string."""
        if "/" in self.model:
            return self.model.split("/", 1)[0]
        return "openai"


class HostConfig(BaseModel):
    """Everything the ``chat`` command needs to start a session."""

    server_command: str | None = None
    server_env: dict[str, str] | None = None
    provider: Provider | None = None
    model: str | None = None
    api_base: str | None = None
    max_tokens: int = Field(default=1000, gt=0)
    system_prompt: str | None = None
    max_tool_rounds: int = Field(default=10, ge=1)


def load_host_config(path: str | Path) -> HostConfig:
    """Read YAML, interpolate env vars, and validate.

    Environment variables in the form ``${VAR}`` or ``$VAR`` are expanded
    using :func:`os.path.expandvars` before YAML parsing.

    Raises:
        ConfigError: On read errors, YAML parse errors or validation failures.
    """
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read {path}: {exc}") from exc

    expanded = os.path.expandvars(raw)

    try:
        data: Any = yaml.safe_load(expanded)
    except yaml.YAMLError as exc:
        raise ConfigError(f"YAML parse error: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("Host config YAML must be a mapping")

    try:
        return HostConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc
