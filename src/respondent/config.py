"""Configuration models and loading for respondent.

``Settings`` holds client-level configuration (credentials, endpoint, logging)
resolved from overrides, the environment and ``config.toml``.
``ConversationConfig`` holds the per-conversation request options sent with
every turn.
"""

from __future__ import annotations

import os
import stat
import tomllib
from collections.abc import Mapping, Sequence
from enum import Enum
from pathlib import Path
from typing import Any, cast

from pydantic import BaseModel, ConfigDict, Field, field_validator

from respondent.models.request import (
    FunctionTool,
    Include,
    Input,
    ReasoningConfig,
    ReasoningEffort,
    Request,
    ToolDefinition,
)


class LogLevel(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-4o"
DEFAULT_TIMEOUT_SECONDS = 60.0
EXPECTED_FILE_MODE = stat.S_IRUSR | stat.S_IWUSR  # 0o600


class Settings(BaseModel):
    """Resolved client settings."""

    model_config = ConfigDict(frozen=True, validate_default=True, extra="forbid")

    api_key: str | None = None
    base_url: str = DEFAULT_BASE_URL
    organization: str | None = None
    project: str | None = None
    model: str = DEFAULT_MODEL
    reasoning_effort: ReasoningEffort | None = None
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    strict_events: bool = False
    log_level: LogLevel = LogLevel.INFO

    @field_validator("api_key", "organization", "project")
    @classmethod
    def _strip_optional(cls, value: str | None) -> str | None:
        if value is None:
            return None
        stripped = value.strip()
        return stripped if stripped else None

    @field_validator("model", "base_url")
    @classmethod
    def _require_text(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("value cannot be empty")
        return value.strip()

    @field_validator("timeout")
    @classmethod
    def _validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeout must be positive")
        return value


class ConversationConfig(BaseModel):
    """Request options applied to every turn of a conversation."""

    model_config = ConfigDict(frozen=True, validate_default=True, extra="forbid")

    model: str
    include: list[Include] | None = None
    instructions: str | None = None
    max_output_tokens: int | None = None
    metadata: dict[str, str] | None = None
    parallel_tool_calls: bool | None = None
    reasoning: ReasoningConfig | None = None
    store: bool | None = None
    temperature: float | None = None
    text: dict[str, Any] | None = None
    tool_choice: str | dict[str, Any] | None = None
    tools: list[ToolDefinition] = Field(default_factory=list)
    top_p: float | None = None
    truncation: str | None = None
    user: str | None = None

    @field_validator("model")
    @classmethod
    def _validate_model(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("model cannot be empty")
        return value.strip()

    @field_validator("temperature")
    @classmethod
    def _validate_temperature(cls, value: float | None) -> float | None:
        if value is not None and not 0.0 <= value <= 2.0:
            raise ValueError("temperature must be between 0 and 2")
        return value

    @field_validator("top_p")
    @classmethod
    def _validate_top_p(cls, value: float | None) -> float | None:
        if value is not None and not 0.0 <= value <= 1.0:
            raise ValueError("top_p must be between 0 and 1")
        return value

    @field_validator("max_output_tokens")
    @classmethod
    def _validate_max_output_tokens(cls, value: int | None) -> int | None:
        if value is not None and value <= 0:
            raise ValueError("max_output_tokens must be positive")
        return value

    def to_request(
        self,
        input: Input,
        *,
        previous_response_id: str | None = None,
        extra_tools: Sequence[FunctionTool] = (),
    ) -> Request:
        """Build a streaming request for one turn.

        ``extra_tools`` are appended unless a tool with the same name is
        already configured.
        """

        tools: list[ToolDefinition] = list(self.tools)
        configured = {_tool_name(tool) for tool in tools}
        tools.extend(tool for tool in extra_tools if tool.name not in configured)

        options = self.model_dump(exclude={"tools"}, exclude_none=True)
        return Request(
            **options,
            input=input,
            previous_response_id=previous_response_id,
            tools=tools or None,
            stream=True,
        )


def respondent_home(env: Mapping[str, str] | None = None) -> Path:
    """Return the base respondent directory, honoring RESPONDENT_HOME if set."""

    env = env if env is not None else os.environ
    override = _clean_str(env.get("RESPONDENT_HOME"))
    return Path(override).expanduser() if override else Path.home() / ".respondent"


def default_config_path(env: Mapping[str, str] | None = None) -> Path:
    return respondent_home(env) / "config.toml"


def load_settings(
    cli_overrides: Mapping[str, Any] | None = None,
    env: Mapping[str, str] | None = None,
    config_path: Path | str | None = None,
    *,
    create_if_missing: bool = False,
) -> Settings:
    """Resolve settings from overrides, then environment, then config file, then defaults."""

    env = env if env is not None else os.environ
    cli_overrides = cli_overrides or {}
    path = Path(config_path) if config_path else default_config_path(env)

    created_new = False
    if not path.exists() and create_if_missing:
        write_config(Settings(), path)
        created_new = True

    config_data: dict[str, Any] = {}
    if path.exists():
        _ensure_permissions(path)
        config_data = _read_toml(path)

    defaults = Settings()

    api_key = _first_value(
        _clean_str(cli_overrides.get("api_key")),
        _clean_str(env.get("OPENAI_API_KEY")),
        _clean_str(_get_config_value(config_data, "auth", "api_key")),
        defaults.api_key,
    )
    organization = _first_value(
        _clean_str(cli_overrides.get("organization")),
        _clean_str(env.get("OPENAI_ORG_ID")),
        _clean_str(_get_config_value(config_data, "auth", "organization")),
    )
    project = _first_value(
        _clean_str(cli_overrides.get("project")),
        _clean_str(env.get("OPENAI_PROJECT_ID")),
        _clean_str(_get_config_value(config_data, "auth", "project")),
    )
    base_url = _first_value(
        _clean_str(cli_overrides.get("base_url")),
        _clean_str(env.get("OPENAI_BASE_URL")),
        _clean_str(_get_config_value(config_data, "api", "base_url")),
        defaults.base_url,
    )
    timeout = _first_value(
        cli_overrides.get("timeout"),
        _get_config_value(config_data, "api", "timeout"),
        defaults.timeout,
    )
    strict_events = _first_value(
        cli_overrides.get("strict_events"),
        _get_config_value(config_data, "api", "strict_events"),
        defaults.strict_events,
    )
    model = _first_value(
        _clean_str(cli_overrides.get("model")),
        _clean_str(_get_config_value(config_data, "model", "id")),
        defaults.model,
    )
    reasoning_effort = _first_value(
        _clean_str(cli_overrides.get("reasoning_effort")),
        _clean_str(_get_config_value(config_data, "model", "reasoning_effort")),
    )
    log_level = _first_value(
        _clean_str(cli_overrides.get("log_level")),
        _clean_str(_get_config_value(config_data, "logging", "log_level")),
        defaults.log_level,
    )

    settings = Settings(
        api_key=api_key,
        base_url=base_url,
        organization=organization,
        project=project,
        model=model,
        reasoning_effort=cast(ReasoningEffort | None, _coerce_enum(reasoning_effort, ReasoningEffort)),
        timeout=float(timeout),
        strict_events=bool(strict_events),
        log_level=cast(LogLevel, _coerce_enum(log_level, LogLevel, LogLevel.INFO)),
    )

    if created_new:
        write_config(settings, path)
    return settings


def write_config(settings: Settings, config_path: Path | str | None = None) -> Path:
    path = Path(config_path) if config_path else default_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    sections: list[str] = []
    _append_section(
        sections,
        "auth",
        {"api_key": settings.api_key, "organization": settings.organization, "project": settings.project},
    )
    _append_section(
        sections,
        "api",
        {"base_url": settings.base_url, "timeout": settings.timeout, "strict_events": settings.strict_events},
    )
    _append_section(sections, "model", {"id": settings.model, "reasoning_effort": settings.reasoning_effort})
    _append_section(sections, "logging", {"log_level": settings.log_level})

    content = "\n\n".join(filter(None, sections)) + "\n"
    path.write_text(content, encoding="utf-8")
    path.chmod(EXPECTED_FILE_MODE)
    return path


def _tool_name(tool: ToolDefinition) -> str | None:
    if isinstance(tool, FunctionTool):
        return tool.name
    name = tool.get("name")
    return name if isinstance(name, str) else None


def _ensure_permissions(path: Path) -> None:
    current_mode = stat.S_IMODE(path.stat().st_mode)
    if current_mode != EXPECTED_FILE_MODE:
        path.chmod(EXPECTED_FILE_MODE)


def _read_toml(path: Path) -> dict[str, Any]:
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _get_config_value(config: Mapping[str, Any], section: str, key: str) -> Any:
    section_data = config.get(section)
    if not isinstance(section_data, dict):
        return None
    return section_data.get(key)


def _clean_str(value: Any) -> Any:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped if stripped else None
    return value


def _first_value(*candidates: Any) -> Any:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None


def _coerce_enum(value: Any, enum_cls: type[Enum], default: Enum | None = None) -> Enum | None:
    if value is None:
        return default
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value)
        except ValueError:
            return default
    return default


def _append_section(parts: list[str], name: str, values: Mapping[str, Any]) -> None:
    filtered = {k: v for k, v in values.items() if v is not None}
    if not filtered:
        return
    lines = [f"[{name}]"]
    for key, val in filtered.items():
        if isinstance(val, Enum):
            lines.append(f'{key} = "{val.value}"')
        elif isinstance(val, str):
            escaped = val.replace("\\", "\\\\").replace('"', '\\"')
            lines.append(f'{key} = "{escaped}"')
        elif isinstance(val, bool):
            lines.append(f"{key} = {'true' if val else 'false'}")
        else:
            lines.append(f"{key} = {val}")
    parts.append("\n".join(lines))


__all__ = [
    "ConversationConfig",
    "DEFAULT_BASE_URL",
    "DEFAULT_MODEL",
    "LogLevel",
    "ReasoningEffort",
    "Settings",
    "default_config_path",
    "load_settings",
    "respondent_home",
    "write_config",
]
