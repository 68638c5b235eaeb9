"""Shared tool registration structures.

Tools declare their own Pydantic input/output models. ``ToolRouter``
consumes registrations to build function tool definitions and handlers.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from respondent.models.request import FunctionTool
from respondent.tools.base import Tool


@dataclass(frozen=True)
class ToolRegistration:
    name: str
    description: str
    input_model: type[BaseModel]
    handler: Callable[[Any], Any]
    output_model: type[BaseModel] | None = None
    strict: bool = True
    result_adapter: Callable[[Any], Any] | None = None

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("tool name cannot be empty")

    def definition(self) -> FunctionTool:
        """Function tool definition derived from the input model's JSON schema."""

        parameters: dict[str, Any] = self.input_model.model_json_schema()
        parameters.setdefault("additionalProperties", False)
        props = parameters.get("properties") or {}
        if self.strict and isinstance(props, dict):
            parameters["required"] = list(props.keys())
        return FunctionTool(
            name=self.name,
            description=self.description,
            parameters=parameters,
            strict=self.strict,
        )


def registration_for(tool: Tool[Any, Any]) -> ToolRegistration:
    return ToolRegistration(
        name=tool.name,
        description=tool.description,
        input_model=tool.InputModel,
        output_model=tool.OutputModel,
        handler=tool.execute,
        strict=tool.strict,
    )


__all__ = ["ToolRegistration", "registration_for"]
