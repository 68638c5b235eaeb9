"""Abstract base classes for local function tools."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable
from typing import ClassVar, Generic, TypeVar

from pydantic import BaseModel, ConfigDict

Req = TypeVar("Req", bound=BaseModel)
Res = TypeVar("Res", bound=BaseModel)


class ToolRequest(BaseModel):
    """Marker base class for tool requests.

    Extra keys are rejected so the generated schema is valid for strict
    function calling.
    """

    model_config = ConfigDict(extra="forbid")


class ToolResponse(BaseModel):
    """Marker base class for tool responses."""


class Tool(Generic[Req, Res], ABC):
    """Abstract tool with typed request/response.

    ``execute`` may be a plain method (run in a worker thread) or a
    coroutine function (awaited on the event loop).
    """

    name: ClassVar[str]
    description: ClassVar[str]
    InputModel: ClassVar[type[BaseModel]]
    OutputModel: ClassVar[type[BaseModel] | None] = None
    strict: ClassVar[bool] = True

    @abstractmethod
    def execute(self, request: Req) -> Res | Awaitable[Res]:
        """Run the tool and return a response."""


__all__ = ["Req", "Res", "Tool", "ToolRequest", "ToolResponse"]
