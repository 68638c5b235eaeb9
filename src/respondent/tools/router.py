"""Tool router exposing definitions and dispatch for local function tools.

Tool parameters and outputs are defined via Pydantic models. Definitions
advertised to the model are generated from each tool's input schema, and
function calls coming back from the model are validated against it.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel

from respondent.models.items import FunctionCallItem
from respondent.models.request import FunctionCallOutput, FunctionTool
from respondent.tools.base import Tool
from respondent.tools.registry import ToolRegistration, registration_for


class ToolRouter:
    """Dispatch function calls to registered handlers."""

    def __init__(
        self,
        registrations: Iterable[ToolRegistration | Tool[Any, Any]] = (),
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self.logger = logger or logging.getLogger(__name__)
        self._registrations: dict[str, ToolRegistration] = {}
        for registration in registrations:
            self.register(registration)

    def register(self, registration: ToolRegistration | Tool[Any, Any]) -> None:
        if isinstance(registration, Tool):
            registration = registration_for(registration)
        if registration.name in self._registrations:
            raise ValueError(f"tool {registration.name} is already registered")
        self._registrations[registration.name] = registration

    def has(self, name: str) -> bool:
        return name in self._registrations

    __contains__ = has

    def __len__(self) -> int:
        return len(self._registrations)

    def specs(self) -> list[FunctionTool]:
        return [registration.definition() for registration in self._registrations.values()]

    async def dispatch(self, name: str, arguments: str | dict[str, Any]) -> Any:
        """Validate ``arguments`` and run the named tool, returning a JSON-ready result."""

        spec = self._registrations.get(name)
        if spec is None:
            raise ValueError(f"unknown tool {name}")

        kwargs = json.loads(arguments) if isinstance(arguments, str) and arguments.strip() else arguments or {}
        self._log_request(name, kwargs)

        try:
            validated = spec.input_model.model_validate(kwargs)
            if inspect.iscoroutinefunction(spec.handler):
                output = await spec.handler(validated)
            else:
                output = await asyncio.to_thread(spec.handler, validated)
                if inspect.isawaitable(output):
                    output = await output
            if spec.result_adapter is not None:
                result = spec.result_adapter(output)
            elif isinstance(output, BaseModel):
                result = output.model_dump(mode="json")
            else:
                result = output
        except Exception as exc:
            self._log_response(name, {"error": str(exc)})
            raise

        self._log_response(name, result)
        return result

    async def respond(self, call: FunctionCallItem) -> FunctionCallOutput:
        """Run a function call and wrap the outcome as its output item.

        Failures are reported to the model as ``{"error": ...}`` instead of
        being raised.
        """

        try:
            result = await self.dispatch(call.name, call.arguments)
        except Exception as exc:
            self.logger.warning("tool %s failed: %s", call.name, exc)
            result = {"error": str(exc)}
        return FunctionCallOutput(call_id=call.call_id, output=json.dumps(result, default=str))

    def _log_request(self, name: str, kwargs: Any) -> None:
        self.logger.info("tool request: %s args=%s", name, self._stringify(kwargs))

    def _log_response(self, name: str, result: Any) -> None:
        self.logger.debug("tool response: %s result=%s", name, self._stringify(result))

    @staticmethod
    def _stringify(obj: Any) -> str:
        try:
            text = json.dumps(obj, default=str)
        except (TypeError, ValueError):
            text = repr(obj)

        if len(text) > 2000:
            return f"{text[:2000]}... [truncated]"
        return text


__all__ = ["ToolRouter"]
