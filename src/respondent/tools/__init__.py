"""Local function tools the conversation can run on the model's behalf."""

from __future__ import annotations

from .base import Tool, ToolRequest, ToolResponse  # noqa: F401
from .registry import ToolRegistration, registration_for  # noqa: F401
from .router import ToolRouter  # noqa: F401
