"""DTOs for the Chat feature."""
from typing import Any, Optional

from pydantic import Field

from api.shared.dtos import BaseDTO


class ChatRequest(BaseDTO):
    """Message history to complete.

    ``messages`` is left loosely typed so that malformed histories reach the
    service and are answered in the ``{"reply": "Error: ..."}`` shape.
    """

    messages: Optional[Any] = Field(default=None, description="Root-first list of {role, content}")


class ChatResponse(BaseDTO):
    reply: str = Field(description="Assistant reply, or 'Error: ...' on failure")
