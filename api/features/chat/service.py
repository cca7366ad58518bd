"""Completion proxy: forwards a message history to OpenAI chat completions.

One request per call, no retries and no streaming. Failures surface as
``ContinuumException`` subclasses so callers can tell configuration, input
and upstream problems apart.
"""
import time
from typing import Any, Dict, List, Optional

import openai
import structlog
from openai import AsyncOpenAI

from api.features.chat.exceptions import (
    EmptyReplyError,
    UpstreamAuthError,
    UpstreamError,
    UpstreamRateLimitError,
    UpstreamServerError,
)
from api.shared.exceptions import ConfigurationError, ValidationError

logger = structlog.get_logger("continuum.chat")

ALLOWED_ROLES = ("system", "user", "assistant")
INVALID_MESSAGES = "Invalid request. 'messages' must be a non-empty array."
MISSING_KEY = "Missing OpenAI API Key. Please add OPENAI_API_KEY to your environment."


def validate_messages(messages: Any) -> List[Dict[str, str]]:
    """Return the history as plain ``{role, content}`` dicts or raise ValidationError."""
    if not isinstance(messages, list) or not messages:
        raise ValidationError(INVALID_MESSAGES)

    cleaned = []
    for index, message in enumerate(messages):
        if not isinstance(message, dict):
            raise ValidationError(
                f"Invalid request. Message {index} must be an object.", {"index": index}
            )
        role = message.get("role")
        content = message.get("content")
        if role not in ALLOWED_ROLES:
            raise ValidationError(
                f"Invalid request. Message {index} has unsupported role {role!r}.",
                {"index": index, "role": role},
            )
        if not isinstance(content, str):
            raise ValidationError(
                f"Invalid request. Message {index} content must be a string.",
                {"index": index},
            )
        cleaned.append({"role": role, "content": content})
    return cleaned


class CompletionService:
    """Thin wrapper around ``AsyncOpenAI.chat.completions``."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-3.5-turbo",
        timeout: float = 60.0,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.api_key, timeout=self.timeout, max_retries=0
            )
        return self._client

    async def complete(self, messages: Any) -> str:
        """Return the first choice's text for ``messages``."""
        if not self.api_key:
            logger.error("completion_not_configured")
            raise ConfigurationError(MISSING_KEY)
        history = validate_messages(messages)

        start = time.perf_counter()
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=history,
            )
        except openai.AuthenticationError as e:
            logger.error("completion_auth_failed", status=e.status_code)
            raise UpstreamAuthError({"status": e.status_code}) from e
        except openai.RateLimitError as e:
            logger.warning("completion_rate_limited", status=e.status_code)
            raise UpstreamRateLimitError({"status": e.status_code}) from e
        except openai.APIStatusError as e:
            logger.error("completion_failed", status=e.status_code, error=e.message)
            if e.status_code >= 500:
                raise UpstreamServerError({"status": e.status_code}) from e
            raise UpstreamError(e.message, details={"status": e.status_code}) from e
        except openai.OpenAIError as e:
            logger.error("completion_failed", error=str(e))
            raise UpstreamError(str(e) or "Unknown error occurred") from e

        duration_ms = int((time.perf_counter() - start) * 1000)
        reply = response.choices[0].message.content if response.choices else None
        if not reply:
            logger.warning("completion_empty", model=self.model, duration_ms=duration_ms)
            raise EmptyReplyError({"model": self.model})

        logger.info(
            "completion_finished",
            model=self.model,
            messages=len(history),
            duration_ms=duration_ms,
        )
        return reply
