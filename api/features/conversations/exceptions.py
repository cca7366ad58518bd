"""Exceptions for the Conversations feature."""
from typing import Any, Dict, Optional

from api.shared.exceptions import NotFoundError, PersistenceError, ValidationError


class ConversationNotFoundError(NotFoundError):
    """Raised when a conversation is missing or owned by someone else."""

    def __init__(self, conversation_id: Optional[str] = None):
        super().__init__(
            "Conversation not found", {"conversation_id": conversation_id}
        )
        self.error_code = "CONVERSATION_NOT_FOUND"


class ConversationValidationError(ValidationError):
    """Raised when a submitted graph is rejected before any write."""


class ConversationPersistenceError(PersistenceError):
    """Raised when a write to the conversation tables fails."""

    def __init__(self, stage: str, message: str, details: Optional[Dict[str, Any]] = None):
        error_details = {"stage": stage}
        if details:
            error_details.update(details)
        super().__init__(f"Failed to {stage}: {message}", error_details)
