"""Value types for the conversation tree."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, NamedTuple, Optional

from canvas.exceptions import InvalidTransitionError

PLACEHOLDER_TEXT = "Thinking..."


class Role(str, Enum):
    """Author of a message node."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ContentState(str, Enum):
    """Lifecycle of a node's content.

    Only assistant nodes are ever created PENDING; RESOLVED and FAILED are terminal.
    """

    PENDING = "pending"
    RESOLVED = "resolved"
    FAILED = "failed"


@dataclass(frozen=True)
class Position:
    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class Size:
    width: float
    height: float


class Message(NamedTuple):
    """One entry of a root-to-node history."""

    role: str
    content: str

    def as_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class Node:
    """A single message on the canvas."""

    id: str
    role: Role
    content: str
    position: Position = field(default_factory=Position)
    size: Optional[Size] = None
    state: ContentState = ContentState.RESOLVED

    def __post_init__(self) -> None:
        self.role = Role(self.role)
        self.state = ContentState(self.state)

    @property
    def is_pending(self) -> bool:
        return self.state is ContentState.PENDING

    def resolve(self, text: str) -> None:
        self._transition(ContentState.RESOLVED, text)

    def fail(self, text: str) -> None:
        self._transition(ContentState.FAILED, text)

    def _transition(self, state: ContentState, text: str) -> None:
        if self.state is not ContentState.PENDING:
            raise InvalidTransitionError(self.id, self.state.value, state.value)
        self.state = state
        self.content = text


@dataclass(frozen=True)
class Edge:
    """Directed reply link: ``target`` answers ``source``."""

    id: str
    source: str
    target: str


def default_edge_id(source_id: str, target_id: str) -> str:
    return f"e-{source_id}-{target_id}"
