"""Interactive session owning one open conversation tree.

A reply appends a user node and a pending assistant node synchronously, then
fills the assistant node from a completion task registered under its id.

Late results follow one rule: a result is written only if it belongs to the
current generation of the session (bumped by ``new``/``load``/``close``), its
task was not cancelled, and its assistant node still exists and is pending.
Everything else is dropped and logged.
"""
from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional

import structlog

from canvas.history import completion_messages
from canvas.models import Edge, Node, Role
from canvas.tree import DEFAULT_GREETING, ConversationTree

logger = structlog.get_logger("continuum.session")

Completer = Callable[[List[Dict[str, str]]], Awaitable[str]]

DEFAULT_TITLE = "Untitled Conversation"
TITLE_LENGTH = 50
CANCELLED_TEXT = "Error: Request cancelled."
EMPTY_REPLY_TEXT = "Error: The completion service returned an empty response."


@dataclass(frozen=True)
class PendingReply:
    user_id: str
    assistant_id: str
    task: "asyncio.Task[None]"


@dataclass(frozen=True)
class SessionSnapshot:
    conversation_id: Optional[str]
    title: str
    nodes: List[Node]
    edges: List[Edge]


def error_text(exc: BaseException) -> str:
    message = getattr(exc, "message", None) or str(exc) or exc.__class__.__name__
    return f"Error: {message}"


class CanvasSession:
    """Holds the open tree and its in-flight completion tasks."""

    def __init__(
        self,
        completer: Completer,
        *,
        greeting: str = DEFAULT_GREETING,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._completer = completer
        self._rng = rng
        self._generation = 0
        self._pending: Dict[str, "asyncio.Task[None]"] = {}
        self.conversation_id: Optional[str] = None
        self.tree = ConversationTree.new(greeting, rng=rng)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def new(self, greeting: str = DEFAULT_GREETING) -> ConversationTree:
        self._reset()
        self.tree = ConversationTree.new(greeting, rng=self._rng)
        self.conversation_id = None
        return self.tree

    def load(self, conversation_id: str, tree: ConversationTree) -> ConversationTree:
        self._reset()
        self.tree = tree
        self.conversation_id = conversation_id
        logger.info("session_loaded", conversation_id=conversation_id, nodes=len(tree))
        return self.tree

    def close(self) -> None:
        self._reset()

    def mark_saved(self, conversation_id: str) -> None:
        self.conversation_id = conversation_id

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def in_flight(self) -> List[str]:
        return [node_id for node_id, task in self._pending.items() if not task.done()]

    # ------------------------------------------------------------------
    # Interaction
    # ------------------------------------------------------------------
    def reply(self, parent_id: str, text: str) -> PendingReply:
        """Branch below ``parent_id`` and start the completion for the new reply.

        Must be called with a running event loop.
        """
        user_id, assistant_id = self.tree.branch(parent_id, text)
        messages = completion_messages(self.tree, user_id)
        task = asyncio.get_running_loop().create_task(
            self._complete(self._generation, assistant_id, messages)
        )
        self._pending[assistant_id] = task
        logger.info(
            "completion_started",
            assistant_id=assistant_id,
            history_length=len(messages),
            generation=self._generation,
        )
        return PendingReply(user_id=user_id, assistant_id=assistant_id, task=task)

    def cancel(self, assistant_id: str) -> bool:
        """Cancel the completion for ``assistant_id``; True if a task was cancelled."""
        task = self._pending.pop(assistant_id, None)
        if task is None or task.done():
            return False
        task.cancel()
        if assistant_id in self.tree and self.tree.get(assistant_id).is_pending:
            self.tree.fail(assistant_id, CANCELLED_TEXT)
        logger.info("completion_cancelled", assistant_id=assistant_id)
        return True

    async def wait(self) -> None:
        """Wait until every in-flight completion has settled."""
        tasks = list(self._pending.values())
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            conversation_id=self.conversation_id,
            title=self.title,
            nodes=self.tree.nodes(),
            edges=self.tree.edges(),
        )

    @property
    def title(self) -> str:
        for node in self.tree.nodes():
            if node.role is Role.SYSTEM and node.content:
                return node.content[:TITLE_LENGTH]
        return DEFAULT_TITLE

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    async def _complete(
        self, generation: int, assistant_id: str, messages: List[Dict[str, str]]
    ) -> None:
        task = asyncio.current_task()
        try:
            reply = await self._completer(messages)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning("completion_failed", assistant_id=assistant_id, error=str(exc))
            self._apply(generation, assistant_id, error_text(exc), failed=True)
        else:
            if reply:
                self._apply(generation, assistant_id, reply, failed=False)
            else:
                self._apply(generation, assistant_id, EMPTY_REPLY_TEXT, failed=True)
        finally:
            if self._pending.get(assistant_id) is task:
                del self._pending[assistant_id]

    def _apply(self, generation: int, assistant_id: str, text: str, *, failed: bool) -> bool:
        reason = None
        if generation != self._generation:
            reason = "session_replaced"
        elif assistant_id not in self.tree:
            reason = "node_missing"
        elif not self.tree.get(assistant_id).is_pending:
            reason = "already_settled"
        if reason is not None:
            logger.info("late_result_dropped", assistant_id=assistant_id, reason=reason)
            return False

        if failed:
            self.tree.fail(assistant_id, text)
        else:
            self.tree.resolve(assistant_id, text)
        logger.info("completion_applied", assistant_id=assistant_id, failed=failed)
        return True

    def _reset(self) -> None:
        self._generation += 1
        for task in self._pending.values():
            if not task.done():
                task.cancel()
        self._pending.clear()
