"""In-memory conversation tree.

Nodes and edges live in flat dicts keyed by identifier. Relationships are only
ever looked up through two indexes:

    target id -> incoming edge   (at most one per node)
    source id -> outgoing edge ids

so walking from a node to the root costs O(depth) and never scans the edge set.
"""
from __future__ import annotations

import logging
import random
import uuid
from typing import Dict, Iterable, List, Optional, Tuple

from canvas.exceptions import (
    CycleError,
    DanglingReferenceError,
    DuplicateIdError,
    MultipleParentsError,
    NodeNotFoundError,
    ParentNotFoundError,
)
from canvas.layout import ROOT_POSITION, place_reply_pair
from canvas.models import (
    PLACEHOLDER_TEXT,
    ContentState,
    Edge,
    Message,
    Node,
    Role,
    default_edge_id,
)

logger = logging.getLogger("continuum.canvas.tree")

ROOT_ID = "root"
DEFAULT_GREETING = "Hello there! I am Continuum, your infinite canvas AI. Start a conversation."


class ConversationTree:
    """Single-parent tree of message nodes."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._nodes: Dict[str, Node] = {}
        self._edges: Dict[str, Edge] = {}
        self._incoming: Dict[str, Edge] = {}
        self._outgoing: Dict[str, List[str]] = {}
        self._rng = rng

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    @classmethod
    def new(
        cls, greeting: str = DEFAULT_GREETING, rng: Optional[random.Random] = None
    ) -> "ConversationTree":
        """Fresh tree holding only the system root node."""
        tree = cls(rng=rng)
        tree.add_node(
            Node(id=ROOT_ID, role=Role.SYSTEM, content=greeting, position=ROOT_POSITION)
        )
        return tree

    @classmethod
    def from_records(
        cls, nodes: Iterable[Node], edges: Iterable[Edge]
    ) -> "ConversationTree":
        """Rebuild a tree through the checked operations (used after a load)."""
        tree = cls()
        for node in nodes:
            tree.add_node(node)
        for edge in edges:
            tree.add_edge(edge.source, edge.target, edge_id=edge.id)
        return tree

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def add_node(self, node: Node) -> Node:
        if node.id in self._nodes:
            raise DuplicateIdError("Node", node.id)
        self._nodes[node.id] = node
        return node

    def add_edge(
        self, source_id: str, target_id: str, edge_id: Optional[str] = None
    ) -> Edge:
        self._check_edge(source_id, target_id)
        edge = Edge(
            id=edge_id or default_edge_id(source_id, target_id),
            source=source_id,
            target=target_id,
        )
        if edge.id in self._edges:
            raise DuplicateIdError("Edge", edge.id)
        self._link(edge)
        return edge

    def branch(
        self,
        parent_id: str,
        user_text: str,
        *,
        user_id: Optional[str] = None,
        assistant_id: Optional[str] = None,
        placeholder: str = PLACEHOLDER_TEXT,
    ) -> Tuple[str, str]:
        """Append a user message and a pending assistant reply below ``parent_id``.

        Every check runs before the first write, so a failure leaves the tree
        untouched.
        """
        parent = self._nodes.get(parent_id)
        if parent is None:
            raise ParentNotFoundError(parent_id)

        suffix = uuid.uuid4().hex[:12]
        user_id = user_id or f"node-user-{suffix}"
        assistant_id = assistant_id or f"node-ai-{suffix}"
        for candidate in (user_id, assistant_id):
            if candidate in self._nodes:
                raise DuplicateIdError("Node", candidate)
        if user_id == assistant_id:
            raise DuplicateIdError("Node", user_id)

        edge_to_user = Edge(default_edge_id(parent_id, user_id), parent_id, user_id)
        edge_to_ai = Edge(default_edge_id(user_id, assistant_id), user_id, assistant_id)
        for edge in (edge_to_user, edge_to_ai):
            if edge.id in self._edges:
                raise DuplicateIdError("Edge", edge.id)

        user_position, ai_position = place_reply_pair(parent.position, self._rng)
        self._nodes[user_id] = Node(
            id=user_id, role=Role.USER, content=user_text, position=user_position
        )
        self._nodes[assistant_id] = Node(
            id=assistant_id,
            role=Role.ASSISTANT,
            content=placeholder,
            position=ai_position,
            state=ContentState.PENDING,
        )
        self._link(edge_to_user)
        self._link(edge_to_ai)
        logger.debug("Branched %s -> %s -> %s", parent_id, user_id, assistant_id)
        return user_id, assistant_id

    def resolve(self, node_id: str, text: str) -> Node:
        node = self.get(node_id)
        node.resolve(text)
        return node

    def fail(self, node_id: str, text: str) -> Node:
        node = self.get(node_id)
        node.fail(text)
        return node

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def history_to(self, node_id: str) -> List[Message]:
        """Messages from the root down to ``node_id`` inclusive."""
        node = self._nodes.get(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)

        history: List[Message] = []
        while node is not None:
            history.append(Message(node.role.value, node.content))
            edge = self._incoming.get(node.id)
            node = self._nodes[edge.source] if edge else None
        history.reverse()
        return history

    def get(self, node_id: str) -> Node:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise NodeNotFoundError(node_id) from None

    def parent_of(self, node_id: str) -> Optional[str]:
        if node_id not in self._nodes:
            raise NodeNotFoundError(node_id)
        edge = self._incoming.get(node_id)
        return edge.source if edge else None

    def children_of(self, node_id: str) -> List[str]:
        if node_id not in self._nodes:
            raise NodeNotFoundError(node_id)
        return [self._edges[e].target for e in self._outgoing.get(node_id, [])]

    def depth(self, node_id: str) -> int:
        return len(self.history_to(node_id)) - 1

    def roots(self) -> List[str]:
        return [node_id for node_id in self._nodes if node_id not in self._incoming]

    def nodes(self) -> List[Node]:
        return list(self._nodes.values())

    def edges(self) -> List[Edge]:
        return list(self._edges.values())

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _check_edge(self, source_id: str, target_id: str) -> None:
        for endpoint in (source_id, target_id):
            if endpoint not in self._nodes:
                raise DanglingReferenceError(source_id, target_id, endpoint)
        existing = self._incoming.get(target_id)
        if existing is not None:
            raise MultipleParentsError(target_id, existing.source)
        # target has no parent yet, so it can only be on a cycle if it is an ancestor of source
        current: Optional[str] = source_id
        while current is not None:
            if current == target_id:
                raise CycleError(source_id, target_id)
            edge = self._incoming.get(current)
            current = edge.source if edge else None

    def _link(self, edge: Edge) -> None:
        self._edges[edge.id] = edge
        self._incoming[edge.target] = edge
        self._outgoing.setdefault(edge.source, []).append(edge.id)
