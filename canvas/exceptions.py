"""Exceptions raised by the conversation tree."""
from typing import Any, Dict, Optional


class TreeError(Exception):
    """Base exception for conversation tree operations."""

    def __init__(
        self,
        message: str,
        error_code: str = "TREE_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class DuplicateIdError(TreeError):
    """Raised when a node or edge identifier is already taken."""

    def __init__(self, kind: str, identifier: str):
        message = f"{kind} with identifier '{identifier}' already exists"
        super().__init__(message, "DUPLICATE_ID", {"kind": kind, "identifier": identifier})


class NodeNotFoundError(TreeError):
    """Raised when a node is not part of the tree."""

    def __init__(self, node_id: str):
        super().__init__(
            f"Node with identifier '{node_id}' not found",
            "NODE_NOT_FOUND",
            {"node_id": node_id},
        )


class ParentNotFoundError(NodeNotFoundError):
    """Raised when branching from a node that does not exist."""

    def __init__(self, parent_id: str):
        super().__init__(parent_id)
        self.message = f"Parent node '{parent_id}' not found"
        self.error_code = "PARENT_NOT_FOUND"
        self.args = (self.message,)


class DanglingReferenceError(TreeError):
    """Raised when an edge points at a node that does not exist."""

    def __init__(self, source_id: str, target_id: str, missing: str):
        message = f"Edge {source_id} -> {target_id} references missing node '{missing}'"
        super().__init__(
            message,
            "DANGLING_REFERENCE",
            {"source": source_id, "target": target_id, "missing": missing},
        )


class MultipleParentsError(TreeError):
    """Raised when a node would receive a second incoming edge."""

    def __init__(self, target_id: str, existing_parent: str):
        message = f"Node '{target_id}' already has a parent ('{existing_parent}')"
        super().__init__(
            message,
            "MULTIPLE_PARENTS",
            {"target": target_id, "parent": existing_parent},
        )


class CycleError(TreeError):
    """Raised when an edge would close a cycle."""

    def __init__(self, source_id: str, target_id: str):
        message = f"Edge {source_id} -> {target_id} would create a cycle"
        super().__init__(message, "CYCLE", {"source": source_id, "target": target_id})


class InvalidTransitionError(TreeError):
    """Raised when an assistant node's content changes from a terminal state."""

    def __init__(self, node_id: str, current_state: str, requested_state: str):
        message = (
            f"Node '{node_id}' is in state '{current_state}', "
            f"cannot move to '{requested_state}'"
        )
        super().__init__(
            message,
            "INVALID_TRANSITION",
            {
                "node_id": node_id,
                "current_state": current_state,
                "requested_state": requested_state,
            },
        )
