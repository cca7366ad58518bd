"""Models for the Conversations feature."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from api.features.conversations.entities.conversation import (
    Conversation as ConversationEntity,
    Edge as EdgeEntity,
    Node as NodeEntity,
    NodeRole,
)
from canvas.models import Edge, Node, Position, Size
from canvas.tree import ConversationTree


class NodeModel(BaseModel):
    """Domain model for a stored node."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(min_length=1, description="Node identifier, unique per conversation")
    role: NodeRole = Field(description="Message role")
    label: str = Field(default="", description="Message text")
    position_x: float = Field(default=0.0, description="Canvas x coordinate")
    position_y: float = Field(default=0.0, description="Canvas y coordinate")
    width: Optional[float] = Field(default=None, description="Rendered width")
    height: Optional[float] = Field(default=None, description="Rendered height")

    @classmethod
    def from_entity(cls, entity: NodeEntity) -> "NodeModel":
        """Create model from database entity."""
        return cls(
            id=entity.id,
            role=NodeRole(entity.role),
            label=entity.label or "",
            position_x=entity.position_x,
            position_y=entity.position_y,
            width=entity.width,
            height=entity.height,
        )

    def to_entity(self, conversation_id: str, seq: int) -> NodeEntity:
        """Convert model to database entity."""
        return NodeEntity(
            conversation_id=conversation_id,
            id=self.id,
            seq=seq,
            role=self.role.value,
            label=self.label,
            position_x=self.position_x,
            position_y=self.position_y,
            width=self.width,
            height=self.height,
        )

    @classmethod
    def from_node(cls, node: Node) -> "NodeModel":
        return cls(
            id=node.id,
            role=NodeRole(node.role.value),
            label=node.content,
            position_x=node.position.x,
            position_y=node.position.y,
            width=node.size.width if node.size else None,
            height=node.size.height if node.size else None,
        )

    def to_node(self) -> Node:
        size = None
        if self.width is not None and self.height is not None:
            size = Size(width=self.width, height=self.height)
        return Node(
            id=self.id,
            role=self.role.value,
            content=self.label,
            position=Position(x=self.position_x, y=self.position_y),
            size=size,
        )


class EdgeModel(BaseModel):
    """Domain model for a stored edge."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(min_length=1, description="Edge identifier, unique per conversation")
    source: str = Field(min_length=1, description="Parent node identifier")
    target: str = Field(min_length=1, description="Child node identifier")

    @classmethod
    def from_entity(cls, entity: EdgeEntity) -> "EdgeModel":
        return cls(id=entity.id, source=entity.source_node_id, target=entity.target_node_id)

    def to_entity(self, conversation_id: str) -> EdgeEntity:
        return EdgeEntity(
            conversation_id=conversation_id,
            id=self.id,
            source_node_id=self.source,
            target_node_id=self.target,
        )

    @classmethod
    def from_edge(cls, edge: Edge) -> "EdgeModel":
        return cls(id=edge.id, source=edge.source, target=edge.target)

    def to_edge(self) -> Edge:
        return Edge(id=self.id, source=self.source, target=self.target)


class ConversationModel(BaseModel):
    """Conversation summary without its graph."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(description="Conversation identifier")
    title: Optional[str] = Field(default=None, description="Conversation title")
    created_at: Optional[datetime] = Field(default=None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(default=None, description="Last update timestamp")

    @classmethod
    def from_entity(cls, entity: ConversationEntity) -> "ConversationModel":
        return cls(
            id=str(entity.id),
            title=entity.title,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )


class ConversationTreeModel(BaseModel):
    """A conversation together with its nodes and edges."""

    conversation: ConversationModel
    nodes: List[NodeModel] = Field(default_factory=list)
    edges: List[EdgeModel] = Field(default_factory=list)

    def to_tree(self) -> ConversationTree:
        """Rebuild the in-memory tree; every node comes back resolved."""
        return ConversationTree.from_records(
            (node.to_node() for node in self.nodes),
            (edge.to_edge() for edge in self.edges),
        )

    @staticmethod
    def graph_from_tree(tree: ConversationTree) -> "tuple[List[NodeModel], List[EdgeModel]]":
        return (
            [NodeModel.from_node(node) for node in tree.nodes()],
            [EdgeModel.from_edge(edge) for edge in tree.edges()],
        )
