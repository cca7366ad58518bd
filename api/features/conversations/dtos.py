"""DTOs for the Conversations feature.

Nodes and edges travel in the canvas client's shape:
``{id, type, position: {x, y}, data: {label, role}}`` and
``{id, source, target}``.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from api.features.conversations.entities.conversation import NodeRole
from api.features.conversations.models import (
    ConversationModel,
    ConversationTreeModel,
    EdgeModel,
    NodeModel,
)
from api.shared.dtos import BaseDTO

NODE_TYPE = "chatNode"


class PositionDTO(BaseDTO):
    x: float = Field(default=0.0, description="Canvas x coordinate")
    y: float = Field(default=0.0, description="Canvas y coordinate")


class NodeDataDTO(BaseDTO):
    label: str = Field(default="", description="Message text")
    role: NodeRole = Field(description="Message role: system, user or assistant")


class NodeDTO(BaseDTO):
    """Canvas node."""

    id: str = Field(min_length=1, description="Node identifier")
    type: str = Field(default=NODE_TYPE, description="Canvas node type")
    position: PositionDTO = Field(default_factory=PositionDTO)
    data: NodeDataDTO
    width: Optional[float] = Field(default=None, description="Rendered width")
    height: Optional[float] = Field(default=None, description="Rendered height")

    @classmethod
    def from_model(cls, model: NodeModel) -> "NodeDTO":
        return cls(
            id=model.id,
            position=PositionDTO(x=model.position_x, y=model.position_y),
            data=NodeDataDTO(label=model.label, role=model.role),
            width=model.width,
            height=model.height,
        )

    def to_model(self) -> NodeModel:
        return NodeModel(
            id=self.id,
            role=self.data.role,
            label=self.data.label,
            position_x=self.position.x,
            position_y=self.position.y,
            width=self.width,
            height=self.height,
        )


class EdgeDTO(BaseDTO):
    """Canvas edge."""

    id: str = Field(min_length=1, description="Edge identifier")
    source: str = Field(min_length=1, description="Parent node identifier")
    target: str = Field(min_length=1, description="Child node identifier")

    @classmethod
    def from_model(cls, model: EdgeModel) -> "EdgeDTO":
        return cls(id=model.id, source=model.source, target=model.target)

    def to_model(self) -> EdgeModel:
        return EdgeModel(id=self.id, source=self.source, target=self.target)


class SaveConversationRequest(BaseDTO):
    """Create or replace a conversation.

    ``nodes`` and ``edges`` are optional here so that a missing array is
    reported with the same message as an invalid one.
    """

    title: Optional[str] = Field(default=None, description="Conversation title")
    nodes: Optional[List[NodeDTO]] = Field(default=None, description="All nodes of the tree")
    edges: Optional[List[EdgeDTO]] = Field(default=None, description="All edges of the tree")

    def node_models(self) -> Optional[List[NodeModel]]:
        return None if self.nodes is None else [node.to_model() for node in self.nodes]

    def edge_models(self) -> Optional[List[EdgeModel]]:
        return None if self.edges is None else [edge.to_model() for edge in self.edges]


class ConversationDTO(BaseDTO):
    """Conversation summary."""

    id: str = Field(description="Conversation identifier")
    title: Optional[str] = Field(default=None, description="Conversation title")
    created_at: Optional[datetime] = Field(default=None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(default=None, description="Last update timestamp")

    @classmethod
    def from_model(cls, model: ConversationModel) -> "ConversationDTO":
        return cls.model_validate(model.model_dump())


class ConversationListResponse(BaseDTO):
    """List conversations response."""

    conversations: List[ConversationDTO] = Field(description="Conversations, newest first")
    total: int = Field(description="Number of conversations")


class ConversationDetailResponse(BaseDTO):
    """A conversation with its canvas graph."""

    conversation: ConversationDTO
    nodes: List[NodeDTO]
    edges: List[EdgeDTO]

    @classmethod
    def from_model(cls, model: ConversationTreeModel) -> "ConversationDetailResponse":
        return cls(
            conversation=ConversationDTO.from_model(model.conversation),
            nodes=[NodeDTO.from_model(node) for node in model.nodes],
            edges=[EdgeDTO.from_model(edge) for edge in model.edges],
        )


class DeleteConversationResponse(BaseDTO):
    success: bool = Field(default=True, description="Whether the request succeeded")
    deleted: bool = Field(default=True, description="Whether a conversation was removed")
