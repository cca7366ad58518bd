"""Conversation, node and edge entities.

Node and edge identifiers are chosen by the client (``root``,
``node-user-...``, ``e-<src>-<dst>``) and are only unique inside their
conversation, so both tables are keyed by ``(conversation_id, id)``.
"""
from enum import Enum
from typing import Optional
from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Float,
    ForeignKey,
    ForeignKeyConstraint,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from api.shared.entities.base import BaseEntity, CreatedAtMixin, TimestampMixin


class NodeRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class Conversation(TimestampMixin, BaseEntity):
    """Owned conversation header; nodes and edges hang off it."""

    __tablename__ = "conversations"
    __table_args__ = (
        Index("ix_conversations_user_id", "user_id"),
        Index("ix_conversations_updated_at", "updated_at"),
    )

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[Optional[str]] = mapped_column(String(255))


class Node(CreatedAtMixin, BaseEntity):
    """One message of a conversation tree."""

    __tablename__ = "nodes"
    __table_args__ = (
        CheckConstraint(
            "role IN ('system', 'user', 'assistant')", name="ck_nodes_role"
        ),
        Index("ix_nodes_conversation_id", "conversation_id"),
    )

    conversation_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("conversations.id", ondelete="CASCADE"),
        primary_key=True,
    )
    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    seq: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    role: Mapped[str] = mapped_column(String(16), nullable=False)
    label: Mapped[str] = mapped_column(Text, nullable=False, default="")
    position_x: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    position_y: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    width: Mapped[Optional[float]] = mapped_column(Float)
    height: Mapped[Optional[float]] = mapped_column(Float)


class Edge(CreatedAtMixin, BaseEntity):
    """Reply relation: ``target_node_id`` answers ``source_node_id``."""

    __tablename__ = "edges"
    __table_args__ = (
        ForeignKeyConstraint(
            ["conversation_id", "source_node_id"],
            ["nodes.conversation_id", "nodes.id"],
            ondelete="CASCADE",
            name="fk_edges_source_node",
        ),
        ForeignKeyConstraint(
            ["conversation_id", "target_node_id"],
            ["nodes.conversation_id", "nodes.id"],
            ondelete="CASCADE",
            name="fk_edges_target_node",
        ),
        Index("ix_edges_conversation_id", "conversation_id"),
    )

    conversation_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("conversations.id", ondelete="CASCADE"),
        primary_key=True,
    )
    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    source_node_id: Mapped[str] = mapped_column(String(255), nullable=False)
    target_node_id: Mapped[str] = mapped_column(String(255), nullable=False)
