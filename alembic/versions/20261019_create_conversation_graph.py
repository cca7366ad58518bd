"""Create conversations, nodes and edges tables

Revision ID: 20261019_create_conversation_graph
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261019_create_conversation_graph"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "conversations",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=False),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("title", sa.String(255), nullable=True),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
    )

    # Node ids are client-chosen and only unique inside a conversation
    op.create_table(
        "nodes",
        sa.Column("conversation_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("id", sa.String(255), nullable=False),
        sa.Column("seq", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("role", sa.String(16), nullable=False),
        sa.Column("label", sa.Text, nullable=False, server_default=""),
        sa.Column("position_x", sa.Float, nullable=False, server_default=sa.text("0")),
        sa.Column("position_y", sa.Float, nullable=False, server_default=sa.text("0")),
        sa.Column("width", sa.Float, nullable=True),
        sa.Column("height", sa.Float, nullable=True),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.PrimaryKeyConstraint("conversation_id", "id", name="pk_nodes"),
        sa.ForeignKeyConstraint(
            ["conversation_id"],
            ["conversations.id"],
            name="fk_nodes_conversation_id",
            ondelete="CASCADE",
        ),
        sa.CheckConstraint(
            "role IN ('system', 'user', 'assistant')", name="ck_nodes_role"
        ),
    )

    op.create_table(
        "edges",
        sa.Column("conversation_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("id", sa.String(255), nullable=False),
        sa.Column("source_node_id", sa.String(255), nullable=False),
        sa.Column("target_node_id", sa.String(255), nullable=False),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.PrimaryKeyConstraint("conversation_id", "id", name="pk_edges"),
        sa.ForeignKeyConstraint(
            ["conversation_id"],
            ["conversations.id"],
            name="fk_edges_conversation_id",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["conversation_id", "source_node_id"],
            ["nodes.conversation_id", "nodes.id"],
            name="fk_edges_source_node",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["conversation_id", "target_node_id"],
            ["nodes.conversation_id", "nodes.id"],
            name="fk_edges_target_node",
            ondelete="CASCADE",
        ),
    )

    # Create indexes for efficient querying
    op.create_index("ix_conversations_user_id", "conversations", ["user_id"])
    op.create_index("ix_conversations_updated_at", "conversations", ["updated_at"])
    op.create_index("ix_nodes_conversation_id", "nodes", ["conversation_id"])
    op.create_index("ix_edges_conversation_id", "edges", ["conversation_id"])


def downgrade() -> None:
    # Drop indexes
    op.drop_index("ix_edges_conversation_id", table_name="edges")
    op.drop_index("ix_nodes_conversation_id", table_name="nodes")
    op.drop_index("ix_conversations_updated_at", table_name="conversations")
    op.drop_index("ix_conversations_user_id", table_name="conversations")

    # Drop tables
    op.drop_table("edges")
    op.drop_table("nodes")
    op.drop_table("conversations")
