"""Conversation repository using base repository pattern."""
from typing import List, Optional

from sqlalchemy import delete, func, select, update

from api.features.conversations.entities.conversation import (
    Conversation,
    Edge,
    Node,
)
from api.shared.base import BaseRepository


class ConversationRepository(BaseRepository[Conversation]):
    """Repository for conversations and the nodes/edges they own.

    Every conversation lookup is filtered by owner; a conversation that exists
    but belongs to someone else is indistinguishable from a missing one.
    """

    model = Conversation

    async def create_conversation(self, *, user_id: str, title: str) -> Conversation:
        return await self.create(Conversation(user_id=user_id, title=title))

    async def get_owned(self, conversation_id: str, user_id: str) -> Optional[Conversation]:
        stmt = select(Conversation).where(
            Conversation.id == conversation_id,
            Conversation.user_id == user_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_owned(self, user_id: str) -> List[Conversation]:
        return await self.get_by_fields(Conversation.updated_at.desc(), user_id=user_id)

    async def touch(
        self, conversation: Conversation, *, title: Optional[str], rename: bool
    ) -> Conversation:
        """Bump ``updated_at``; with ``rename`` also set the title, ``None`` included."""
        values = {"updated_at": func.now()}
        if rename:
            values["title"] = title
        await self.session.execute(
            update(Conversation).where(Conversation.id == conversation.id).values(**values)
        )
        await self.session.flush()
        await self.session.refresh(conversation)
        return conversation

    async def delete_owned(self, conversation_id: str, user_id: str) -> bool:
        return await self.delete_by_fields(id=conversation_id, user_id=user_id) > 0

    async def delete_conversation(self, conversation_id: str) -> None:
        await self.session.execute(delete(Conversation).where(Conversation.id == conversation_id))
        await self.session.flush()

    async def add_nodes(self, nodes: List[Node]) -> None:
        self.session.add_all(nodes)
        await self.session.flush()

    async def add_edges(self, edges: List[Edge]) -> None:
        self.session.add_all(edges)
        await self.session.flush()

    async def clear_graph(self, conversation_id: str) -> None:
        """Delete edges first, then nodes."""
        await self.session.execute(delete(Edge).where(Edge.conversation_id == conversation_id))
        await self.session.execute(delete(Node).where(Node.conversation_id == conversation_id))
        await self.session.flush()

    async def get_nodes(self, conversation_id: str) -> List[Node]:
        stmt = (
            select(Node)
            .where(Node.conversation_id == conversation_id)
            .order_by(Node.created_at.asc(), Node.seq.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_edges(self, conversation_id: str) -> List[Edge]:
        stmt = select(Edge).where(Edge.conversation_id == conversation_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
