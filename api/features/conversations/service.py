"""Service layer for the Conversations feature.

Saving is a full replace: the submitted nodes and edges become the stored
graph, whatever was there before is removed. Creating a conversation commits
after each step and undoes the conversation row if a later step fails;
updating an existing one runs in a single transaction.
"""
import logging
from typing import Callable, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.features.conversations.exceptions import (
    ConversationNotFoundError,
    ConversationPersistenceError,
    ConversationValidationError,
)
from api.features.conversations.models import (
    ConversationModel,
    ConversationTreeModel,
    EdgeModel,
    NodeModel,
)
from api.features.conversations.repositories.conversation_repository import (
    ConversationRepository,
)
from api.shared.utils import is_valid_uuid

logger = logging.getLogger("continuum.conversations.service")

RepositoryFactory = Callable[[AsyncSession], ConversationRepository]


class ConversationService:
    """Owner-scoped conversation persistence."""

    def __init__(
        self,
        repository_factory: RepositoryFactory = ConversationRepository,
        *,
        strict_delete: bool = True,
        default_title: str = "Untitled Conversation",
    ):
        self.repository_factory = repository_factory
        self.strict_delete = strict_delete
        self.default_title = default_title

    async def save(
        self,
        *,
        conversation_id: Optional[str],
        title: Optional[str],
        nodes: Optional[List[NodeModel]],
        edges: Optional[List[EdgeModel]],
        owner_id: str,
        db_session: AsyncSession,
        rename: Optional[bool] = None,
    ) -> ConversationModel:
        """Create (``conversation_id is None``) or fully replace a conversation.

        On replace the title is written when ``rename`` is set, so an explicit
        ``None`` clears it. ``rename`` defaults to ``title is not None``.
        """
        self._validate_graph(nodes, edges)
        repository = self.repository_factory(db_session)
        if conversation_id is None:
            return await self._create(repository, title, nodes, edges, owner_id)
        if rename is None:
            rename = title is not None
        return await self._replace(
            repository, conversation_id, title, rename, nodes, edges, owner_id
        )

    async def load(
        self, conversation_id: str, *, owner_id: str, db_session: AsyncSession
    ) -> ConversationTreeModel:
        if not is_valid_uuid(conversation_id):
            raise ConversationNotFoundError(conversation_id)
        repository = self.repository_factory(db_session)
        conversation = await repository.get_owned(conversation_id, owner_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)

        nodes = await repository.get_nodes(conversation_id)
        edges = await repository.get_edges(conversation_id)
        return ConversationTreeModel(
            conversation=ConversationModel.from_entity(conversation),
            nodes=[NodeModel.from_entity(node) for node in nodes],
            edges=[EdgeModel.from_entity(edge) for edge in edges],
        )

    async def list(self, *, owner_id: str, db_session: AsyncSession) -> List[ConversationModel]:
        """Owner's conversations, most recently updated first."""
        repository = self.repository_factory(db_session)
        entities = await repository.list_owned(owner_id)
        return [ConversationModel.from_entity(entity) for entity in entities]

    async def delete(
        self, conversation_id: str, *, owner_id: str, db_session: AsyncSession
    ) -> bool:
        """Delete an owned conversation; nodes and edges go by cascade.

        Returns whether a row was removed. With ``strict_delete`` a miss raises
        ``ConversationNotFoundError`` instead.
        """
        deleted = False
        if is_valid_uuid(conversation_id):
            repository = self.repository_factory(db_session)
            try:
                deleted = await repository.delete_owned(conversation_id, owner_id)
                await repository.commit()
            except SQLAlchemyError as exc:
                await repository.rollback()
                raise ConversationPersistenceError(
                    "delete conversation", str(exc), {"conversation_id": conversation_id}
                ) from exc

        if not deleted and self.strict_delete:
            raise ConversationNotFoundError(conversation_id)
        logger.info("Conversation %s delete requested by %s (deleted=%s)", conversation_id, owner_id, deleted)
        return deleted

    async def _create(
        self,
        repository: ConversationRepository,
        title: Optional[str],
        nodes: List[NodeModel],
        edges: List[EdgeModel],
        owner_id: str,
    ) -> ConversationModel:
        try:
            conversation = await repository.create_conversation(
                user_id=owner_id, title=title or self.default_title
            )
            await repository.commit()
        except SQLAlchemyError as exc:
            await repository.rollback()
            raise ConversationPersistenceError("create conversation", str(exc)) from exc

        conversation_id = str(conversation.id)
        try:
            await repository.add_nodes(
                [node.to_entity(conversation_id, seq) for seq, node in enumerate(nodes)]
            )
            await repository.commit()
        except SQLAlchemyError as exc:
            await self._undo_create(repository, conversation_id)
            raise ConversationPersistenceError(
                "insert nodes", str(exc), {"conversation_id": conversation_id}
            ) from exc

        if edges:
            try:
                await repository.add_edges([edge.to_entity(conversation_id) for edge in edges])
                await repository.commit()
            except SQLAlchemyError as exc:
                await self._undo_create(repository, conversation_id)
                raise ConversationPersistenceError(
                    "insert edges", str(exc), {"conversation_id": conversation_id}
                ) from exc

        logger.info(
            "Conversation %s created for %s with %d nodes and %d edges",
            conversation_id,
            owner_id,
            len(nodes),
            len(edges),
        )
        return ConversationModel.from_entity(conversation)

    async def _replace(
        self,
        repository: ConversationRepository,
        conversation_id: str,
        title: Optional[str],
        rename: bool,
        nodes: List[NodeModel],
        edges: List[EdgeModel],
        owner_id: str,
    ) -> ConversationModel:
        if not is_valid_uuid(conversation_id):
            raise ConversationNotFoundError(conversation_id)
        conversation = await repository.get_owned(conversation_id, owner_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)

        try:
            conversation = await repository.touch(conversation, title=title, rename=rename)
            await repository.clear_graph(conversation_id)
            await repository.add_nodes(
                [node.to_entity(conversation_id, seq) for seq, node in enumerate(nodes)]
            )
            if edges:
                await repository.add_edges([edge.to_entity(conversation_id) for edge in edges])
            await repository.commit()
        except SQLAlchemyError as exc:
            await repository.rollback()
            raise ConversationPersistenceError(
                "update conversation", str(exc), {"conversation_id": conversation_id}
            ) from exc

        logger.info(
            "Conversation %s replaced by %s with %d nodes and %d edges",
            conversation_id,
            owner_id,
            len(nodes),
            len(edges),
        )
        return ConversationModel.from_entity(conversation)

    async def _undo_create(self, repository: ConversationRepository, conversation_id: str) -> None:
        """Best-effort removal of a half-created conversation."""
        try:
            await repository.rollback()
            await repository.delete_conversation(conversation_id)
            await repository.commit()
        except SQLAlchemyError:
            logger.exception("Failed to remove partially saved conversation %s", conversation_id)

    @staticmethod
    def _validate_graph(
        nodes: Optional[Sequence[NodeModel]], edges: Optional[Sequence[EdgeModel]]
    ) -> None:
        if not nodes:
            raise ConversationValidationError("Nodes array is required")
        if edges is None:
            raise ConversationValidationError("Edges array is required")

        node_ids = set()
        for node in nodes:
            if node.id in node_ids:
                raise ConversationValidationError(
                    f"Duplicate node id '{node.id}'", {"node_id": node.id}
                )
            node_ids.add(node.id)

        edge_ids = set()
        for edge in edges:
            if edge.id in edge_ids:
                raise ConversationValidationError(
                    f"Duplicate edge id '{edge.id}'", {"edge_id": edge.id}
                )
            edge_ids.add(edge.id)
            missing = [end for end in (edge.source, edge.target) if end not in node_ids]
            if missing:
                raise ConversationValidationError(
                    f"Edge '{edge.id}' references unknown node '{missing[0]}'",
                    {"edge_id": edge.id, "node_id": missing[0]},
                )
