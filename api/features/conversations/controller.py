"""Controller for the Conversations feature."""
from sqlalchemy.ext.asyncio import AsyncSession

from api.features.conversations.dtos import (
    ConversationDetailResponse,
    ConversationDTO,
    ConversationListResponse,
    DeleteConversationResponse,
    SaveConversationRequest,
)
from api.features.conversations.service import ConversationService
from api.shared.security import CurrentUser


class ConversationController:
    """Maps wire DTOs to the conversation service for the signed-in user."""

    def __init__(self, conversation_service: ConversationService):
        self.conversation_service = conversation_service

    async def list_conversations(
        self, *, user: CurrentUser, db_session: AsyncSession
    ) -> ConversationListResponse:
        items = await self.conversation_service.list(owner_id=user.id, db_session=db_session)
        dtos = [ConversationDTO.from_model(item) for item in items]
        return ConversationListResponse(conversations=dtos, total=len(dtos))

    async def get_conversation(
        self, conversation_id: str, *, user: CurrentUser, db_session: AsyncSession
    ) -> ConversationDetailResponse:
        model = await self.conversation_service.load(
            conversation_id, owner_id=user.id, db_session=db_session
        )
        return ConversationDetailResponse.from_model(model)

    async def create_conversation(
        self,
        request: SaveConversationRequest,
        *,
        user: CurrentUser,
        db_session: AsyncSession,
    ) -> ConversationDTO:
        model = await self.conversation_service.save(
            conversation_id=None,
            title=request.title,
            nodes=request.node_models(),
            edges=request.edge_models(),
            owner_id=user.id,
            db_session=db_session,
        )
        return ConversationDTO.from_model(model)

    async def update_conversation(
        self,
        conversation_id: str,
        request: SaveConversationRequest,
        *,
        user: CurrentUser,
        db_session: AsyncSession,
    ) -> ConversationDTO:
        model = await self.conversation_service.save(
            conversation_id=conversation_id,
            title=request.title,
            nodes=request.node_models(),
            edges=request.edge_models(),
            owner_id=user.id,
            db_session=db_session,
            rename="title" in request.model_fields_set,
        )
        return ConversationDTO.from_model(model)

    async def delete_conversation(
        self, conversation_id: str, *, user: CurrentUser, db_session: AsyncSession
    ) -> DeleteConversationResponse:
        deleted = await self.conversation_service.delete(
            conversation_id, owner_id=user.id, db_session=db_session
        )
        return DeleteConversationResponse(success=True, deleted=deleted)
