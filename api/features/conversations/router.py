"""Router for the Conversations feature."""
import logging

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.features.conversations.controller import ConversationController
from api.features.conversations.dtos import (
    ConversationDetailResponse,
    ConversationDTO,
    ConversationListResponse,
    DeleteConversationResponse,
    SaveConversationRequest,
)
from api.shared.auth import get_current_user
from api.shared.security import CurrentUser
from api.shared.db import get_db_session
from api.shared.dtos import HealthCheckResponse
from api.shared.exceptions import ContinuumException
from api.shared.response import ResponseModel
from di.container import ApplicationContainer as DependencyContainer

router = APIRouter()
logger = logging.getLogger("continuum.conversations.router")


@router.get("/health", response_model=ResponseModel[HealthCheckResponse])
async def health_check():
    """Health check endpoint for conversations service."""
    return ResponseModel.success(
        data=HealthCheckResponse(status="healthy", dependencies={"database": "ok"}),
        message="Conversation service is healthy",
    )


@router.get("", response_model=ResponseModel[ConversationListResponse])
@inject
async def list_conversations(
    user: CurrentUser = Depends(get_current_user),
    controller: ConversationController = Depends(
        Provide[DependencyContainer.controllers.conversation_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    """List the caller's conversations, most recently updated first."""
    try:
        result = await controller.list_conversations(user=user, db_session=db_session)
        return ResponseModel.success(data=result, message="Conversations listed")
    except ContinuumException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.exception("Failed to list conversations")
        raise HTTPException(status_code=500, detail=str(e))


@router.post(
    "",
    response_model=ResponseModel[ConversationDTO],
    status_code=status.HTTP_201_CREATED,
)
@inject
async def create_conversation(
    request: SaveConversationRequest,
    user: CurrentUser = Depends(get_current_user),
    controller: ConversationController = Depends(
        Provide[DependencyContainer.controllers.conversation_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    """Save a new conversation tree."""
    try:
        result = await controller.create_conversation(
            request, user=user, db_session=db_session
        )
        return ResponseModel.success(data=result, message="Conversation created")
    except ContinuumException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.exception("Failed to create conversation")
        raise HTTPException(status_code=500, detail=str(e))


@router.get(
    "/{conversation_id}", response_model=ResponseModel[ConversationDetailResponse]
)
@inject
async def get_conversation(
    conversation_id: str,
    user: CurrentUser = Depends(get_current_user),
    controller: ConversationController = Depends(
        Provide[DependencyContainer.controllers.conversation_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    """Load one conversation with its nodes and edges."""
    try:
        result = await controller.get_conversation(
            conversation_id, user=user, db_session=db_session
        )
        return ResponseModel.success(data=result, message="Conversation fetched")
    except ContinuumException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.exception("Failed to fetch conversation %s", conversation_id)
        raise HTTPException(status_code=500, detail=str(e))


@router.put("/{conversation_id}", response_model=ResponseModel[ConversationDTO])
@inject
async def update_conversation(
    conversation_id: str,
    request: SaveConversationRequest,
    user: CurrentUser = Depends(get_current_user),
    controller: ConversationController = Depends(
        Provide[DependencyContainer.controllers.conversation_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    """Replace the stored tree of an existing conversation."""
    try:
        result = await controller.update_conversation(
            conversation_id, request, user=user, db_session=db_session
        )
        return ResponseModel.success(data=result, message="Conversation updated")
    except ContinuumException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.exception("Failed to update conversation %s", conversation_id)
        raise HTTPException(status_code=500, detail=str(e))


@router.delete(
    "/{conversation_id}", response_model=ResponseModel[DeleteConversationResponse]
)
@inject
async def delete_conversation(
    conversation_id: str,
    user: CurrentUser = Depends(get_current_user),
    controller: ConversationController = Depends(
        Provide[DependencyContainer.controllers.conversation_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    """Delete a conversation together with its nodes and edges."""
    try:
        result = await controller.delete_conversation(
            conversation_id, user=user, db_session=db_session
        )
        return ResponseModel.success(data=result, message="Conversation deleted")
    except ContinuumException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.exception("Failed to delete conversation %s", conversation_id)
        raise HTTPException(status_code=500, detail=str(e))
