"""Router for the Chat feature.

Failures are answered in the same shape as successes, ``{"reply": "Error:
..."}``, with the status code telling input errors (400) from configuration
and upstream errors (500). The body is parsed here rather than by FastAPI so
that malformed JSON gets that shape too.
"""
import logging

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from starlette.requests import Request

from api.features.chat.controller import ChatController
from api.features.chat.dtos import ChatRequest, ChatResponse
from api.features.chat.service import INVALID_MESSAGES
from api.shared.exceptions import ContinuumException
from di.container import ApplicationContainer as DependencyContainer

router = APIRouter()
logger = logging.getLogger("continuum.chat.router")


def error_reply(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ChatResponse(reply=f"Error: {message}").model_dump(),
    )


@router.post("", response_model=ChatResponse)
@inject
async def chat(
    request: Request,
    controller: ChatController = Depends(
        Provide[DependencyContainer.controllers.chat_controller]
    ),
):
    """Complete a root-first message history."""
    try:
        body = await request.json()
    except ValueError:
        logger.warning("Chat request body is not valid JSON")
        return error_reply(400, INVALID_MESSAGES)
    if not isinstance(body, dict):
        return error_reply(400, INVALID_MESSAGES)

    try:
        return await controller.complete(ChatRequest.model_validate(body))
    except ContinuumException as e:
        logger.warning("Chat request failed: %s (%s)", e.message, e.error_code)
        return error_reply(e.status_code, e.message)
    except Exception as e:
        logger.exception("Unexpected chat failure")
        return error_reply(500, str(e) or "Unknown error occurred")
