"""Controller for the Chat feature."""
from api.features.chat.dtos import ChatRequest, ChatResponse
from api.features.chat.service import CompletionService


class ChatController:
    def __init__(self, completion_service: CompletionService):
        self.completion_service = completion_service

    async def complete(self, request: ChatRequest) -> ChatResponse:
        reply = await self.completion_service.complete(request.messages)
        return ChatResponse(reply=reply)
