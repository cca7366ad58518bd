"""Shared fixtures.

Settings are read once at import time, so the environment is prepared before
any application module is imported.
"""
import os
import time

os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret-with-at-least-32-bytes!"
os.environ["OPENAI_API_KEY"] = "sk-test"
os.environ["STRICT_DELETE"] = "true"

import jwt  # noqa: E402
import pytest  # noqa: E402
from dependency_injector import providers  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from api.features.chat.controller import ChatController  # noqa: E402
from api.features.chat.service import CompletionService  # noqa: E402
from api.features.conversations.controller import ConversationController  # noqa: E402
from api.features.conversations.service import ConversationService  # noqa: E402
from api.main import app as fastapi_app  # noqa: E402
from api.shared.db import get_db_session  # noqa: E402
from tests.fakes import FakeConversationRepository  # noqa: E402

JWT_SECRET = os.environ["SUPABASE_JWT_SECRET"]


def make_token(
    sub="user-1",
    email="user-1@example.com",
    secret=JWT_SECRET,
    audience="authenticated",
    expires_in=3600,
):
    claims = {"aud": audience, "exp": int(time.time()) + expires_in}
    if sub is not None:
        claims["sub"] = sub
    if email is not None:
        claims["email"] = email
    return jwt.encode(claims, secret, algorithm="HS256")


@pytest.fixture
def token_factory():
    return make_token


@pytest.fixture
def auth_headers():
    def _headers(sub="user-1"):
        return {"Authorization": f"Bearer {make_token(sub=sub)}"}

    return _headers


@pytest.fixture
def fake_repository():
    return FakeConversationRepository()


@pytest.fixture
def conversation_service(fake_repository):
    return ConversationService(repository_factory=fake_repository)


@pytest.fixture
def app(conversation_service):
    async def _no_db_session():
        yield None

    fastapi_app.dependency_overrides[get_db_session] = _no_db_session
    fastapi_app.container.controllers.conversation_controller.override(
        providers.Factory(ConversationController, conversation_service=conversation_service)
    )
    yield fastapi_app
    fastapi_app.container.controllers.conversation_controller.reset_override()
    fastapi_app.container.controllers.chat_controller.reset_override()
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def use_completion_service(app):
    """Route ``POST /api/chat`` through the given service."""

    def _use(service: CompletionService):
        app.container.controllers.chat_controller.override(
            providers.Factory(ChatController, completion_service=service)
        )

    return _use
