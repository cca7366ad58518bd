from __future__ import annotations

from dependency_injector import containers, providers

from core.settings import SETTINGS
from infra.resources import DatabaseResource


class InfrastructureContainer(containers.DeclarativeContainer):
    # Database
    database = providers.Resource(
        DatabaseResource,
        database_url=str(SETTINGS.DATABASE.DATABASE_URL),
    )

    # Access token verification
    token_verifier = providers.Singleton(
        "api.shared.security.TokenVerifier",
        secret=SETTINGS.AUTH.SUPABASE_JWT_SECRET.get_secret_value(),
        algorithm=SETTINGS.AUTH.JWT_ALGORITHM,
        audience=SETTINGS.AUTH.JWT_AUDIENCE,
        cookie_name=SETTINGS.AUTH.AUTH_COOKIE_NAME,
    )


class ServiceContainer(containers.DeclarativeContainer):
    """Application services - depends on infrastructure."""

    infrastructure = providers.DependenciesContainer()

    # Services
    conversation_service = providers.Factory(
        "api.features.conversations.service.ConversationService",
        strict_delete=SETTINGS.PERSISTENCE.STRICT_DELETE,
        default_title=SETTINGS.PERSISTENCE.DEFAULT_TITLE,
    )

    # One client per process; the OpenAI client pools its connections
    completion_service = providers.Singleton(
        "api.features.chat.service.CompletionService",
        api_key=SETTINGS.OPENAI.OPENAI_API_KEY.get_secret_value(),
        model=SETTINGS.OPENAI.OPENAI_MODEL,
        timeout=SETTINGS.OPENAI.OPENAI_TIMEOUT,
    )


class ControllerContainer(containers.DeclarativeContainer):
    """Controller-specific dependencies."""

    services = providers.DependenciesContainer()

    # Controllers
    conversation_controller = providers.Factory(
        "api.features.conversations.controller.ConversationController",
        conversation_service=services.conversation_service,
    )

    chat_controller = providers.Factory(
        "api.features.chat.controller.ChatController",
        completion_service=services.completion_service,
    )


class ApplicationContainer(containers.DeclarativeContainer):
    """Main application container composing all sub-containers."""

    wiring_config = containers.WiringConfiguration(
        modules=[
            "api.main",
            "api.shared.db",
            "api.shared.auth",
            "api.features.conversations.router",
            "api.features.chat.router",
        ]
    )

    infrastructure = providers.Container(InfrastructureContainer)
    services = providers.Container(ServiceContainer, infrastructure=infrastructure)
    controllers = providers.Container(ControllerContainer, services=services)
