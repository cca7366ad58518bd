import logging
import sys
import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request

from api.shared.exceptions import ContinuumException
from core.settings import SETTINGS
from di.container import ApplicationContainer as DependencyContainer

# Configure logging
logging.basicConfig(
    level=SETTINGS.APP.LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger("continuum")


class CustomFastAPI(FastAPI):
    container: DependencyContainer


@asynccontextmanager
async def lifespan(_app: CustomFastAPI):
    logger.info("Starting application initialization...")
    start_time = time.time()

    try:
        logger.info("Initializing database connection...")
        db_start = time.time()
        db_resource = _app.container.infrastructure.database()
        await db_resource.init()
        await db_resource.ping()
        logger.info(
            f"Database connection established in {time.time() - db_start:.2f}s"
        )
        logger.info(
            f"Application startup completed in {time.time() - start_time:.2f}s"
        )
    except Exception as e:
        logger.exception(f"Failed to initialize application: {str(e)}")
        raise

    yield

    db_resource = _app.container.infrastructure.database()
    if db_resource:
        await db_resource.shutdown()
    logger.info("Application shutdown complete")


def create_fastapi_app() -> CustomFastAPI:
    origins = [
        "http://localhost",
        "http://localhost:3000",
        "http://localhost:8000",
    ]

    _app = CustomFastAPI(
        title="Continuum API",
        description="Branching conversation canvas backed by a chat completion model",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Initialize dependency container
    _app.container = DependencyContainer()
    _app.container.wire(modules=[sys.modules[__name__]])
    _app.container.init_resources()

    # Add CORS middleware
    _app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include feature routers
    from api.features.chat.router import router as chat_router
    from api.features.conversations.router import router as conversations_router

    _app.include_router(
        conversations_router, prefix="/api/conversations", tags=["Conversations"]
    )
    _app.include_router(chat_router, prefix="/api/chat", tags=["Chat"])

    register_exception_handlers(_app)
    register_health_routes(_app)
    return _app


def register_health_routes(_app: FastAPI) -> None:
    @_app.get("/")
    async def root():
        return {"message": "Continuum API is running", "status": "ok"}

    @_app.get("/health")
    async def health():
        return {"status": "ok"}

    @_app.get("/ready")
    async def ready():
        return {"status": "ok"}


def register_exception_handlers(_app: FastAPI) -> None:
    @_app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": _reason(exc.status_code),
                "detail": exc.detail,
                "status_code": exc.status_code,
            },
            headers=getattr(exc, "headers", None),
        )

    @_app.exception_handler(ContinuumException)
    async def continuum_exception_handler(request: Request, exc: ContinuumException):
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": exc.error_code,
                "detail": exc.message,
                "status_code": exc.status_code,
            },
        )

    @_app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content={
                "error": "Validation Error",
                "detail": jsonable_encoder(exc.errors()),
                "status_code": 422,
            },
        )

    @_app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception: %s", exc)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal Server Error",
                "detail": "An unexpected error occurred",
                "status_code": 500,
            },
        )


def _reason(status_code: int) -> str:
    return {
        400: "Bad Request",
        401: "Unauthorized",
        404: "Not Found",
        500: "Internal Server Error",
    }.get(status_code, "Error")


app = create_fastapi_app()


def run() -> None:
    """Serve the app with uvicorn using the configured host and port."""
    uvicorn.run(
        "api.main:app",
        host=SETTINGS.APP.HOST,
        port=SETTINGS.APP.PORT,
        log_level=SETTINGS.APP.LOG_LEVEL.lower(),
        reload=SETTINGS.APP.ENVIRONMENT == "local",
    )


if __name__ == "__main__":
    run()
