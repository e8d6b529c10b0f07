"""
Hoppers Hub Relay - FastAPI application relaying analyst questions to Gemini.
Every request is seeded with the Hopper's Hub reference datasets.
"""
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Config
from routes import relay
from services.conversation_builder import ConversationBuilder
from services.gemini_client import GeminiClient
from services.relay_service import RelayService
from utils.cache import SeedHistoryCache
from utils.constants import ErrorMessages
from utils.errors import ConfigurationError
from utils.http_client import HTTPClientManager
from utils.logger import app_logger, get_logger

logger = get_logger("relay")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    yield
    await HTTPClientManager.close_all()


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors with the uniform error body"""
    errors = exc.errors()
    app_logger.error(f"Validation error for {request.url}")
    app_logger.error(f"Errors: {errors}")

    message = "Validation error"
    if errors:
        first_error = errors[0]
        field = first_error.get('loc', [])[-1] if first_error.get('loc') else 'body'
        message = f"{field}: {first_error.get('msg', 'Validation error')}"

    return relay.send_error(status.HTTP_400_BAD_REQUEST, ErrorMessages.INVALID_REQUEST, message)


async def method_not_allowed_handler(request: Request, exc: StarletteHTTPException):
    """Give every 405 the uniform error body; other HTTP errors keep the FastAPI default"""
    if exc.status_code != status.HTTP_405_METHOD_NOT_ALLOWED:
        return await http_exception_handler(request, exc)

    logger.warning(f"Rejected {request.method} {request.url.path}")
    return relay.send_error(exc.status_code, ErrorMessages.METHOD_NOT_ALLOWED, headers=exc.headers)


def create_app(config: Config | None = None, client: GeminiClient | None = None) -> FastAPI:
    """
    Build the application.

    Args:
        config: Application configuration (read from the environment if omitted)
        client: Model client override

    Raises:
        ConfigurationError: If the configuration is incomplete
    """
    config = config or Config.from_env()

    builder = ConversationBuilder(config.reference_files)
    seed_cache = SeedHistoryCache(
        builder,
        policy=config.seed_cache_policy,
        ttl_seconds=config.seed_cache_ttl_seconds
    )
    client = client or GeminiClient(config)

    app = FastAPI(title=config.app_title, lifespan=lifespan)
    app.state.config = config
    app.state.seed_cache = seed_cache
    app.state.relay_service = RelayService(config, seed_cache, client)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, method_not_allowed_handler)

    #root endpoint
    @app.get("/")
    async def root():
        """Root endpoint - health check."""
        return {"message": "Hoppers Hub relay is running"}

    app.include_router(relay.router, tags=["relay"])

    app_logger.info(f"Relay ready: model={config.model_name}, reference files={config.reference_files}")
    return app


if __name__ == "__main__":
    import os
    import uvicorn

    try:
        application = create_app()
    except ConfigurationError as e:
        app_logger.critical(f"Configuration error: {e}")
        sys.exit(1)

    uvicorn.run(
        application,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000"))
    )
