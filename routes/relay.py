"""
Route handlers for the model relay.
Handles the /api/gemini endpoint and seed history invalidation.
"""
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from models.api_models import ChatRequest, ChatResponse, ErrorResponse
from services.relay_service import RelayService
from utils.cache import SeedHistoryCache
from utils.constants import ErrorMessages
from utils.errors import RequestError, UpstreamError
from utils.logger import get_logger

logger = get_logger("relay")

router = APIRouter()

RELAY_PATH = "/api/gemini"


def get_relay_service(request: Request) -> RelayService:
    """Relay service built at startup by the app factory."""
    return request.app.state.relay_service


def get_seed_cache(request: Request) -> SeedHistoryCache:
    """Seed history cache built at startup by the app factory."""
    return request.app.state.seed_cache


def send_error(status_code: int, error: str, details: str | None = None, headers: dict | None = None) -> JSONResponse:
    """Build the uniform error body."""
    body = ErrorResponse(error=error, details=details)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers,
    )


@router.post(
    RELAY_PATH,
    response_model=ChatResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def relay(request: ChatRequest, service: RelayService = Depends(get_relay_service)):
    """
    Relay a prompt to the model, seeded with the reference datasets.
    """
    try:
        text = await service.handle(request.prompt, request.conversation)
        return ChatResponse(response=text)

    except RequestError as e:
        logger.warning(f"Rejected request: {e}")
        return send_error(e.status_code, ErrorMessages.INVALID_REQUEST, str(e))
    except UpstreamError as e:
        logger.error(f"Upstream error: {e}")
        error = ErrorMessages.PROCESSING_FAILED
        if e.status_code is not None:
            error = f"{error} (upstream status {e.status_code})"
        return send_error(status.HTTP_500_INTERNAL_SERVER_ERROR, error, str(e))
    except Exception as e:
        logger.error(f"Error processing request: {str(e)}")
        return send_error(status.HTTP_500_INTERNAL_SERVER_ERROR, ErrorMessages.PROCESSING_FAILED, str(e))


@router.delete(f"{RELAY_PATH}/seed-cache")
async def invalidate_seed_cache(cache: SeedHistoryCache = Depends(get_seed_cache)):
    """Drop the cached seed history so the next request reloads the reference files."""
    removed = cache.invalidate()
    return {"invalidated": removed, "policy": cache.policy}
