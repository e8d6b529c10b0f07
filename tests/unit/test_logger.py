import logging

import pytest

from utils.logger import app_logger, get_logger, resolve_level


def test_get_logger_returns_child_of_app_logger():
    """get_logger should namespace component loggers under the app logger."""
    logger = get_logger("relay")

    assert logger.name == "hoppers_hub.relay"
    assert logger.parent is app_logger
    assert logger.getEffectiveLevel() == app_logger.level


@pytest.mark.parametrize("name, expected", [
    ("debug", logging.DEBUG),
    (" WARNING ", logging.WARNING),
    ("nonsense", logging.INFO),
    (None, logging.INFO),
])
def test_resolve_level(name, expected):
    """resolve_level should map level names and fall back to INFO."""
    assert resolve_level(name) == expected


@pytest.mark.anyio
async def test_rejected_request_logged_on_relay_logger(caplog, relay_logger_service):
    """Given a blank prompt, the rejection should be logged by the relay component logger."""
    from routes.relay import relay
    from models.api_models import ChatRequest

    with caplog.at_level(logging.WARNING, logger="hoppers_hub"):
        response = await relay(ChatRequest(prompt="  "), service=relay_logger_service)

    assert response.status_code == 400
    records = [r for r in caplog.records if r.name == "hoppers_hub.relay"]
    assert any("Rejected request" in r.getMessage() for r in records)


@pytest.fixture
def relay_logger_service(config, model_client):
    from services.conversation_builder import ConversationBuilder
    from services.relay_service import RelayService
    from utils.cache import SeedHistoryCache

    cache = SeedHistoryCache(ConversationBuilder(config.reference_files))
    return RelayService(config, cache, model_client)
