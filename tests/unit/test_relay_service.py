import pytest

from config import Config
from models.api_models import Message
from services.conversation_builder import ConversationBuilder
from services.relay_service import RelayService
from tests.fixtures.mock_clients import FlexibleModelClient
from tests.fixtures.responses import GEMINI_OK_RESPONSE, GEMINI_BLOCKED_RESPONSE
from tests.helpers import assert_seed_layout, part_texts
from utils.cache import SeedHistoryCache
from utils.constants import SYSTEM_INSTRUCTION, DEFAULT_SAFETY_SETTINGS
from utils.errors import RequestError, UpstreamError


def make_service(config, client):
    cache = SeedHistoryCache(ConversationBuilder(config.reference_files), policy=config.seed_cache_policy)
    return RelayService(config, cache, client)


@pytest.fixture
def relay_service(config, model_client):
    return make_service(config, model_client)


@pytest.mark.parametrize("prompt", [None, "", "   ", "\n\t"])
def test_validate_prompt_rejects_blank(prompt):
    """Given a missing or blank prompt, validate_prompt should raise RequestError."""
    with pytest.raises(RequestError):
        RelayService.validate_prompt(prompt)


def test_build_payload_orders_turns(relay_service):
    """The payload should be seed history, then prior turns, then the new prompt."""
    prior = [
        Message(role="user", content="first question"),
        Message(role="assistant", content="first answer"),
    ]

    body = relay_service.build_payload("second question", prior).to_wire()
    contents = body["contents"]

    assert len(contents) == 7
    assert_seed_layout(contents)
    assert contents[4] == {"role": "user", "parts": [{"text": "first question"}]}
    assert contents[5] == {"role": "model", "parts": [{"text": "first answer"}]}
    assert contents[6] == {"role": "user", "parts": [{"text": "second question"}]}

    assert body["systemInstruction"] == {"parts": [{"text": SYSTEM_INSTRUCTION}]}
    assert body["generationConfig"] == {
        "temperature": 0.9,
        "topP": 1,
        "topK": 1,
        "maxOutputTokens": 8192,
    }
    assert body["safetySettings"] == DEFAULT_SAFETY_SETTINGS


def test_build_payload_without_safety_settings(reference_files, model_client):
    """Given safety settings disabled, the payload should omit safetySettings."""
    config = Config(api_key="k", reference_files=reference_files, safety_settings_enabled=False)
    body = make_service(config, model_client).build_payload("hi").to_wire()
    assert "safetySettings" not in body


def test_prior_turns_drop_trailing_duplicate_prompt(relay_service):
    """Given a conversation ending with the prompt itself, that trailing turn should not be repeated."""
    prior = [
        Message(role="user", content="hello"),
        Message(role="assistant", content="hi there"),
        Message(role="user", content="what changed?"),
    ]

    turns = relay_service.prepare_prior_turns("what changed?", prior)

    assert [part_texts(t.to_wire()) for t in turns] == [["hello"], ["hi there"]]


def test_prior_turns_truncated_to_most_recent(reference_files, model_client):
    """Given more turns than max_history_messages, only the most recent should be kept."""
    config = Config(api_key="k", reference_files=reference_files, max_history_messages=2)
    service = make_service(config, model_client)
    prior = [Message(role="user" if i % 2 == 0 else "assistant", content=f"m{i}") for i in range(5)]

    turns = service.prepare_prior_turns("next", prior)

    assert [t.parts[0] for t in turns] == ["m3", "m4"]


def test_prior_turns_disabled_history(reference_files, model_client):
    """Given max_history_messages of zero, no prior turns should be forwarded."""
    config = Config(api_key="k", reference_files=reference_files, max_history_messages=0)
    service = make_service(config, model_client)

    assert service.prepare_prior_turns("next", [Message(role="user", content="old")]) == []


@pytest.mark.anyio
async def test_handle_returns_model_text(relay_service, model_client):
    """Given a successful model response, handle should return its text."""
    text = await relay_service.handle("How mature is HelloFresh?")

    assert text == "OK"
    assert len(model_client.call_history) == 1
    last_turn = model_client.last_payload["contents"][-1]
    assert last_turn == {"role": "user", "parts": [{"text": "How mature is HelloFresh?"}]}


@pytest.mark.anyio
async def test_handle_rejects_blank_prompt_without_calling_model(relay_service, model_client):
    """Given a blank prompt, handle should raise before any model call."""
    with pytest.raises(RequestError):
        await relay_service.handle("  ")
    assert model_client.call_history == []


@pytest.mark.anyio
async def test_handle_propagates_upstream_error(config):
    """Given a failing model client, handle should let UpstreamError propagate."""
    client = FlexibleModelClient(error=UpstreamError("quota", status_code=429))
    service = make_service(config, client)

    with pytest.raises(UpstreamError) as exc_info:
        await service.handle("hi")
    assert exc_info.value.status_code == 429


@pytest.mark.anyio
async def test_handle_rejects_malformed_response(config):
    """Given a response without candidate text, handle should raise UpstreamError."""
    service = make_service(config, FlexibleModelClient(responses=[GEMINI_BLOCKED_RESPONSE]))

    with pytest.raises(UpstreamError, match="malformed response"):
        await service.handle("hi")


@pytest.mark.anyio
async def test_handle_with_missing_reference_file(reference_files, tmp_path):
    """Given a missing reference file, handle should still relay with a placeholder turn."""
    config = Config(api_key="k", reference_files=[reference_files[0], str(tmp_path / "gone.csv")])
    client = FlexibleModelClient(responses=[GEMINI_OK_RESPONSE])

    assert await make_service(config, client).handle("hi") == "OK"
    summary_texts = part_texts(client.last_payload["contents"][1])
    assert "* Failed to load data from gone.csv." in summary_texts


@pytest.mark.anyio
async def test_handle_reads_seed_history_off_the_event_loop(relay_service, mocker):
    """Given a relay call, the seed history should be loaded in a worker thread, not on the event loop."""
    import threading

    loop_thread = threading.get_ident()
    seen_threads = []
    original_get = relay_service._seed_cache.get

    def recording_get():
        seen_threads.append(threading.get_ident())
        return original_get()

    mocker.patch.object(relay_service._seed_cache, "get", side_effect=recording_get)

    assert await relay_service.handle("hi") == "OK"
    assert len(seen_threads) == 1
    assert seen_threads[0] != loop_thread
