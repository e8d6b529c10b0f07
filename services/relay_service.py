"""
Relay service containing the request-assembly logic.
Builds the chat payload from seed history, prior turns and the new prompt, then relays it to the model.
"""
from typing import Optional

from starlette.concurrency import run_in_threadpool

from config import Config
from models.api_models import Message
from models.chat_models import ChatPayload, Content, GenerationConfig
from services.gemini_client import GeminiClient
from utils.cache import SeedHistoryCache
from utils.constants import SYSTEM_INSTRUCTION, DEFAULT_SAFETY_SETTINGS, Role
from utils.errors import RequestError
from utils.logger import get_logger

logger = get_logger("relay")


class RelayService:
    """Service for handling a single relay request."""

    def __init__(self, config: Config, seed_cache: SeedHistoryCache, client: GeminiClient):
        self._config = config
        self._seed_cache = seed_cache
        self._client = client

    @staticmethod
    def validate_prompt(prompt: Optional[str]) -> str:
        """Reject a missing, empty or whitespace-only prompt."""
        if prompt is None:
            raise RequestError("Missing 'prompt' in request body")
        if not prompt.strip():
            raise RequestError("'prompt' must not be empty")
        return prompt

    def prepare_prior_turns(self, prompt: str, prior_turns: Optional[list[Message]]) -> list[Content]:
        """
        Convert caller-supplied turns to wire shape.

        The UI sends its history with the just-typed prompt already appended, so a
        trailing user turn equal to the prompt is dropped. Only the most recent
        max_history_messages turns are kept.
        """
        if not prior_turns:
            return []

        turns = list(prior_turns)
        if turns[-1].role == "user" and turns[-1].content.strip() == prompt.strip():
            turns = turns[:-1]

        limit = self._config.max_history_messages
        if len(turns) > limit:
            logger.info(f"Truncating history from {len(turns)} to {limit} messages")
            turns = turns[len(turns) - limit:] if limit else []

        return [Content.from_message(message) for message in turns]

    def build_payload(
        self,
        prompt: str,
        prior_turns: Optional[list[Message]] = None,
        seed_history: Optional[list[Content]] = None
    ) -> ChatPayload:
        """Assemble seed history, prior turns and the new prompt in that order."""
        if seed_history is None:
            seed_history = self._seed_cache.get()

        contents = [
            *seed_history,
            *self.prepare_prior_turns(prompt, prior_turns),
            Content.text(Role.USER, prompt),
        ]

        return ChatPayload(
            contents=contents,
            system_instruction=SYSTEM_INSTRUCTION,
            generation_config=GenerationConfig.from_config(self._config),
            safety_settings=DEFAULT_SAFETY_SETTINGS if self._config.safety_settings_enabled else None,
        )

    async def handle(self, prompt: Optional[str], prior_turns: Optional[list[Message]] = None) -> str:
        """
        Relay one prompt to the model and return its answer text.

        Raises:
            RequestError: If the prompt is missing or blank
            UpstreamError: If the model API fails or answers with a malformed body
        """
        prompt = self.validate_prompt(prompt)
        # Seed history reads the reference files from disk; keep that off the event loop
        seed_history = await run_in_threadpool(self._seed_cache.get)
        payload = self.build_payload(prompt, prior_turns, seed_history)

        logger.info(
            f"Relaying prompt ({len(prompt)} chars) with {len(payload.contents)} turns to {self._config.model_name}"
        )
        data = await self._client.generate_content(payload.to_wire())
        text = GeminiClient.extract_text(data)
        logger.info(f"Model responded with {len(text)} characters")

        return text
