"""
Gemini REST client.
Posts generateContent requests and extracts the answer text.
"""
import httpx

from config import Config
from utils.errors import UpstreamError
from utils.http_client import HTTPClientManager
from utils.logger import get_logger

logger = get_logger("upstream")


class GeminiClient:
    """Thin async wrapper over the generateContent endpoint."""

    def __init__(self, config: Config, http_client: httpx.AsyncClient | None = None):
        self._config = config
        self._http_client = http_client

    @property
    def http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = HTTPClientManager.get_model_client(self._config)
        return self._http_client

    async def generate_content(self, payload: dict) -> dict:
        """
        Send one generateContent request.

        Args:
            payload: JSON body (contents, generationConfig, safetySettings)

        Returns:
            Decoded JSON response

        Raises:
            UpstreamError: On a non-success status or a non-JSON body
        """
        response = await self.http_client.post(
            self._config.generate_content_url,
            json=payload,
            headers={
                "Content-Type": "application/json",
                "x-goog-api-key": self._config.api_key,
            },
        )

        if not response.is_success:
            message = self._error_message(response)
            logger.error(f"Error from Gemini API (status {response.status_code}): {message}")
            raise UpstreamError(message, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError("response body is not valid JSON") from e

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        """Pull error.message out of an upstream error body."""
        try:
            data = response.json()
        except ValueError:
            return "Unknown error"

        if isinstance(data, dict) and isinstance(data.get("error"), dict):
            return data["error"].get("message") or "Unknown error"
        return "Unknown error"

    @staticmethod
    def extract_text(data: dict) -> str:
        """
        Return the first candidate's first text part.

        Raises:
            UpstreamError: If the response has no candidates or text
        """
        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            finish_reason = None
            candidates = data.get("candidates") if isinstance(data, dict) else None
            if isinstance(candidates, list) and candidates and isinstance(candidates[0], dict):
                finish_reason = candidates[0].get("finishReason")
            detail = f" (finishReason: {finish_reason})" if finish_reason else ""
            raise UpstreamError(f"malformed response, no candidate text{detail}") from e

        if not isinstance(text, str):
            raise UpstreamError("malformed response, candidate text is not a string")
        return text
