"""
HTTP client utilities with connection pooling.
Provides a reusable httpx client for model API calls.
"""
import httpx
from config import Config


class HTTPClientManager:
    """Manages the shared httpx client with connection pooling."""

    _model_client: httpx.AsyncClient | None = None

    @classmethod
    def get_model_client(cls, config: Config) -> httpx.AsyncClient:
        """
        Get or create a shared httpx client for model API calls.

        Features:
        - Connection pooling (reuses TCP connections)
        - Timeout taken from configuration

        Args:
            config: Application configuration

        Returns:
            Configured httpx.AsyncClient for model API calls
        """
        if cls._model_client is None:
            limits = httpx.Limits(
                max_connections=20,
                max_keepalive_connections=5,
                keepalive_expiry=30.0
            )

            cls._model_client = httpx.AsyncClient(
                timeout=config.model_timeout,
                limits=limits,
            )

        return cls._model_client

    @classmethod
    async def close_all(cls) -> None:
        """
        Close all managed clients and clean up connections.
        """
        if cls._model_client is not None:
            await cls._model_client.aclose()
            cls._model_client = None
