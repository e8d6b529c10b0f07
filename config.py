"""
Configuration module for the Hoppers Hub relay.
Handles environment variables and application settings.

A single Config instance is built at process start with Config.from_env()
and handed to the app factory; handlers read it from app.state.
"""
import os
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from utils.errors import ConfigurationError

load_dotenv()

API_KEY_ENV = "GOOGLE_GENERATIVE_AI_API_KEY"

SeedCachePolicy = Literal["none", "process", "ttl"]


class Config(BaseModel):
    """Application configuration."""

    # API Keys
    api_key: str = Field(description="Gemini API key")

    # API Configuration
    model_name: str = "gemini-2.0-flash-exp"
    api_base_url: str = "https://generativelanguage.googleapis.com/v1beta"

    # Application Settings
    app_title: str = "Hoppers Hub Relay"
    max_history_messages: int = Field(default=30, ge=0)
    reference_files: list[str] = Field(
        default_factory=lambda: [
            "./data/cge_hh_h12025.csv",
            "./data/cge_hh_h22024.csv",
        ]
    )

    # Generation
    temperature: float = 0.9
    top_p: float = 1
    top_k: int = 1
    max_output_tokens: int = 8192
    safety_settings_enabled: bool = True

    # Seed history lifetime
    seed_cache_policy: SeedCachePolicy = "none"
    seed_cache_ttl_seconds: float = Field(default=300.0, gt=0)

    # Timeouts (in seconds)
    model_timeout: float = 120.0

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        """Validate that the API key is provided and non-empty."""
        if not v or not v.strip():
            raise ValueError(f"Missing {API_KEY_ENV} environment variable")
        return v.strip()

    @property
    def generate_content_url(self) -> str:
        """Full URL of the generateContent endpoint for the configured model."""
        return f"{self.api_base_url.rstrip('/')}/models/{self.model_name}:generateContent"

    @classmethod
    def from_env(cls, environ: dict | None = None) -> "Config":
        """
        Build configuration from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            Validated Config instance

        Raises:
            ConfigurationError: If the API key is missing or a setting is invalid
        """
        env = os.environ if environ is None else environ

        values: dict = {"api_key": env.get(API_KEY_ENV, "")}

        optional = {
            "GEMINI_MODEL": "model_name",
            "GEMINI_API_BASE_URL": "api_base_url",
            "MAX_HISTORY_MESSAGES": "max_history_messages",
            "SEED_CACHE_POLICY": "seed_cache_policy",
            "SEED_CACHE_TTL_SECONDS": "seed_cache_ttl_seconds",
            "MODEL_TIMEOUT": "model_timeout",
        }
        for env_name, field in optional.items():
            if env.get(env_name):
                values[field] = env[env_name].strip()

        if env.get("REFERENCE_FILES"):
            values["reference_files"] = [
                path.strip() for path in env["REFERENCE_FILES"].split(",") if path.strip()
            ]

        if env.get("SAFETY_SETTINGS_ENABLED"):
            values["safety_settings_enabled"] = env["SAFETY_SETTINGS_ENABLED"].strip().lower() not in ("0", "false", "no")

        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(cls._format_validation_error(e)) from e

    @staticmethod
    def _format_validation_error(error: ValidationError) -> str:
        """Collapse pydantic errors into one readable line."""
        parts = []
        for item in error.errors():
            field = item.get("loc", ["config"])[-1]
            message = item.get("msg", "invalid value").removeprefix("Value error, ")
            parts.append(f"{field}: {message}")
        return "; ".join(parts)
