"""
Configuration and settings for the daily fact service.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from models.openrouter import DEFAULT_OPENROUTER_MODEL, OPENROUTER_CHAT_COMPLETIONS_URL
from models.gemini import DEFAULT_GEMINI_MODEL
from shared import constants


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service and the daily job."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")

    # Database (Postgres via SQLAlchemy, or Firestore)
    database_url: Optional[str] = Field(default=None, env="DATABASE_URL")

    # Firebase service account. When unset, Application Default Credentials are used.
    firebase_project_id: Optional[str] = Field(default=None, env="FIREBASE_PROJECT_ID")
    firebase_client_email: Optional[str] = Field(
        default=None, env="FIREBASE_CLIENT_EMAIL"
    )
    firebase_private_key: Optional[str] = Field(
        default=None, env="FIREBASE_PRIVATE_KEY"
    )

    # LLM
    llm_provider: Literal["openrouter", "gemini"] = Field(
        default="openrouter", env="LLM_PROVIDER"
    )
    openrouter_api_key: Optional[str] = Field(default=None, env="OPENROUTER_API_KEY")
    openrouter_model: str = Field(
        default=DEFAULT_OPENROUTER_MODEL, env="OPENROUTER_MODEL"
    )
    openrouter_url: str = Field(
        default=OPENROUTER_CHAT_COMPLETIONS_URL, env="OPENROUTER_URL"
    )
    gemini_api_key: Optional[str] = Field(default=None, env="GEMINI_API_KEY")
    gemini_model: str = Field(default=DEFAULT_GEMINI_MODEL, env="GEMINI_MODEL")
    ai_request_timeout_sec: Optional[float] = Field(
        default=None, env="AI_REQUEST_TIMEOUT_SEC"
    )

    # Fact generation
    max_fact_chars: int = Field(default=constants.MAX_FACT_CHARS, ge=2)
    max_ai_attempts: int = Field(default=constants.MAX_AI_ATTEMPTS_PER_CATEGORY, ge=1)
    duplicate_lookback: int = Field(default=constants.DUPLICATE_LOOKBACK, ge=1)

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False, env="USE_IN_MEMORY_BACKENDS"
    )

    @property
    def firebase_credentials(self) -> Optional[dict]:
        """Service account dict for firebase_admin, if one is configured."""
        if not (self.firebase_client_email and self.firebase_private_key):
            return None
        return {
            "type": "service_account",
            "project_id": self.firebase_project_id,
            "client_email": self.firebase_client_email,
            # Keys pasted into env vars usually carry literal "\n" sequences.
            "private_key": self.firebase_private_key.replace("\\n", "\n"),
            "token_uri": "https://oauth2.googleapis.com/token",
        }

    @property
    def uses_firestore(self) -> bool:
        return bool(self.firebase_project_id or self.firebase_credentials)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
