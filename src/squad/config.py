"""Application configuration via Pydantic BaseSettings."""

from __future__ import annotations

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    development = "development"
    staging = "staging"
    production = "production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Environment
    ENVIRONMENT: Environment = Environment.development

    # Logging
    LOG_LEVEL: str = "INFO"

    # LLM Providers
    ANTHROPIC_API_KEY: str = ""
    OPENAI_API_KEY: str = ""
    GROQ_API_KEY: str = ""
    GOOGLE_API_KEY: str = ""
    GEMINI_API_KEY: str = ""
    OPENROUTER_API_KEY: str = ""
    OLLAMA_HOST: str = ""  # e.g. http://localhost:11434; empty disables Ollama
    DEFAULT_PROVIDER: str = ""  # Provider to make active; first initialized wins if empty
    DEFAULT_MODEL: str = ""  # Global model default when an agent has no override
    LLM_TIMEOUT: int = 60
    LLM_MAX_RETRIES: int = 3

    # Sub-agent execution
    AGENT_TASK_TIMEOUT_MS: int = 120_000
    AGENT_MAX_ITERATIONS: int = 10
    COMPLETED_TASK_RETENTION: int = 50  # Completed tasks kept per agent
    WAIT_FOR_TASK_TIMEOUT_MS: int = 300_000
    DELEGATE_WAIT_TIMEOUT_MS: int = 120_000

    # Custom agent manifests
    AGENTS_DIR: str = str(Path.home() / ".marketing-squad" / "workspace" / "agents")

    def provider_credentials(self) -> dict[str, str]:
        """Return the configured credential (or host) for each provider type.

        Providers with an empty value are omitted, so the result lists only
        the backends that can be initialized from the environment.
        """
        candidates = {
            "anthropic": self.ANTHROPIC_API_KEY,
            "openai": self.OPENAI_API_KEY,
            "groq": self.GROQ_API_KEY,
            "gemini": self.GOOGLE_API_KEY or self.GEMINI_API_KEY,
            "openrouter": self.OPENROUTER_API_KEY,
            "ollama": self.OLLAMA_HOST,
        }
        return {name: value for name, value in candidates.items() if value}


@lru_cache
def get_settings() -> Settings:
    """Singleton settings instance."""
    return Settings()
