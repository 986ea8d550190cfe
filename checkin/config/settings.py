from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings

from .runtime import get_runtime_config

_runtime = get_runtime_config()


class Settings(BaseSettings):
    # ------------------------------------------------------------------
    # Mistral
    # ------------------------------------------------------------------
    # Leave the key empty to run purely on the local templates.
    mistral_api_key: str = ""
    mistral_model: str = _runtime.agent.model

    # Agent IDs created on la Plateforme (https://console.mistral.ai/agents).
    # When empty, the base model is prompted directly.
    mistral_agent_id_interview: str = ""  # Interview Conductor agent
    mistral_agent_id_insights: str = ""  # Insights Aggregator agent

    agent_timeout_seconds: float = _runtime.agent.timeout_seconds

    # ------------------------------------------------------------------
    # Server
    # ------------------------------------------------------------------
    host: str = _runtime.server.host
    port: int = _runtime.server.port
    cors_origins: list[str] = Field(default_factory=lambda: list(_runtime.server.cors_origins))

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------
    storage_path: str = _runtime.storage.path

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


# Singleton, imported by routers and CLIs via get_settings()
_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
