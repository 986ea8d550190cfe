from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


class AgentRuntimeConfig(BaseModel):
    model: str
    temperature: float = Field(ge=0.0, le=2.0)
    max_tokens: int = Field(ge=1)
    timeout_seconds: float = Field(gt=0.0)
    max_history_messages: int = Field(ge=0)


class InterviewRuntimeConfig(BaseModel):
    confidence: float = Field(ge=0.0, le=1.0)


class ServerRuntimeConfig(BaseModel):
    host: str
    port: int
    cors_origins: list[str]


class StorageRuntimeConfig(BaseModel):
    path: str


class CliRuntimeConfig(BaseModel):
    min_completed_for_summary: int = Field(ge=2)


class RuntimeConfig(BaseModel):
    agent: AgentRuntimeConfig
    interview: InterviewRuntimeConfig
    server: ServerRuntimeConfig
    storage: StorageRuntimeConfig
    cli: CliRuntimeConfig


# Searched next to this module, first match wins.
RUNTIME_FILENAMES = ("runtime.yaml", "runtime.yml", "runtime.json")

# Environment variable -> (section, key) it replaces in the loaded file.
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "STORAGE_PATH": ("storage", "path"),
    "CHECKIN_MIN_COMPLETED_FOR_SUMMARY": ("cli", "min_completed_for_summary"),
}

_runtime_config: RuntimeConfig | None = None


def get_runtime_config() -> RuntimeConfig:
    global _runtime_config
    if _runtime_config is None:
        _runtime_config = _load_runtime_config()
    return _runtime_config


def _load_runtime_config() -> RuntimeConfig:
    configured_path = os.getenv("RUNTIME_CONFIG_PATH", "").strip()
    runtime_path = Path(configured_path) if configured_path else _find_runtime_file()
    raw = _read_runtime_file(runtime_path)
    _apply_env_overrides(raw)
    return RuntimeConfig.model_validate(raw)


def _find_runtime_file() -> Path:
    config_dir = Path(__file__).resolve().parent
    for name in RUNTIME_FILENAMES:
        candidate = config_dir / name
        if candidate.exists():
            return candidate
    raise FileNotFoundError(
        f"No runtime config in {config_dir}: expected one of {', '.join(RUNTIME_FILENAMES)}"
    )


def _read_runtime_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Runtime config file not found: {path}")

    text = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        import yaml

        raw = yaml.safe_load(text)
    elif suffix == ".json":
        raw = json.loads(text)
    else:
        raise ValueError(f"Unsupported runtime config format '{path.suffix}' in {path}")

    if not isinstance(raw, dict):
        raise ValueError(f"Runtime config root must be a mapping: {path}")
    return raw


def _apply_env_overrides(raw: dict[str, Any]) -> None:
    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = os.getenv(env_name, "").strip()
        if not value:
            continue
        target = raw.setdefault(section, {})
        if not isinstance(target, dict):
            raise ValueError(f"Runtime config section '{section}' must be a mapping")
        target[key] = value
