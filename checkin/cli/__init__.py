"""Terminal views for the check-in service."""

from __future__ import annotations

from pathlib import Path


def load_dotenv_if_available() -> None:
    """
    Load .env from the repo root for local CLI usage.

    python-dotenv is optional here; without it the environment is used as is.
    """
    try:
        from dotenv import load_dotenv  # type: ignore
    except ImportError:
        return

    env_path = Path(__file__).resolve().parents[2] / ".env"
    if env_path.exists():
        load_dotenv(dotenv_path=env_path, override=False)
