from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Protocol

from mistralai import Mistral

from checkin.config.runtime import get_runtime_config
from checkin.errors import UpstreamAgentError

_agent_runtime = get_runtime_config().agent


class AgentBackendProtocol(Protocol):
    async def generate(self, prompt: str) -> str: ...


@dataclass(frozen=True)
class MistralAgentConfig:
    model: str = _agent_runtime.model
    agent_id: str = ""
    temperature: float = _agent_runtime.temperature
    max_tokens: int = _agent_runtime.max_tokens
    timeout_seconds: float = _agent_runtime.timeout_seconds


class MistralAgentClient:
    """
    Single-prompt client for a Mistral agent (or the base chat model).

    Every failure mode surfaces as UpstreamAgentError so callers can fall back
    to the local templates.
    """

    def __init__(
        self,
        api_key: str,
        config: MistralAgentConfig | None = None,
        client: Mistral | None = None,
    ) -> None:
        self.config = config or MistralAgentConfig()
        if client is None:
            if not api_key.strip():
                raise ValueError("MISTRAL_API_KEY is required")
            client = Mistral(api_key=api_key.strip())
        self.client = client

    async def generate(self, prompt: str) -> str:
        messages = [{"role": "user", "content": prompt}]
        try:
            response = await asyncio.wait_for(
                self._complete(messages),
                timeout=self.config.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            raise UpstreamAgentError(
                f"Mistral agent timed out after {self.config.timeout_seconds:.0f}s"
            ) from exc
        except Exception as exc:
            raise UpstreamAgentError(f"Failed to reach Mistral API: {exc}") from exc

        text = self._extract_text(response)
        if not text:
            raise UpstreamAgentError("Mistral returned an empty response")
        return text

    async def _complete(self, messages: list[dict[str, str]]) -> Any:
        if self.config.agent_id.strip():
            return await self.client.agents.complete_async(
                agent_id=self.config.agent_id,
                messages=messages,  # pyright: ignore
            )
        return await self.client.chat.complete_async(
            model=self.config.model,
            messages=messages,  # pyright: ignore
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
        )

    def _extract_text(self, response: Any) -> str:
        choices = getattr(response, "choices", None)
        if not choices:
            raise UpstreamAgentError("Mistral response missing choices")

        message = getattr(choices[0], "message", None)
        if message is None:
            raise UpstreamAgentError("Mistral response missing message")

        return normalize_content(getattr(message, "content", None))


def normalize_content(content: Any) -> str:
    if isinstance(content, str):
        return content.strip()

    if isinstance(content, list):
        parts: list[str] = []
        for item in content:
            if isinstance(item, str):
                parts.append(item)
            elif isinstance(item, dict):
                text = item.get("text") or item.get("content")
                if isinstance(text, str):
                    parts.append(text)
            else:
                text = getattr(item, "text", None)
                if isinstance(text, str):
                    parts.append(text)
        return "".join(parts).strip()

    return ""


def build_agent(api_key: str, *, model: str, agent_id: str, timeout_seconds: float) -> MistralAgentClient | None:
    """Return a configured client, or None when delegation is switched off."""
    if not api_key.strip():
        return None
    return MistralAgentClient(
        api_key=api_key,
        config=MistralAgentConfig(
            model=model,
            agent_id=agent_id,
            timeout_seconds=timeout_seconds,
        ),
    )
