from __future__ import annotations

import asyncio
import unittest
from types import SimpleNamespace

from checkin.engines.agent_client import (
    MistralAgentClient,
    MistralAgentConfig,
    build_agent,
    normalize_content,
)
from checkin.errors import UpstreamAgentError


def _response(content: object) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class _Endpoint:
    def __init__(self, result: object = None, error: Exception | None = None, delay: float = 0.0) -> None:
        self.result = result
        self.error = error
        self.delay = delay
        self.calls: list[dict[str, object]] = []

    async def complete_async(self, **kwargs: object) -> object:
        self.calls.append(kwargs)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


def _sdk(agents: _Endpoint | None = None, chat: _Endpoint | None = None) -> SimpleNamespace:
    return SimpleNamespace(agents=agents or _Endpoint(), chat=chat or _Endpoint())


class MistralAgentClientTests(unittest.TestCase):
    def test_agent_id_routes_to_agents_api(self) -> None:
        agents = _Endpoint(result=_response("  Agent reply  "))
        sdk = _sdk(agents=agents)
        client = MistralAgentClient("", config=MistralAgentConfig(agent_id="ag_123"), client=sdk)

        reply = asyncio.run(client.generate("Prompt"))

        self.assertEqual(reply, "Agent reply")
        self.assertEqual(agents.calls[0]["agent_id"], "ag_123")
        self.assertEqual(agents.calls[0]["messages"], [{"role": "user", "content": "Prompt"}])
        self.assertEqual(sdk.chat.calls, [])

    def test_without_agent_id_uses_chat_model(self) -> None:
        chat = _Endpoint(result=_response([{"text": "Part one, "}, SimpleNamespace(text="part two")]))
        config = MistralAgentConfig(model="mistral-small-latest", temperature=0.2, max_tokens=50)
        client = MistralAgentClient("", config=config, client=_sdk(chat=chat))

        reply = asyncio.run(client.generate("Prompt"))

        self.assertEqual(reply, "Part one, part two")
        self.assertEqual(chat.calls[0]["model"], "mistral-small-latest")
        self.assertEqual(chat.calls[0]["temperature"], 0.2)
        self.assertEqual(chat.calls[0]["max_tokens"], 50)

    def test_sdk_errors_become_upstream_errors(self) -> None:
        chat = _Endpoint(error=RuntimeError("401 Unauthorized"))
        client = MistralAgentClient("", client=_sdk(chat=chat))

        with self.assertRaises(UpstreamAgentError):
            asyncio.run(client.generate("Prompt"))

    def test_timeout_becomes_upstream_error(self) -> None:
        chat = _Endpoint(result=_response("late"), delay=0.5)
        client = MistralAgentClient("", config=MistralAgentConfig(timeout_seconds=0.01), client=_sdk(chat=chat))

        with self.assertRaisesRegex(UpstreamAgentError, "timed out"):
            asyncio.run(client.generate("Prompt"))

    def test_missing_or_empty_content_is_rejected(self) -> None:
        for result in (SimpleNamespace(choices=[]), _response(None), _response("   ")):
            client = MistralAgentClient("", client=_sdk(chat=_Endpoint(result=result)))
            with self.assertRaises(UpstreamAgentError):
                asyncio.run(client.generate("Prompt"))

    def test_real_client_requires_api_key(self) -> None:
        with self.assertRaises(ValueError):
            MistralAgentClient("   ")


class BuildAgentTests(unittest.TestCase):
    def test_no_key_disables_delegation(self) -> None:
        self.assertIsNone(build_agent("", model="m", agent_id="", timeout_seconds=5.0))

    def test_key_builds_configured_client(self) -> None:
        agent = build_agent("sk-test", model="mistral-small-latest", agent_id="ag_1", timeout_seconds=5.0)

        self.assertIsInstance(agent, MistralAgentClient)
        self.assertEqual(agent.config.agent_id, "ag_1")
        self.assertEqual(agent.config.timeout_seconds, 5.0)


class NormalizeContentTests(unittest.TestCase):
    def test_normalize_content(self) -> None:
        self.assertEqual(normalize_content(" text "), "text")
        self.assertEqual(normalize_content(["a", {"content": "b"}, 3]), "ab")
        self.assertEqual(normalize_content(None), "")


if __name__ == "__main__":
    unittest.main()
