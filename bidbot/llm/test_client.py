import json
import unittest

import httpx

from bidbot.llm.client import LLMClient, LLMConnectionError, LLMResponseError
from bidbot.llm.proposal_writer import ProposalWriter, estimate_hours
from bidbot.projects import Project


def completion(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class LLMClientTests(unittest.IsolatedAsyncioTestCase):
    async def test_chat_sends_messages_and_returns_content(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=completion("Proposal text"))

        client = LLMClient(api_key="sk-test", model="gpt-test", transport=httpx.MockTransport(handler))
        text = await client.chat("Write it", system="You are a freelancer.", max_tokens=123)
        await client.close()

        self.assertEqual(text, "Proposal text")
        self.assertEqual(seen["path"], "/v1/chat/completions")
        self.assertEqual(seen["auth"], "Bearer sk-test")
        self.assertEqual(seen["body"]["model"], "gpt-test")
        self.assertEqual(seen["body"]["max_tokens"], 123)
        self.assertEqual([m["role"] for m in seen["body"]["messages"]], ["system", "user"])

    async def test_retries_on_rate_limit(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if len(calls) == 1:
                return httpx.Response(429, text="slow down")
            return httpx.Response(200, json=completion("ok"))

        client = LLMClient(api_key="k", retry_delay=0, transport=httpx.MockTransport(handler))
        self.assertEqual(await client.chat("hi"), "ok")
        self.assertEqual(len(calls), 2)

    async def test_non_retryable_status_raises(self):
        client = LLMClient(api_key="k", retry_delay=0,
                           transport=httpx.MockTransport(lambda r: httpx.Response(401, text="bad key")))
        with self.assertRaises(LLMResponseError):
            await client.chat("hi")

    async def test_connection_errors_exhaust_retries(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            raise httpx.ConnectError("refused", request=request)

        client = LLMClient(api_key="k", retry_delay=0, transport=httpx.MockTransport(handler))
        with self.assertRaises(LLMConnectionError):
            await client.chat("hi")
        self.assertEqual(len(calls), 3)

    async def test_empty_content_is_an_error(self):
        client = LLMClient(api_key="k", transport=httpx.MockTransport(
            lambda r: httpx.Response(200, json=completion("   "))))
        with self.assertRaises(LLMResponseError):
            await client.chat("hi")

    async def test_unconfigured_client_refuses(self):
        with self.assertRaises(LLMConnectionError):
            await LLMClient(api_key=None).chat("hi")


class ProposalWriterTests(unittest.IsolatedAsyncioTestCase):
    async def test_writer_uses_prompt_and_returns_text(self):
        prompts = []

        def handler(request: httpx.Request) -> httpx.Response:
            prompts.append(json.loads(request.content)["messages"][-1]["content"])
            return httpx.Response(200, json=completion("Dear client, I can help."))

        writer = ProposalWriter(LLMClient(api_key="k", transport=httpx.MockTransport(handler)))
        project = Project(id="1", platform="upwork", title="Flask API", skills=["Python"])
        text = await writer.generate(project, {"skills": ["Python"]})
        self.assertEqual(text, "Dear client, I can help.")
        self.assertIn("Flask API", prompts[0])
        self.assertTrue(writer.available)

    def test_estimate_hours_has_floor(self):
        self.assertEqual(estimate_hours(Project(id="1", platform="upwork")), 20)
        self.assertEqual(estimate_hours(Project(id="2", platform="upwork", normalized_budget=5000)), 100)


if __name__ == "__main__":
    unittest.main()
