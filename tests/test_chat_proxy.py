import json
import unittest

import httpx
from fastapi.testclient import TestClient
from structlog.testing import capture_logs

from localvault.api.routes import get_proxy
from localvault.main import app
from localvault.services.openai_proxy import CONTEXT_PREAMBLE, OpenAIProxy


class ChatProxyRouteTests(unittest.TestCase):
    def setUp(self):
        self.upstream = []
        self.reply = (200, {"choices": [{"message": {"content": "hello"}}]})
        self.api_key = "sk-test"
        app.dependency_overrides[get_proxy] = self._proxy
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()

    def _handler(self, request):
        self.upstream.append(request)
        status, body = self.reply
        if isinstance(body, bytes):
            return httpx.Response(status, content=body)
        return httpx.Response(status, json=body)

    def _proxy(self):
        return OpenAIProxy(self.api_key, model="gpt-4o-mini", transport=httpx.MockTransport(self._handler))

    def test_forwards_messages(self):
        r = self.client.post("/api/chat", json={"messages": [{"role": "user", "content": "hi"}]})
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["choices"][0]["message"]["content"], "hello")
        req = self.upstream[0]
        self.assertEqual(str(req.url), "https://api.openai.com/v1/chat/completions")
        self.assertEqual(req.headers["authorization"], "Bearer sk-test")
        body = json.loads(req.content)
        self.assertEqual(body["model"], "gpt-4o-mini")
        self.assertEqual(body["temperature"], 0.3)
        self.assertEqual(body["messages"], [{"role": "user", "content": "hi"}])

    def test_context_is_prepended_as_system_message(self):
        context = {"currency": "GBP", "totals": {"bank": 10}}
        self.client.post("/api/chat", json={"messages": [{"role": "user", "content": "hi"}], "context": context})
        messages = json.loads(self.upstream[0].content)["messages"]
        self.assertEqual(len(messages), 2)
        self.assertEqual(messages[0]["role"], "system")
        self.assertTrue(messages[0]["content"].startswith(CONTEXT_PREAMBLE))
        self.assertEqual(json.loads(messages[0]["content"][len(CONTEXT_PREAMBLE):]), context)

    def test_empty_body(self):
        r = self.client.post("/api/chat")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(json.loads(self.upstream[0].content)["messages"], [])

    def test_upstream_error_passes_through(self):
        self.reply = (429, {"error": {"message": "Rate limit reached"}})
        r = self.client.post("/api/chat", json={"messages": []})
        self.assertEqual(r.status_code, 429)
        self.assertEqual(r.json(), {"error": {"message": "Rate limit reached"}})

    def test_missing_api_key(self):
        self.api_key = ""
        r = self.client.post("/api/chat", json={"messages": []})
        self.assertEqual(r.status_code, 500)
        self.assertEqual(r.json(), {"error": "Missing OPENAI_API_KEY"})
        self.assertEqual(self.upstream, [])

    def test_upstream_failure_is_500(self):
        self.reply = (200, b"not json")
        with capture_logs() as logs:
            r = self.client.post("/api/chat", json={"messages": []})
        self.assertIn("chat_proxy_upstream_error", [e["event"] for e in logs])
        self.assertEqual(r.status_code, 500)
        self.assertIn("error", r.json())

    def test_wrong_method(self):
        r = self.client.get("/api/chat")
        self.assertEqual(r.status_code, 405)
        self.assertEqual(r.json(), {"error": "Use POST"})

    def test_every_other_method_is_rejected(self):
        for method in ("PUT", "PATCH", "DELETE", "OPTIONS"):
            r = self.client.request(method, "/api/chat")
            self.assertEqual(r.status_code, 405, method)
            self.assertEqual(r.json(), {"error": "Use POST"}, method)
        self.assertEqual(self.client.head("/api/chat").status_code, 405)
        self.assertEqual(self.upstream, [])

    def test_health(self):
        self.assertEqual(self.client.get("/health").json(), {"ok": True})


if __name__ == "__main__":
    unittest.main()
