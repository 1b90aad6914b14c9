import json
import threading
import time
import unittest
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from unittest import mock

from fakes import FakeProvider
from site_editor import config
from site_editor import model as model_mod
from site_editor.model_providers import HttpChatProvider, ModelError, ModelNotConfigured, ModelTimeout
from site_editor.model_roles import resolve_role_config


class _StubCompletions(BaseHTTPRequestHandler):
    """Minimal OpenAI-compatible /chat/completions endpoint."""

    requests = []

    def log_message(self, format, *args):
        pass

    def do_POST(self):
        length = int(self.headers.get("content-length", "0"))
        payload = json.loads(self.rfile.read(length))
        headers = {k.lower(): v for k, v in self.headers.items()}
        type(self).requests.append({"path": self.path, "headers": headers, "payload": payload})
        if payload["messages"][-1]["content"] == "fail":
            body = b'{"error": {"message": "overloaded"}}'
            self.send_response(500)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)
            return
        if payload["messages"][-1]["content"] == "trickle":
            body = json.dumps({"choices": [{"message": {"content": "slow " * 40}}]}).encode()
            self.send_response(200)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            step = len(body) // 6 + 1
            try:
                for i in range(0, len(body), step):
                    self.wfile.write(body[i:i + step])
                    self.wfile.flush()
                    time.sleep(0.4)
            except (BrokenPipeError, ConnectionResetError):
                pass
            return
        if payload.get("stream"):
            self.send_response(200)
            self.send_header("Content-Type", "text/event-stream")
            self.end_headers()
            for piece in ("Hel", "lo", None, " world"):
                if piece is None:
                    self.wfile.write(b": keep-alive\n\n")
                    continue
                chunk = {"choices": [{"delta": {"content": piece}}]}
                self.wfile.write(f"data: {json.dumps(chunk)}\n\n".encode("utf-8"))
            self.wfile.write(b'data: {"choices": [{"delta": {}, "finish_reason": "stop"}]}\n\n')
            self.wfile.write(b"data: [DONE]\n\n")
            return
        body = json.dumps({"choices": [{"message": {"role": "assistant", "content": "Hello world"}}]}).encode()
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)


class TestHttpChatProvider(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.server = ThreadingHTTPServer(("127.0.0.1", 0), _StubCompletions)
        cls.thread = threading.Thread(target=cls.server.serve_forever, daemon=True)
        cls.thread.start()
        host, port = cls.server.server_address[:2]
        cls.url = f"http://{host}:{port}/v1/chat/completions"

    @classmethod
    def tearDownClass(cls):
        cls.server.shutdown()
        cls.server.server_close()

    def setUp(self):
        _StubCompletions.requests = []

    def _messages(self, text="hi"):
        return [{"role": "system", "content": "sys"}, {"role": "user", "content": text}]

    def test_chat(self):
        provider = HttpChatProvider(self.url, "test-model", api_key="secret")
        self.assertEqual(provider.chat(self._messages(), 64, 0.2, 0.9, 10), "Hello world")
        sent = _StubCompletions.requests[0]
        self.assertEqual(sent["headers"].get("authorization"), "Bearer secret")
        self.assertEqual(sent["payload"]["model"], "test-model")
        self.assertEqual(sent["payload"]["max_tokens"], 64)
        self.assertFalse(sent["payload"]["stream"])

    def test_api_key_header(self):
        provider = HttpChatProvider(self.url, "dep", api_key="k", auth_header="api-key")
        provider.chat(self._messages(), 8, 0.2, 0.9, 10)
        headers = _StubCompletions.requests[0]["headers"]
        self.assertEqual(headers.get("api-key"), "k")
        self.assertNotIn("authorization", headers)

    def test_stream_chat(self):
        provider = HttpChatProvider(self.url, "test-model")
        pieces = list(provider.stream_chat(self._messages(), 64, 0.2, 0.9, 10))
        self.assertEqual(pieces, ["Hel", "lo", " world"])
        self.assertTrue(_StubCompletions.requests[0]["payload"]["stream"])

    def test_http_error(self):
        provider = HttpChatProvider(self.url, "test-model")
        with self.assertRaises(ModelError) as ctx:
            provider.chat(self._messages("fail"), 8, 0.2, 0.9, 10)
        self.assertIn("500", str(ctx.exception))

    def test_chat_deadline_covers_slow_body(self):
        provider = HttpChatProvider(self.url, "test-model")
        t0 = time.monotonic()
        with self.assertRaises(ModelTimeout):
            provider.chat(self._messages("trickle"), 8, 0.2, 0.9, 1)
        self.assertLess(time.monotonic() - t0, 2.2)

    def test_unreachable(self):
        provider = HttpChatProvider("http://127.0.0.1:9/v1/chat/completions", "m")
        with self.assertRaises(ModelError):
            provider.chat(self._messages(), 8, 0.2, 0.9, 2)


class TestRoles(unittest.TestCase):
    def test_budgets(self):
        self.assertEqual(resolve_role_config("edit_scoped").max_new, config.SCOPED_MAX_TOKENS)
        self.assertEqual(resolve_role_config("edit_full").max_new, config.FULL_MAX_TOKENS)
        fallback = resolve_role_config("fallback")
        self.assertEqual((fallback.max_new, fallback.temperature), (config.SCOPED_MAX_TOKENS, config.FALLBACK_TEMP))
        self.assertEqual(resolve_role_config("unknown").name, "edit_full")


class TestLoadProvider(unittest.TestCase):
    NONE = {
        "CHAT_URL": None,
        "DEEPSEEK_API_KEY": None,
        "AZURE_OPENAI_ENDPOINT": None,
        "AZURE_OPENAI_API_KEY": None,
        "AZURE_OPENAI_DEPLOYMENT": None,
        "OPENAI_API_KEY": None,
        "GGUF_PATH": None,
        "MLX_MODEL": None,
    }

    def _load(self, **overrides):
        values = dict(self.NONE, **overrides)
        with mock.patch.multiple(config, **values):
            return model_mod.load_provider()

    def test_nothing_configured(self):
        with self.assertRaises(ModelNotConfigured):
            self._load()

    def test_deepseek_first(self):
        provider = self._load(DEEPSEEK_API_KEY="ds", OPENAI_API_KEY="oa")
        self.assertEqual(provider.name, "deepseek")
        self.assertEqual(provider.url, config.DEEPSEEK_BASE_URL.rstrip("/") + "/chat/completions")

    def test_azure(self):
        provider = self._load(
            AZURE_OPENAI_ENDPOINT="https://res.openai.azure.com/",
            AZURE_OPENAI_API_KEY="az",
            AZURE_OPENAI_DEPLOYMENT="gpt4o",
        )
        self.assertEqual(provider.auth_header, "api-key")
        self.assertTrue(
            provider.url.startswith("https://res.openai.azure.com/openai/deployments/gpt4o/chat/completions?api-version=")
        )

    def test_local_server_wins(self):
        provider = self._load(CHAT_URL="http://127.0.0.1:8012/v1/", DEEPSEEK_API_KEY="ds")
        self.assertEqual(provider.url, "http://127.0.0.1:8012/v1/chat/completions")


class TestComplete(unittest.TestCase):
    def test_complete_uses_role(self):
        provider = FakeProvider(["ok"])
        self.assertEqual(model_mod.complete([{"role": "user", "content": "x"}], role="edit_scoped", provider=provider), "ok")
        self.assertEqual(provider.calls[0]["max_tokens"], config.SCOPED_MAX_TOKENS)
        self.assertEqual(provider.calls[0]["timeout_s"], config.GEN_TIMEOUT)

    def test_stream_complete_accumulates(self):
        provider = FakeProvider(["abcdefghij"], chunk_size=3)
        seen = []
        reply = model_mod.stream_complete([], provider=provider, on_delta=seen.append)
        self.assertEqual(reply, "abcdefghij")
        self.assertEqual(seen, [3, 6, 9, 10])

    def test_stream_deadline(self):
        class SlowProvider(FakeProvider):
            def stream_chat(self, messages, max_tokens, temperature, top_p, timeout_s):
                yield "first"
                time.sleep(1.2)
                yield "second"

        with self.assertRaises(ModelTimeout):
            model_mod.stream_complete([], provider=SlowProvider(), timeout_s=1)

    def test_backend_status(self):
        model_mod.set_provider(FakeProvider())
        try:
            status = model_mod.backend_status()
            self.assertEqual((status["backend"], status["loaded"]), ("fake", True))
        finally:
            model_mod.set_provider(None)
        self.assertEqual(model_mod.backend_status(), {"backend": None, "loaded": False})
