import json
import threading
import traceback
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from . import config
from .editor import EditRequest, check_quota, edits_remaining, run_edit
from .errors import EditError, QuotaExceeded, ValidationError
from .model import backend_status
from .model_providers import ChatProvider
from .section_templates import list_section_templates
from .usage import UsageStore, make_store
from .utils import dbg, log_error

EDITOR_PATH = "/api/editor/ai"
TEMPLATES_PATH = "/api/editor/section-templates"


class EditorAPIServer(BaseHTTPRequestHandler):
    server_version = "site-editor"

    def log_message(self, format, *args):
        dbg("http: " + (format % args))

    def _set_cors(self):
        self.send_header("Access-Control-Allow-Origin", config.CORS_ORIGIN)
        self.send_header(
            "Access-Control-Allow-Headers",
            f"Content-Type, Authorization, X-Requested-With, {config.USER_HEADER}",
        )
        self.send_header(
            "Access-Control-Allow-Methods",
            "GET, POST, OPTIONS",
        )

    def _json(self, status: int, body: Dict):
        payload = json.dumps(body).encode("utf-8")
        self.send_response(status)
        self._set_cors()
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    def _sse(self):
        self.send_response(200)
        self._set_cors()
        self.send_header("Content-Type", "text/event-stream")
        self.send_header("Cache-Control", "no-cache")
        self.send_header("Connection", "close")
        self.end_headers()
        self.close_connection = True

    def _sse_send(self, body: Dict[str, Any]):
        self.wfile.write(f"data: {json.dumps(body)}\n\n".encode("utf-8"))
        self.wfile.flush()

    def _store(self) -> UsageStore:
        return self.server.usage_store

    def _provider(self) -> Optional[ChatProvider]:
        return getattr(self.server, "provider", None)

    def _user_id(self) -> Optional[str]:
        user_id = (self.headers.get(config.USER_HEADER) or "").strip()
        return user_id or None

    def _read_json(self) -> Any:
        length = int(self.headers.get("content-length", "0") or "0")
        if length > config.MAX_BODY_BYTES:
            raise ValidationError("Request body too large")
        raw = self.rfile.read(length) if length else b""
        try:
            return json.loads(raw or b"{}")
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ValidationError("invalid json") from exc

    def do_OPTIONS(self):
        self.send_response(204)
        self._set_cors()
        self.end_headers()

    def do_GET(self):
        parsed = urlparse(self.path)
        if parsed.path == "/health":
            body = {"status": "ok"}
            body.update(backend_status())
            self._json(200, body)
            return
        if parsed.path == TEMPLATES_PATH:
            self._json(200, {"templates": list_section_templates()})
            return
        if parsed.path == EDITOR_PATH:
            user_id = self._user_id()
            if not user_id:
                self._json(401, {"error": "Unauthorized"})
                return
            try:
                remaining = edits_remaining(user_id, self._store())
            except OSError as exc:
                log_error(f"usage lookup failed: {exc}")
                self._json(500, {"error": "Failed to fetch usage"})
                return
            self._json(200, {"editsRemaining": remaining})
            return
        self._json(404, {"error": "unknown endpoint"})

    def do_POST(self):
        parsed = urlparse(self.path)
        if parsed.path != EDITOR_PATH:
            self._json(404, {"error": "unknown endpoint"})
            return
        user_id = self._user_id()
        if not user_id:
            self._json(401, {"error": "Unauthorized"})
            return
        try:
            request = EditRequest.from_body(self._read_json())
        except ValidationError as exc:
            self._json(exc.status, exc.to_body())
            return

        if request.stream:
            # Quota is answered with a real 429 before the event stream commits to 200
            try:
                check_quota(user_id, self._store())
            except QuotaExceeded as exc:
                self._json(exc.status, exc.to_body())
                return
            self._handle_stream(request, user_id)
            return

        try:
            result = run_edit(request, user_id, self._store(), provider=self._provider())
        except EditError as exc:
            dbg(f"http: edit failed status={exc.status} code={exc.code}: {exc.message}")
            self._json(exc.status, exc.to_body())
            return
        except Exception as exc:
            log_error(f"AI route error: {exc}\n{traceback.format_exc()}")
            self._json(502, {"error": "Failed to process request", "code": "ai_error"})
            return
        self._json(200, result.to_body())

    def _handle_stream(self, request: EditRequest, user_id: str):
        self._sse()

        def on_progress(chars: int) -> None:
            self._sse_send({"status": "generating", "chars": chars})

        try:
            result = run_edit(
                request,
                user_id,
                self._store(),
                provider=self._provider(),
                on_progress=on_progress,
            )
            frame = result.to_body()
        except (BrokenPipeError, ConnectionResetError):
            dbg("http: stream client disconnected")
            return
        except EditError as exc:
            dbg(f"http: stream edit failed status={exc.status} code={exc.code}: {exc.message}")
            frame = exc.to_body()
            frame["status"] = exc.status
        except Exception as exc:
            log_error(f"AI route error: {exc}\n{traceback.format_exc()}")
            frame = {"error": "Failed to process request", "code": "ai_error", "status": 502}
        try:
            self._sse_send(frame)
        except (BrokenPipeError, ConnectionResetError):
            dbg("http: stream client disconnected before final frame")


def make_server(
    host: Optional[str] = None,
    port: Optional[int] = None,
    store: Optional[UsageStore] = None,
    provider: Optional[ChatProvider] = None,
) -> ThreadingHTTPServer:
    server = ThreadingHTTPServer(
        (host or config.SERVER_HOST, config.SERVER_PORT if port is None else port),
        EditorAPIServer,
    )
    server.daemon_threads = True
    server.usage_store = store if store is not None else make_store()
    server.provider = provider
    return server


def start_server(store: Optional[UsageStore] = None) -> ThreadingHTTPServer:
    server = make_server(store=store)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    host, port = server.server_address[:2]
    print(f"HTTP server listening on http://{host}:{port}")
    return server
