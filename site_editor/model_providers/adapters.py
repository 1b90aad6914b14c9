"""Adapters that normalize chat-completion backends to the provider interface."""

from __future__ import annotations

import json
import socket
import time
from typing import Any, Dict, Iterator, List, Optional
from urllib import error as urllib_error
from urllib import request as urllib_request

from ..utils import dbg
from .base import ModelError, ModelTimeout

_READ_CHUNK = 64 * 1024


def _is_timeout(exc: BaseException) -> bool:
    if isinstance(exc, (socket.timeout, TimeoutError)):
        return True
    reason = getattr(exc, "reason", None)
    return isinstance(reason, (socket.timeout, TimeoutError))


def _check_deadline(deadline: float, timeout_s: int) -> None:
    if time.monotonic() > deadline:
        raise ModelTimeout(f"model call exceeded {timeout_s}s")


class HttpChatProvider:
    """OpenAI-compatible /chat/completions over HTTP (OpenAI, DeepSeek, Azure OpenAI, llama-server)."""

    kind = "http_chat"

    def __init__(
        self,
        url: str,
        model: str,
        api_key: Optional[str] = None,
        auth_header: str = "Authorization",
        name: str = "openai-compatible",
    ):
        self.url = url
        self.model = model
        self.api_key = api_key
        self.auth_header = auth_header
        self.name = name

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            if self.auth_header.lower() == "authorization":
                headers["Authorization"] = f"Bearer {self.api_key}"
            else:
                headers[self.auth_header] = self.api_key
        return headers

    def _open(self, payload: Dict[str, Any], timeout_s: int):
        body = json.dumps(payload).encode("utf-8")
        req = urllib_request.Request(self.url, data=body, headers=self._headers(), method="POST")
        try:
            return urllib_request.urlopen(req, timeout=max(1, int(timeout_s)))
        except urllib_error.HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="replace") if hasattr(exc, "read") else str(exc)
            raise ModelError(f"{self.name} HTTP {getattr(exc, 'code', '?')}: {detail[:300]}") from exc
        except (urllib_error.URLError, OSError) as exc:
            if _is_timeout(exc):
                raise ModelTimeout(f"{self.name} timed out after {timeout_s}s") from exc
            raise ModelError(f"{self.name} request failed: {exc}") from exc

    def _payload(self, messages, max_tokens, temperature, top_p, stream: bool) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": messages,
            "max_tokens": max(1, int(max_tokens)),
            "temperature": float(temperature),
            "top_p": float(top_p),
            "stream": stream,
        }

    def chat(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int,
        temperature: float,
        top_p: float,
        timeout_s: int,
    ) -> str:
        deadline = time.monotonic() + max(1, int(timeout_s))
        payload = self._payload(messages, max_tokens, temperature, top_p, stream=False)
        try:
            with self._open(payload, timeout_s) as resp:
                # urlopen's timeout bounds each socket read, not the whole body
                parts: List[bytes] = []
                while True:
                    _check_deadline(deadline, timeout_s)
                    block = resp.read1(_READ_CHUNK)
                    if not block:
                        break
                    parts.append(block)
                raw = b"".join(parts).decode("utf-8", errors="replace")
        except (socket.timeout, TimeoutError) as exc:
            raise ModelTimeout(f"{self.name} timed out after {timeout_s}s") from exc
        try:
            obj = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ModelError(f"{self.name} returned invalid JSON: {exc}") from exc
        if isinstance(obj, dict) and obj.get("error"):
            raise ModelError(f"{self.name} error: {str(obj.get('error'))[:300]}")
        choices = obj.get("choices") if isinstance(obj, dict) else None
        if isinstance(choices, list) and choices and isinstance(choices[0], dict):
            msg = choices[0].get("message")
            if isinstance(msg, dict) and isinstance(msg.get("content"), str):
                return msg["content"]
            if isinstance(choices[0].get("text"), str):
                return choices[0]["text"]
        raise ModelError(f"{self.name} response missing completion content")

    def stream_chat(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int,
        temperature: float,
        top_p: float,
        timeout_s: int,
    ) -> Iterator[str]:
        """Yield `delta.content` pieces from a server-sent event stream."""
        deadline = time.monotonic() + max(1, int(timeout_s))
        payload = self._payload(messages, max_tokens, temperature, top_p, stream=True)
        try:
            with self._open(payload, timeout_s) as resp:
                for raw_line in resp:
                    _check_deadline(deadline, timeout_s)
                    line = raw_line.decode("utf-8", errors="replace").strip()
                    if not line.startswith("data:"):
                        continue
                    data = line[5:].strip()
                    if data == "[DONE]":
                        break
                    try:
                        obj = json.loads(data)
                    except json.JSONDecodeError:
                        dbg(f"{self.name}: skipping malformed stream line: {data[:80]!r}")
                        continue
                    if obj.get("error"):
                        raise ModelError(f"{self.name} stream error: {str(obj.get('error'))[:300]}")
                    choices = obj.get("choices") or []
                    if not choices:
                        continue
                    delta = choices[0].get("delta") or {}
                    text = delta.get("content")
                    if text:
                        yield text
        except (socket.timeout, TimeoutError) as exc:
            raise ModelTimeout(f"{self.name} timed out after {timeout_s}s") from exc

    def status(self) -> Dict[str, Any]:
        return {"name": self.name, "kind": self.kind, "url": self.url, "model": self.model}


class LlamaCppProvider:
    """In-process GGUF model via llama-cpp-python's create_chat_completion."""

    kind = "gguf_python"
    name = "llama.cpp-python"

    def __init__(self, backend: Any):
        self.backend = backend

    def chat(self, messages, max_tokens, temperature, top_p, timeout_s) -> str:
        # Streamed internally so the deadline can interrupt generation.
        return "".join(self.stream_chat(messages, max_tokens, temperature, top_p, timeout_s)).strip()

    def stream_chat(self, messages, max_tokens, temperature, top_p, timeout_s) -> Iterator[str]:
        deadline = time.monotonic() + max(1, int(timeout_s))
        try:
            chunks = self.backend.create_chat_completion(
                messages=messages,
                max_tokens=max(1, int(max_tokens)),
                temperature=float(temperature),
                top_p=float(top_p),
                stream=True,
            )
            for chunk in chunks:
                _check_deadline(deadline, timeout_s)
                choices = chunk.get("choices") or []
                if not choices:
                    continue
                text = (choices[0].get("delta") or {}).get("content")
                if text:
                    yield text
        except ModelError:
            raise
        except (ValueError, RuntimeError) as exc:
            raise ModelError(f"llama.cpp error: {exc}") from exc

    def status(self) -> Dict[str, Any]:
        return {"name": self.name, "kind": self.kind}


class MLXProvider:
    """MLX (Apple Silicon) backend using mlx_lm. Model id = HuggingFace id or local path."""

    kind = "mlx"
    name = "mlx-lm"

    def __init__(self, model_id: str, max_kv_size: int = 0):
        from mlx_lm import load

        self.model_id = model_id
        self.max_kv_size = int(max_kv_size or 0)
        self._model, self._tokenizer = load(model_id)

    def format_messages(self, messages: List[Dict[str, str]]) -> str:
        """Render messages with the tokenizer's chat template."""
        out = self._tokenizer.apply_chat_template(messages, add_generation_prompt=True, tokenize=False)
        if isinstance(out, str):
            return out
        return self._tokenizer.decode(out, skip_special_tokens=False)

    def chat(self, messages, max_tokens, temperature, top_p, timeout_s) -> str:
        return "".join(self.stream_chat(messages, max_tokens, temperature, top_p, timeout_s)).strip()

    def stream_chat(self, messages, max_tokens, temperature, top_p, timeout_s) -> Iterator[str]:
        from mlx_lm import stream_generate
        from mlx_lm.sample_utils import make_sampler

        deadline = time.monotonic() + max(1, int(timeout_s))
        # mlx_lm 0.30+ generate_step() does not accept temperature/top_p; use sampler
        kwargs: Dict[str, Any] = {"sampler": make_sampler(temp=float(temperature), top_p=float(top_p))}
        if self.max_kv_size > 0:
            kwargs["max_kv_size"] = self.max_kv_size
        for resp in stream_generate(
            self._model,
            self._tokenizer,
            prompt=self.format_messages(messages),
            max_tokens=max(1, int(max_tokens)),
            **kwargs,
        ):
            _check_deadline(deadline, timeout_s)
            token = getattr(resp, "text", resp)
            if token:
                yield str(token)

    def status(self) -> Dict[str, Any]:
        return {"name": self.name, "kind": self.kind, "model": self.model_id}
