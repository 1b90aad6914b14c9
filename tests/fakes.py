"""Shared test doubles."""

from typing import Dict, List

from site_editor.model_providers import ModelError


class FakeProvider:
    """Chat provider that replays canned replies and records every call."""

    kind = "fake"
    name = "fake"

    def __init__(self, replies=None, error: ModelError = None, chunk_size: int = 0):
        self.replies: List[str] = list(replies or [])
        self.error = error
        self.chunk_size = chunk_size
        self.calls: List[Dict] = []

    def _next(self, messages, max_tokens, temperature, top_p, timeout_s) -> str:
        self.calls.append(
            {
                "messages": messages,
                "max_tokens": max_tokens,
                "temperature": temperature,
                "top_p": top_p,
                "timeout_s": timeout_s,
            }
        )
        if self.error is not None:
            raise self.error
        return self.replies.pop(0) if self.replies else ""

    def chat(self, messages, max_tokens, temperature, top_p, timeout_s):
        return self._next(messages, max_tokens, temperature, top_p, timeout_s)

    def stream_chat(self, messages, max_tokens, temperature, top_p, timeout_s):
        reply = self._next(messages, max_tokens, temperature, top_p, timeout_s)
        size = self.chunk_size or len(reply) or 1
        for i in range(0, len(reply), size):
            yield reply[i:i + size]

    def status(self):
        return {"name": self.name, "kind": self.kind}
