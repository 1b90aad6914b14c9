"""Provider protocol for chat-completion runtimes."""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Protocol


class ModelError(RuntimeError):
    """The provider was unreachable, misconfigured, or returned an error."""


class ModelTimeout(ModelError):
    """The call exceeded its time budget; any partial output is discarded."""


class ModelNotConfigured(ModelError):
    pass


class ChatProvider(Protocol):
    kind: str
    name: str

    def chat(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int,
        temperature: float,
        top_p: float,
        timeout_s: int,
    ) -> str:
        ...

    def stream_chat(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int,
        temperature: float,
        top_p: float,
        timeout_s: int,
    ) -> Iterator[str]:
        ...

    def status(self) -> Dict[str, Any]:
        ...
