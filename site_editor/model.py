import sys
import threading
import time
from typing import Any, Callable, Dict, List, Optional

from . import config
from .model_roles import resolve_role_config
from .model_providers import (
    ChatProvider,
    HttpChatProvider,
    LlamaCppProvider,
    MLXProvider,
    ModelNotConfigured,
    ModelTimeout,
)
from .utils import dbg, dbg_dump

_PROVIDER: Optional[ChatProvider] = None
_load_lock = threading.Lock()

# In-process backends (llama.cpp binding, MLX) are not thread-safe.
MODEL_LOCK = threading.Lock()
_LOCKED_KINDS = ("gguf_python", "mlx")


def _azure_url() -> str:
    endpoint = (config.AZURE_OPENAI_ENDPOINT or "").rstrip("/")
    return (
        f"{endpoint}/openai/deployments/{config.AZURE_OPENAI_DEPLOYMENT}"
        f"/chat/completions?api-version={config.AZURE_OPENAI_API_VERSION}"
    )


def load_provider() -> ChatProvider:
    """Pick a backend from config: local server, DeepSeek, Azure OpenAI, OpenAI, GGUF, then MLX."""
    if config.CHAT_URL:
        return HttpChatProvider(
            url=config.CHAT_URL.rstrip("/") + "/chat/completions",
            model=config.CHAT_MODEL,
            name="local-server",
        )
    if config.DEEPSEEK_API_KEY:
        return HttpChatProvider(
            url=config.DEEPSEEK_BASE_URL.rstrip("/") + "/chat/completions",
            model=config.DEEPSEEK_MODEL,
            api_key=config.DEEPSEEK_API_KEY,
            name="deepseek",
        )
    if config.AZURE_OPENAI_ENDPOINT and config.AZURE_OPENAI_API_KEY and config.AZURE_OPENAI_DEPLOYMENT:
        return HttpChatProvider(
            url=_azure_url(),
            model=config.AZURE_OPENAI_DEPLOYMENT,
            api_key=config.AZURE_OPENAI_API_KEY,
            auth_header="api-key",
            name="azure-openai",
        )
    if config.OPENAI_API_KEY:
        return HttpChatProvider(
            url=config.OPENAI_BASE_URL.rstrip("/") + "/chat/completions",
            model=config.OPENAI_MODEL,
            api_key=config.OPENAI_API_KEY,
            name="openai",
        )
    if config.GGUF_PATH:
        try:
            from llama_cpp import Llama  # type: ignore
        except ImportError as exc:
            raise ModelNotConfigured("SE_GGUF is set; install with: pip install llama-cpp-python") from exc
        print(f"[Loading GGUF model: {config.GGUF_PATH}]", file=sys.stderr)
        llm = Llama(
            model_path=config.GGUF_PATH,
            n_ctx=config.GGUF_CTX,
            n_threads=config.GGUF_THREADS,
            n_gpu_layers=config.GGUF_GPU_LAYERS,
            verbose=False,
        )
        return LlamaCppProvider(llm)
    if config.MLX_MODEL:
        try:
            import mlx_lm  # noqa: F401
        except ImportError as exc:
            raise ModelNotConfigured("MLX backend requires: pip install mlx mlx-lm") from exc
        print(f"[Loading MLX model: {config.MLX_MODEL}]", file=sys.stderr)
        return MLXProvider(config.MLX_MODEL, config.MLX_MAX_KV_SIZE)
    raise ModelNotConfigured(
        "No model configured: set DEEPSEEK_API_KEY, AZURE_OPENAI_*, OPENAI_API_KEY, SE_CHAT_URL, SE_GGUF or SE_MLX_MODEL"
    )


def get_provider() -> ChatProvider:
    """Return the active provider, loading it on first use."""
    global _PROVIDER
    with _load_lock:
        if _PROVIDER is None:
            _PROVIDER = load_provider()
            dbg(f"model: provider ready name={_PROVIDER.name} kind={_PROVIDER.kind}")
        return _PROVIDER


def set_provider(provider: Optional[ChatProvider]) -> None:
    """Install a provider explicitly (or clear it so the next call reloads from config)."""
    global _PROVIDER
    with _load_lock:
        _PROVIDER = provider


def backend_status() -> Dict[str, Any]:
    provider = _PROVIDER
    if provider is None:
        return {"backend": None, "loaded": False}
    info: Dict[str, Any] = {"backend": provider.name, "kind": provider.kind, "loaded": True}
    try:
        info["provider"] = provider.status()
    except Exception as exc:
        info["provider_error"] = str(exc)
    return info


class _NullLock:
    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


def _lock_for(provider: ChatProvider):
    return MODEL_LOCK if getattr(provider, "kind", "") in _LOCKED_KINDS else _NullLock()


def complete(
    messages: List[Dict[str, str]],
    role: str = "edit_full",
    provider: Optional[ChatProvider] = None,
    timeout_s: Optional[int] = None,
) -> str:
    """One non-streaming chat completion using the role's token budget and temperature."""
    provider = provider or get_provider()
    cfg = resolve_role_config(role)
    timeout_s = int(timeout_s or config.GEN_TIMEOUT)
    t0 = time.monotonic()
    with _lock_for(provider):
        reply = provider.chat(
            messages,
            max_tokens=cfg.max_new,
            temperature=cfg.temperature,
            top_p=config.TOP_P,
            timeout_s=timeout_s,
        )
    dbg(f"model.complete: role={cfg.name} chars={len(reply or '')} elapsed={time.monotonic() - t0:.1f}s")
    dbg_dump(f"model_reply_{cfg.name}", reply or "")
    return reply or ""


def stream_complete(
    messages: List[Dict[str, str]],
    role: str = "edit_full",
    provider: Optional[ChatProvider] = None,
    timeout_s: Optional[int] = None,
    on_delta: Optional[Callable[[int], None]] = None,
) -> str:
    """Stream a completion, reporting the accumulated character count to on_delta.

    The whole call is bounded by timeout_s. On expiry ModelTimeout is raised and
    the partial reply is discarded.
    """
    provider = provider or get_provider()
    cfg = resolve_role_config(role)
    timeout_s = int(timeout_s or config.GEN_TIMEOUT)
    deadline = time.monotonic() + timeout_s
    parts: List[str] = []
    total = 0
    with _lock_for(provider):
        for piece in provider.stream_chat(
            messages,
            max_tokens=cfg.max_new,
            temperature=cfg.temperature,
            top_p=config.TOP_P,
            timeout_s=timeout_s,
        ):
            if time.monotonic() > deadline:
                raise ModelTimeout(f"model call exceeded {timeout_s}s")
            parts.append(piece)
            total += len(piece)
            if on_delta is not None:
                on_delta(total)
    reply = "".join(parts)
    dbg(f"model.stream_complete: role={cfg.name} chars={len(reply)}")
    dbg_dump(f"model_reply_{cfg.name}", reply)
    return reply
