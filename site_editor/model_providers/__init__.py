"""Provider abstractions for model backends."""

from .base import ChatProvider, ModelError, ModelNotConfigured, ModelTimeout
from .adapters import HttpChatProvider, LlamaCppProvider, MLXProvider

__all__ = [
    "ChatProvider",
    "ModelError",
    "ModelNotConfigured",
    "ModelTimeout",
    "HttpChatProvider",
    "LlamaCppProvider",
    "MLXProvider",
]
