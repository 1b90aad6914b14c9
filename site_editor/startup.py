"""site-editor server entrypoint."""

import signal
import sys
import time

from . import config
from .model import get_provider
from .model_providers import ModelError
from .server import start_server


def main():
    """Start the site-editor HTTP server."""
    if config.CHAT_URL:
        print(f"[Using local chat server: {config.CHAT_URL}]", file=sys.stderr)
    elif config.DEEPSEEK_API_KEY:
        print(f"[Using DeepSeek model: {config.DEEPSEEK_MODEL}]", file=sys.stderr)
    elif config.AZURE_OPENAI_ENDPOINT:
        print(f"[Using Azure OpenAI deployment: {config.AZURE_OPENAI_DEPLOYMENT}]", file=sys.stderr)
    elif config.OPENAI_API_KEY:
        print(f"[Using OpenAI model: {config.OPENAI_MODEL}]", file=sys.stderr)
    elif config.GGUF_PATH:
        print(f"[Using GGUF model: {config.GGUF_PATH}]", file=sys.stderr)
    elif config.MLX_MODEL:
        print(f"[Using MLX model: {config.MLX_MODEL}]", file=sys.stderr)
    else:
        print("[No AI model configured; edit requests will fail with 500]", file=sys.stderr)
    print(f"[Usage store: {config.USAGE_STORE}, limit {config.EDIT_LIMIT_PER_HOUR}/hour]", file=sys.stderr)

    # Load in-process models before binding the port so the first request doesn't block
    if config.GGUF_PATH or config.MLX_MODEL:
        try:
            print("[Loading model (this may take 1-2 min)...]", file=sys.stderr)
            sys.stderr.flush()
            get_provider()
            print("[Model load complete]", file=sys.stderr)
        except ModelError as exc:
            print(f"[Model load failed: {exc}]", file=sys.stderr)
            sys.exit(1)

    try:
        start_server()
        print(
            f"[Server running on {config.SERVER_HOST}:{config.SERVER_PORT}. Ctrl+C to exit.]",
            file=sys.stderr,
        )
        signal.signal(signal.SIGINT, lambda sig, frame: sys.exit(0))
        while True:
            time.sleep(1)
    except OSError as exc:
        print(f"Failed to start HTTP server on port {config.SERVER_PORT}: {exc}")
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nServer shutting down...", file=sys.stderr)
        sys.exit(0)


if __name__ == "__main__":
    main()
