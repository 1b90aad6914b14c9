import os


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


# Model/runtime knobs
# Default output budget when a minimized fragment was sent to the model
SCOPED_MAX_TOKENS = int(os.getenv("SE_SCOPED_MAX_TOKENS", "4096"))
# Output budget when the whole document was sent
FULL_MAX_TOKENS = int(os.getenv("SE_FULL_MAX_TOKENS", "16384"))
TEMPERATURE = float(os.getenv("SE_TEMP", "0.2"))
FALLBACK_TEMP = float(os.getenv("SE_FALLBACK_TEMP", "0.1"))  # Lower for the directive retry
TOP_P = float(os.getenv("SE_TOP_P", "0.9"))
# Hard bound on one model call (seconds); the editor UI aborts at five minutes too
GEN_TIMEOUT = int(os.getenv("SE_GEN_TIMEOUT", "300"))

DEBUG = _flag("SE_DEBUG", "")
DEBUG_LOG_PATH = os.getenv("SE_DEBUG_LOG", os.path.expanduser("~/.site_editor-debug.log"))
# SE_DEBUG_DUMP_VERBOSE=1: write full model output to debug log (no truncation).
DEBUG_DUMP_VERBOSE = _flag("SE_DEBUG_DUMP_VERBOSE", "false")
DEBUG_DUMP_MAX_LINES = int(os.getenv("SE_DEBUG_DUMP_MAX_LINES", "20"))
DEBUG_DUMP_MAX_CHARS = int(os.getenv("SE_DEBUG_DUMP_MAX_CHARS", "2000"))

# Hosted providers (first configured wins: DeepSeek, Azure OpenAI, OpenAI)
DEEPSEEK_API_KEY = os.getenv("DEEPSEEK_API_KEY", "").strip() or None
DEEPSEEK_BASE_URL = os.getenv("DEEPSEEK_BASE_URL", "https://api.deepseek.com")
DEEPSEEK_MODEL = os.getenv("DEEPSEEK_MODEL", "deepseek-chat")
AZURE_OPENAI_ENDPOINT = os.getenv("AZURE_OPENAI_ENDPOINT", "").strip() or None
AZURE_OPENAI_API_KEY = os.getenv("AZURE_OPENAI_API_KEY", "").strip() or None
AZURE_OPENAI_DEPLOYMENT = os.getenv("AZURE_OPENAI_DEPLOYMENT_NAME", "").strip() or None
AZURE_OPENAI_API_VERSION = os.getenv("AZURE_OPENAI_API_VERSION", "2024-08-01-preview")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "").strip() or None
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o")

# Local runtimes. SE_CHAT_URL points at any OpenAI-compatible server
# (e.g. llama-server started with --jinja): http://127.0.0.1:8012/v1
CHAT_URL = os.getenv("SE_CHAT_URL", "").strip() or None
CHAT_MODEL = os.getenv("SE_CHAT_MODEL", "local")
# Optional GGUF path for an in-process llama.cpp model (llama-cpp-python)
GGUF_PATH = os.getenv("SE_GGUF", "").strip() or None
GGUF_CTX = int(os.getenv("SE_CTX_TOK", "32768"))
GGUF_THREADS = int(os.getenv("SE_THREADS", str(os.cpu_count() or 4)))
GGUF_GPU_LAYERS = int(os.getenv("SE_GPU_LAYERS", "-1"))
# Optional MLX model (HuggingFace id or local path). When set, use mlx_lm instead of GGUF.
MLX_MODEL = os.getenv("SE_MLX_MODEL", "").strip() or None
MLX_MAX_KV_SIZE = int(os.getenv("SE_MLX_MAX_KV_SIZE", "0"))

# Editor knobs
EDIT_LIMIT_PER_HOUR = int(os.getenv("SE_EDIT_LIMIT_PER_HOUR", "25"))
# A full-document reply shorter than this share of the current page is treated as truncated
FULL_DOC_MIN_RATIO = float(os.getenv("SE_FULL_DOC_MIN_RATIO", "0.5"))
CSS_BLOCK_MIN_CHARS = int(os.getenv("SE_CSS_BLOCK_MIN_CHARS", "20"))
MAX_HISTORY_MESSAGES = int(os.getenv("SE_MAX_HISTORY_MESSAGES", "6"))
MAX_PROMPT_CHARS = int(os.getenv("SE_MAX_PROMPT_CHARS", "4000"))
# Emit an SSE progress frame every N accumulated characters
STREAM_PROGRESS_CHARS = int(os.getenv("SE_STREAM_PROGRESS_CHARS", "2000"))
VALIDATE_OUTPUT = _flag("SE_VALIDATE_OUTPUT", "true")

# Usage counter persistence: "memory" or a JSON file path
USAGE_STORE = os.getenv("SE_USAGE_STORE", "memory").strip() or "memory"

# Server knobs
SERVER_HOST = os.getenv("SE_HOST", "127.0.0.1")
SERVER_PORT = int(os.getenv("SE_PORT", "8000"))
# Header set by the upstream auth proxy carrying the authenticated user id
USER_HEADER = os.getenv("SE_USER_HEADER", "X-User-Id")
MAX_BODY_BYTES = int(os.getenv("SE_MAX_BODY_BYTES", str(4 * 1024 * 1024)))
CORS_ORIGIN = os.getenv("SE_CORS_ORIGIN", "*")
