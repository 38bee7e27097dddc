"""
Configuration for the Prompt Workbench API.

Endpoints, model names, credentials and server settings.
Loads from .env file if present (via python-dotenv).
"""
import os

from dotenv import load_dotenv

load_dotenv()

# Value shipped in the sample .env; treated the same as a missing key
PLACEHOLDER_API_KEY = "SUA_CHAVE_API_AQUI"

# --- Generative AI (Google Gemini) ---
GOOGLE_API_KEY = os.environ.get("GOOGLE_API_KEY", "")
GEMINI_API_BASE_URL = os.environ.get(
    "GEMINI_API_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
)
GEMINI_MODEL = os.environ.get("GEMINI_MODEL", "gemini-1.5-flash-latest")

# Free tier quota is tiny, so throttled calls are retried up to 6 times
MAX_ATTEMPTS = int(os.environ.get("WORKBENCH_MAX_ATTEMPTS", "6"))

# --- Conversational agent (Dify) ---
DIFY_API_KEY = os.environ.get("DIFY_API_KEY", "")
DIFY_API_URL = os.environ.get("DIFY_API_URL", "https://api.dify.ai/v1/chat-messages")
DIFY_MAX_ATTEMPTS = int(os.environ.get("DIFY_MAX_ATTEMPTS", "1"))
# When set, the user prompt is sent to the agent as inputs[<this name>].
# Empty means the agent's persona is configured inside Dify itself.
DIFY_PROMPT_INPUT = os.environ.get("DIFY_PROMPT_INPUT", "")

# Per-attempt request timeout (seconds)
REQUEST_TIMEOUT = int(os.environ.get("WORKBENCH_REQUEST_TIMEOUT", "120"))

# Optional YAML file overriding templates / generation parameters
PIPELINE_CONFIG = os.environ.get("WORKBENCH_PIPELINE_CONFIG", "")

# Locale for error messages when the request has no Accept-Language
LOCALE = os.environ.get("WORKBENCH_LOCALE", "pt-BR")

# --- API Configuration ---
API_HOST = os.environ.get("WORKBENCH_API_HOST", "0.0.0.0")
API_PORT = int(os.environ.get("WORKBENCH_API_PORT", "8000"))
LOG_LEVEL = os.environ.get("WORKBENCH_LOG_LEVEL", "INFO")

# CORS origins (Next.js dev server)
CORS_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]


def is_configured(api_key: str) -> bool:
    return bool(api_key) and api_key != PLACEHOLDER_API_KEY
