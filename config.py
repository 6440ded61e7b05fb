import os
from typing import Optional
from dotenv import load_dotenv

from errors import ConfigurationError

# Load .env - try multiple paths
load_dotenv()  # Current directory
load_dotenv(os.path.join(os.path.dirname(os.path.abspath(__file__)), ".env"))

# Basic environment config
OPENAI_API_KEY: Optional[str] = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL_CHAT: str = os.getenv("OPENAI_MODEL_CHAT", "gpt-3.5-turbo")
LLM_TIMEOUT_SECONDS: float = float(os.getenv("LLM_TIMEOUT_SECONDS", "60"))

OCR_LANGUAGE: str = os.getenv("OCR_LANGUAGE", "eng")
OCR_TIMEOUT_SECONDS: float = float(os.getenv("OCR_TIMEOUT_SECONDS", "120"))

UPLOADS_DIR: str = os.getenv("UPLOADS_DIR", "uploads")
MAX_UPLOAD_BYTES: int = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))
PUBLIC_DIR: str = os.getenv("PUBLIC_DIR", "public")

HOST: str = os.getenv("HOST", "0.0.0.0")
PORT: int = int(os.getenv("PORT", "3000"))
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# Length of the raw model reply echoed back when /ask cannot parse it
ANSWER_FALLBACK_CHARS: int = int(os.getenv("ANSWER_FALLBACK_CHARS", "500"))


def require_api_key() -> str:
    """Return the OpenAI key or refuse to continue."""
    if not OPENAI_API_KEY:
        raise ConfigurationError("OPENAI_API_KEY is not set in environment variables")
    return OPENAI_API_KEY
