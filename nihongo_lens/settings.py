from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_API_URL = "https://generativelanguage.googleapis.com/v1beta/openai/chat/completions"
DEFAULT_MODEL = "gemini-2.5-flash-preview-05-20"
DEFAULT_TTS_URL = (
    "https://generativelanguage.googleapis.com/v1beta/models/"
    "gemini-2.5-flash-preview-tts:generateContent"
)
DEFAULT_TTS_MODEL = "gemini-2.5-flash-preview-tts"
DEFAULT_EDGE_TTS_URL = "https://api.howen.ink/api/tts"


class Settings(BaseSettings):
    # Optional gate password; when unset every visitor is let in.
    code: Optional[str] = None

    api_key: Optional[str] = None
    api_url: str = DEFAULT_API_URL
    model_name: str = DEFAULT_MODEL

    tts_url: str = DEFAULT_TTS_URL
    tts_model: str = DEFAULT_TTS_MODEL
    edge_tts_url: str = DEFAULT_EDGE_TTS_URL

    upstream_timeout: float = 120.0
    explanation_language: str = "Simplified Chinese"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", protected_namespaces=())


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
