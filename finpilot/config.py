import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel


_ENV_PATH = os.path.join(os.path.dirname(__file__), "..", ".env")
load_dotenv(dotenv_path=_ENV_PATH, override=False)


def _get_env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _get_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_float(name: str, default: float) -> float:
    v = os.getenv(name)
    if v is None or not v.strip():
        return default
    return float(v)


class Settings(BaseModel):
    GOOGLE_API_KEY: str      # primary: Gemini (text + audio)
    ANTHROPIC_API_KEY: str   # text-only fallback backend
    GEMINI_MODEL: str
    ANTHROPIC_MODEL: str
    INFERENCE_TIMEOUT_S: float
    OCR_LANGUAGE: str
    OCR_PREPROCESS: bool
    PDF_OCR_FALLBACK: bool
    ACTION_CATALOGUE_PATH: str
    LOG_LEVEL: str
    DEBUG: bool
    APP_ENV: str

    @property
    def demo_mode(self) -> bool:
        return not bool(self.GOOGLE_API_KEY) and not bool(self.ANTHROPIC_API_KEY)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(
        GOOGLE_API_KEY=_get_env("GOOGLE_API_KEY", ""),
        ANTHROPIC_API_KEY=_get_env("ANTHROPIC_API_KEY", ""),
        GEMINI_MODEL=_get_env("GEMINI_MODEL", "gemini-2.5-flash"),
        ANTHROPIC_MODEL=_get_env("ANTHROPIC_MODEL", "claude-sonnet-4-5"),
        INFERENCE_TIMEOUT_S=_get_float("INFERENCE_TIMEOUT_S", 60.0),
        OCR_LANGUAGE=_get_env("OCR_LANGUAGE", "eng"),
        OCR_PREPROCESS=_get_bool("OCR_PREPROCESS", True),
        PDF_OCR_FALLBACK=_get_bool("PDF_OCR_FALLBACK", False),
        ACTION_CATALOGUE_PATH=_get_env("ACTION_CATALOGUE_PATH", ""),
        LOG_LEVEL=_get_env("LOG_LEVEL", "INFO"),
        DEBUG=_get_bool("DEBUG", False),
        APP_ENV=_get_env("APP_ENV", "development"),
    )
