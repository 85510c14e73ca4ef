"""
Application configuration.

Values come from environment variables; a ``.env`` file at the repository
root is loaded first when present. Configuration is read once into a frozen
``Settings`` instance shared by the whole process.

Environment configuration:
- GEMINI_API_KEY: Primary provider key
- GEMINI_API_KEY_FALLBACK: Optional fallback provider key
- GEMINI_API_BASE: Provider base URL (default: Generative Language v1beta)
- GEMINI_MODEL: Text model (default: gemini-2.0-flash)
- GEMINI_VISION_MODEL: Image model for interior analysis
- GEMINI_TIMEOUT_SECONDS: Per-request timeout (default: 30)
- AI_MAX_RETRIES / AI_INITIAL_DELAY_MS: Orchestrator retry policy
- SUPABASE_URL / SUPABASE_SERVICE_KEY: House catalog store
- HOUSES_TABLE: Catalog table name (default: houses)
"""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from app.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_API_BASE = "https://generativelanguage.googleapis.com/v1beta"

env_path = Path(__file__).parent.parent.parent.parent / ".env"

if env_path.exists():
    load_dotenv(env_path)
    logger.info("env_loaded", env_path=str(env_path))


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("config_invalid_int", name=name, value=raw, default=default)
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("config_invalid_float", name=name, value=raw, default=default)
        return default


@dataclass(frozen=True)
class Settings:
    gemini_api_key: Optional[str] = None
    gemini_api_key_fallback: Optional[str] = None
    gemini_api_base: str = DEFAULT_API_BASE
    gemini_model: str = "gemini-2.0-flash"
    gemini_vision_model: str = "gemini-1.5-flash-latest"
    gemini_timeout_seconds: float = 30.0
    ai_max_retries: int = 5
    ai_initial_delay_ms: int = 1000
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    houses_table: str = "houses"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
            gemini_api_key_fallback=os.getenv("GEMINI_API_KEY_FALLBACK") or None,
            gemini_api_base=os.getenv("GEMINI_API_BASE", DEFAULT_API_BASE).rstrip("/"),
            gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.0-flash"),
            gemini_vision_model=os.getenv("GEMINI_VISION_MODEL", "gemini-1.5-flash-latest"),
            gemini_timeout_seconds=_env_float("GEMINI_TIMEOUT_SECONDS", 30.0),
            ai_max_retries=_env_int("AI_MAX_RETRIES", 5),
            ai_initial_delay_ms=_env_int("AI_INITIAL_DELAY_MS", 1000),
            supabase_url=os.getenv("SUPABASE_URL") or None,
            supabase_key=os.getenv("SUPABASE_SERVICE_KEY") or os.getenv("SUPABASE_KEY") or None,
            houses_table=os.getenv("HOUSES_TABLE", "houses"),
        )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Global settings accessor."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next access re-reads the environment."""
    global _settings
    _settings = None
