import os
import logging
from dataclasses import dataclass, field
from typing import Optional
from dotenv import load_dotenv

load_dotenv()

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: Optional[str] = None) -> None:
    """Configure root logging once for the app, the dashboard and scripts."""
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay: float = 1.0
    factor: float = 2.0
    max_delay: float = 8.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("backoff delays must be >= 0")
        if self.factor <= 1:
            raise ValueError("backoff factor must be > 1")
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be >= base_delay")

    def delay_before(self, attempt: int) -> float:
        """Seconds to wait before `attempt` (1-based). The first attempt never waits."""
        if attempt <= 1:
            return 0.0
        return min(self.base_delay * self.factor ** (attempt - 2), self.max_delay)


@dataclass(frozen=True)
class Settings:
    api_key: Optional[str] = field(default=None, repr=False)
    model: str = "gemini-2.5-flash"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    timeout: float = 60.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    min_resume_length: int = 50


def _env_number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ValueError(f"{name} must be a {cast.__name__}, got {raw!r}")


def load_settings() -> Settings:
    """Build settings from the environment (and `.env`, loaded at import)."""
    api_key = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY") or None
    retry = RetryPolicy(
        max_attempts=_env_number("ANALYSIS_MAX_ATTEMPTS", 3, int),
        base_delay=_env_number("ANALYSIS_BACKOFF_BASE", 1.0, float),
        factor=_env_number("ANALYSIS_BACKOFF_FACTOR", 2.0, float),
        max_delay=_env_number("ANALYSIS_BACKOFF_MAX", 8.0, float),
    )
    return Settings(
        api_key=api_key.strip() if api_key else None,
        model=os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
        base_url=os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta").rstrip("/"),
        timeout=_env_number("ANALYSIS_TIMEOUT", 60.0, float),
        retry=retry,
        min_resume_length=_env_number("MIN_RESUME_LENGTH", 50, int),
    )
