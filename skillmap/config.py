"""
Config - Engine settings from environment variables.

Values are read from the process environment (and a local .env file, if any)
when `load_config()` is called.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env
load_dotenv()


@dataclass(frozen=True)
class EngineConfig:
    # Stopping rules
    MIN_QUESTIONS: int = 10
    MAX_QUESTIONS: int = 15
    MAX_TIME_SECONDS: int = 45 * 60
    COVERAGE_THRESHOLD: float = 0.6
    CONFIDENCE_THRESHOLD: float = 0.7

    # Question selection
    WARMUP_QUESTIONS: int = 3
    WARMUP_POOL: int = 10
    QUESTION_CACHE_TTL: float = 5 * 60

    # Storage
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_PASSWORD: Optional[str] = None

    # Semantic scoring
    EMBEDDING_MODEL: str = "text-embedding-3-small"

    LOG_LEVEL: str = "INFO"


def load_config() -> EngineConfig:
    """Build an EngineConfig from the environment, falling back to defaults."""
    defaults = EngineConfig()
    return EngineConfig(
        MIN_QUESTIONS=int(os.getenv("ASSESSMENT_MIN_QUESTIONS", defaults.MIN_QUESTIONS)),
        MAX_QUESTIONS=int(os.getenv("ASSESSMENT_MAX_QUESTIONS", defaults.MAX_QUESTIONS)),
        MAX_TIME_SECONDS=int(os.getenv("ASSESSMENT_MAX_TIME_SECONDS", defaults.MAX_TIME_SECONDS)),
        COVERAGE_THRESHOLD=float(os.getenv("ASSESSMENT_COVERAGE_THRESHOLD", defaults.COVERAGE_THRESHOLD)),
        CONFIDENCE_THRESHOLD=float(os.getenv("ASSESSMENT_CONFIDENCE_THRESHOLD", defaults.CONFIDENCE_THRESHOLD)),
        WARMUP_QUESTIONS=int(os.getenv("ASSESSMENT_WARMUP_QUESTIONS", defaults.WARMUP_QUESTIONS)),
        WARMUP_POOL=int(os.getenv("ASSESSMENT_WARMUP_POOL", defaults.WARMUP_POOL)),
        QUESTION_CACHE_TTL=float(os.getenv("QUESTION_CACHE_TTL", defaults.QUESTION_CACHE_TTL)),
        REDIS_HOST=os.getenv("REDIS_HOST", defaults.REDIS_HOST),
        REDIS_PORT=int(os.getenv("REDIS_PORT", defaults.REDIS_PORT)),
        REDIS_PASSWORD=os.getenv("REDIS_PASSWORD", defaults.REDIS_PASSWORD),
        EMBEDDING_MODEL=os.getenv("EMBEDDING_MODEL", defaults.EMBEDDING_MODEL),
        LOG_LEVEL=os.getenv("LOG_LEVEL", defaults.LOG_LEVEL).upper(),
    )


def configure_logging(level: str = "INFO"):
    """Basic root logger setup for hosts that don't configure logging themselves."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
