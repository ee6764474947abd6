"""Client settings read from environment variables."""
import os
from dataclasses import dataclass, field
from typing import Optional

from mall_client.logging import get_logger

logger = get_logger(__name__)

DEFAULT_BASE_URL = "http://localhost:8080/api"
DEFAULT_TIMEOUT = 10.0
DEFAULT_RETRY_ATTEMPTS = 1
DEFAULT_SUCCESS_CODES = frozenset({200})


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid %s=%r, using default %s", name, raw, default)
        return default
    if value <= 0:
        logger.warning("Non-positive %s=%r, using default %s", name, raw, default)
        return default
    return value


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid %s=%r, using default %s", name, raw, default)
        return default
    return max(1, value)


def _env_codes(name: str, default: frozenset) -> frozenset:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        codes = frozenset(int(part) for part in raw.split(",") if part.strip())
    except ValueError:
        logger.warning("Invalid %s=%r, using default %s", name, raw, sorted(default))
        return default
    return codes or default


@dataclass(frozen=True)
class Settings:
    """Connection and persistence settings for one client surface."""
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    storage_path: Optional[str] = None  # None = in-memory storage
    storage_namespace: str = ""
    retry_attempts: int = DEFAULT_RETRY_ATTEMPTS
    success_codes: frozenset = field(default_factory=lambda: DEFAULT_SUCCESS_CODES)

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from environment variables.

        Variables:
            MALL_API_BASE_URL, MALL_API_TIMEOUT, MALL_STORAGE_PATH,
            MALL_STORAGE_NAMESPACE, MALL_RETRY_ATTEMPTS, MALL_SUCCESS_CODES
        """
        return cls(
            base_url=os.environ.get("MALL_API_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
            timeout=_env_float("MALL_API_TIMEOUT", DEFAULT_TIMEOUT),
            storage_path=os.environ.get("MALL_STORAGE_PATH") or None,
            storage_namespace=os.environ.get("MALL_STORAGE_NAMESPACE", ""),
            retry_attempts=_env_int("MALL_RETRY_ATTEMPTS", DEFAULT_RETRY_ATTEMPTS),
            success_codes=_env_codes("MALL_SUCCESS_CODES", DEFAULT_SUCCESS_CODES),
        )
