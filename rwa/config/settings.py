"""Application settings resolved from the environment and an optional .env file."""

from __future__ import annotations

import logging
import os
from typing import Any, List, Optional

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_RPC_URL = "http://localhost:8545"
DEFAULT_TX_TIMEOUT = 120.0


def _value_from_sources(key: str, default: Any = None) -> Any:
    env_val = os.getenv(key)
    if env_val is not None:
        return env_val
    return default


def _as_str(value: Any, default: str = "") -> str:
    if value is None:
        return default
    if isinstance(value, str):
        return value
    return str(value)


def _as_optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return str(value)


def _as_optional_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (ValueError, TypeError):
        return None


def _as_float(value: Any, default: float = 0.0) -> float:
    if value is None:
        return default
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except (ValueError, TypeError):
        return default


class Settings:
    """Chain connection settings resolved from environment variables."""

    RPC_URL: str = DEFAULT_RPC_URL
    CHAIN_ID: Optional[int] = None
    TOKEN_FACTORY_ADDRESS: Optional[str] = None
    PRIVATE_KEY: Optional[str] = None

    RWA_TX_TIMEOUT: float = DEFAULT_TX_TIMEOUT
    LOG_LEVEL: str = "WARNING"

    @classmethod
    def _populate(cls) -> None:
        cls.RPC_URL = _as_str(_value_from_sources("RPC_URL"), "").strip() or DEFAULT_RPC_URL
        cls.CHAIN_ID = _as_optional_int(_value_from_sources("CHAIN_ID"))
        cls.TOKEN_FACTORY_ADDRESS = _as_optional_str(_value_from_sources("TOKEN_FACTORY_ADDRESS"))
        cls.PRIVATE_KEY = _as_optional_str(_value_from_sources("PRIVATE_KEY"))

        timeout = _as_float(_value_from_sources("RWA_TX_TIMEOUT", DEFAULT_TX_TIMEOUT), DEFAULT_TX_TIMEOUT)
        cls.RWA_TX_TIMEOUT = timeout if timeout > 0 else DEFAULT_TX_TIMEOUT

        cls.LOG_LEVEL = _as_str(_value_from_sources("LOG_LEVEL", "WARNING"), "WARNING")

    @classmethod
    def refresh_from_env(cls) -> None:
        cls._populate()

    @classmethod
    def missing(cls) -> List[str]:
        """Names of connection values that must still be prompted for."""

        missing = []
        if cls.CHAIN_ID is None:
            missing.append("CHAIN_ID")
        if not cls.TOKEN_FACTORY_ADDRESS:
            missing.append("TOKEN_FACTORY_ADDRESS")
        if not cls.PRIVATE_KEY:
            missing.append("PRIVATE_KEY")
        return missing

    @classmethod
    def validate(cls) -> bool:
        missing = cls.missing()
        if missing:
            logger.info("Configuration incomplete, will prompt for: %s", ", ".join(missing))
            return False
        return True

    @classmethod
    def log_config(cls) -> None:
        logger.info("RWA Token Manager Configuration:")
        logger.info(f"  RPC URL: {cls.RPC_URL}")
        logger.info(f"  Chain ID: {cls.CHAIN_ID if cls.CHAIN_ID is not None else 'not set'}")
        logger.info(f"  Token Factory: {cls.TOKEN_FACTORY_ADDRESS or 'not set'}")
        logger.info(f"  Private Key: {'set' if cls.PRIVATE_KEY else 'not set'}")
        logger.info(f"  Receipt Timeout: {cls.RWA_TX_TIMEOUT}s")


# Populate class attributes on import
Settings.refresh_from_env()


def setup_logging(level_override: Optional[str] = None) -> None:
    """Configure root logging using environment or override."""

    level_name = (level_override or Settings.LOG_LEVEL or "WARNING").upper()

    if level_name in {"NO", "NONE", "OFF"}:
        # Use a level above CRITICAL to ensure all logging is effectively disabled
        level = logging.CRITICAL + 10
    else:
        level = getattr(logging, level_name, logging.WARNING)

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        force=True,
    )

    logging.getLogger("rwa").setLevel(level)

    # Keep noisy third-party loggers at INFO or higher
    noisy_logger_level = max(level, logging.INFO)
    for name in ("web3", "urllib3", "asyncio"):
        logging.getLogger(name).setLevel(noisy_logger_level)
