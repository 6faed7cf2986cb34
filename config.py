# sponsor-tree/config.py
"""
Settings for the sponsor tree toolkit.
Values come from the process environment, optionally seeded from a .env file.
"""
import os
import math
import logging
from typing import Any, Callable, Dict, Optional, Tuple
from dotenv import load_dotenv

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when a setting is missing or cannot be parsed."""
    pass


def _parse_variant(raw: str) -> str:
    variant = raw.strip().lower()
    if variant not in ("unbounded", "binary"):
        raise ValueError(f"TREE_VARIANT must be 'unbounded' or 'binary', got '{raw}'")
    return variant


def _parse_exponent(raw: str) -> float:
    try:
        exponent = float(raw)
    except ValueError:
        raise ValueError(f"UPLINE_WEIGHT_EXPONENT must be a number, got '{raw}'")
    if not math.isfinite(exponent) or exponent < 0:
        raise ValueError(f"UPLINE_WEIGHT_EXPONENT must be finite and >= 0, got '{raw}'")
    return exponent


class Config:
    """
    Process-wide settings store.

    Usage:
        Config.initialize_from_env()
        path = Config.get(Config.DATA_FILE)

        # Override at runtime (tests, scripts)
        Config.set(Config.UPLINE_WEIGHT_EXPONENT, 0.75)
    """

    # ═══════════════════════════════════════════════════════════════════════
    # SETTING NAMES
    # ═══════════════════════════════════════════════════════════════════════

    DATA_FILE = "DATA_FILE"
    DATABASE_URL = "DATABASE_URL"
    TREE_VARIANT = "TREE_VARIANT"
    UPLINE_WEIGHT_EXPONENT = "UPLINE_WEIGHT_EXPONENT"
    LOG_LEVEL = "LOG_LEVEL"

    # name -> (default, parser)
    _SCHEMA: Dict[str, Tuple[str, Callable[[str], Any]]] = {
        DATA_FILE: ("mlm_data.tsv", str),
        DATABASE_URL: ("sqlite:///sponsor_tree.db", str),
        TREE_VARIANT: ("unbounded", _parse_variant),
        UPLINE_WEIGHT_EXPONENT: ("0.5", _parse_exponent),
        LOG_LEVEL: ("INFO", lambda raw: raw.strip().upper()),
    }

    # Settings the CLI cannot work without
    CRITICAL_KEYS = [DATA_FILE, TREE_VARIANT]

    _config: Dict[str, Any] = {}
    _initialized: bool = False

    # ═══════════════════════════════════════════════════════════════════════
    # LOADING
    # ═══════════════════════════════════════════════════════════════════════

    @classmethod
    def initialize_from_env(cls, env_file: Optional[str] = None) -> None:
        """
        Read every setting from the environment, falling back to defaults.

        Args:
            env_file: Path of the .env file; searched upwards when omitted

        Raises:
            ConfigurationError: If a value cannot be parsed
        """
        load_dotenv(env_file)

        loaded = {}
        for name, (default, parse) in cls._SCHEMA.items():
            raw = os.getenv(name, default)
            try:
                loaded[name] = parse(raw)
            except ValueError as e:
                logger.error(f"Invalid setting {name}: {e}")
                raise ConfigurationError(str(e))

        cls._config.update(loaded)
        cls._initialized = True
        logger.info(f"Configuration loaded: {len(loaded)} settings")

    @classmethod
    def validate_critical_keys(cls) -> None:
        """
        Raises:
            ConfigurationError: If a setting in CRITICAL_KEYS is empty
        """
        missing = [key for key in cls.CRITICAL_KEYS if not cls.get(key)]
        if missing:
            error_msg = f"Missing critical configuration keys: {', '.join(missing)}"
            logger.critical(error_msg)
            raise ConfigurationError(error_msg)

    # ═══════════════════════════════════════════════════════════════════════
    # ACCESS
    # ═══════════════════════════════════════════════════════════════════════

    @classmethod
    def get(cls, key: str, default: Any = None) -> Any:
        return cls._config.get(key, default)

    @classmethod
    def set(cls, key: str, value: Any, source: str = "runtime") -> None:
        """Override one setting; source only shows up in the debug log."""
        cls._config[key] = value
        logger.debug(f"Config updated: {key} = {value} (source: {source})")

    @classmethod
    def get_all(cls) -> Dict[str, Any]:
        """Snapshot copy of all settings."""
        return dict(cls._config)

    @classmethod
    def reset(cls) -> None:
        """Forget every setting. Used by tests."""
        cls._config.clear()
        cls._initialized = False
