"""
Configuration settings with environment variable loading.

Every setting has a sensible default so the counter runs without
any environment at all. Values are validated when loaded.
"""

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

BACKEND_PREFERENCES = "preferences"
BACKEND_DATASTORE = "datastore"
SUPPORTED_BACKENDS = (BACKEND_PREFERENCES, BACKEND_DATASTORE)
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


@dataclass(frozen=True)
class StorageConfig:
    """Persistent storage configuration."""
    backend: str = BACKEND_DATASTORE
    directory: Path = field(default_factory=lambda: Path("data"))
    store_name: str = "CounterPrefs"
    counter_key: str = "counter"

    def __post_init__(self):
        object.__setattr__(self, 'directory', Path(self.directory))
        if self.backend not in SUPPORTED_BACKENDS:
            raise ConfigurationError(
                f"COUNTER_STORAGE_BACKEND must be one of {', '.join(SUPPORTED_BACKENDS)}"
            )
        if not self.store_name:
            raise ConfigurationError("COUNTER_STORE_NAME is required")
        if not self.counter_key:
            raise ConfigurationError("COUNTER_KEY is required")


@dataclass(frozen=True)
class CounterConfig:
    """Tick loop configuration."""
    tick_interval_seconds: float = 1.0

    def __post_init__(self):
        if self.tick_interval_seconds <= 0:
            raise ConfigurationError("COUNTER_TICK_INTERVAL must be positive")


@dataclass(frozen=True)
class Settings:
    """
    Application settings container.

    All configuration is loaded from environment variables.
    """
    storage: StorageConfig = field(default_factory=StorageConfig)
    counter: CounterConfig = field(default_factory=CounterConfig)
    log_level: str = "INFO"

    def __post_init__(self):
        if self.log_level not in LOG_LEVELS:
            raise ConfigurationError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}")

    def __repr__(self) -> str:
        return (
            f"Settings(\n"
            f"  storage={self.storage},\n"
            f"  counter={self.counter},\n"
            f"  log_level={self.log_level}\n"
            f")"
        )


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """
    Load settings from environment variables.

    Optionally loads from a .env file first.

    Args:
        env_file: Optional path to .env file

    Returns:
        Configured Settings instance

    Raises:
        ConfigurationError: If configuration is invalid
    """
    if env_file and env_file.exists():
        _load_env_file(env_file)
    elif Path(".env").exists():
        _load_env_file(Path(".env"))

    try:
        storage = StorageConfig(
            backend=os.getenv("COUNTER_STORAGE_BACKEND", BACKEND_DATASTORE).strip().lower(),
            directory=Path(os.getenv("COUNTER_STORAGE_DIR", "data")),
            store_name=os.getenv("COUNTER_STORE_NAME", "CounterPrefs"),
            counter_key=os.getenv("COUNTER_KEY", "counter"),
        )

        counter = CounterConfig(
            tick_interval_seconds=float(os.getenv("COUNTER_TICK_INTERVAL", "1.0")),
        )

        log_level = os.getenv("LOG_LEVEL", "INFO").upper()

        settings = Settings(
            storage=storage,
            counter=counter,
            log_level=log_level,
        )

        logger.info("Configuration loaded successfully")
        logger.debug(f"Settings: {settings}")

        return settings

    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(f"Failed to load configuration: {e}") from e


def _load_env_file(path: Path) -> None:
    """
    Load environment variables from a file.

    Simple .env parser that handles:
    - KEY=value
    - KEY="quoted value"
    - # comments
    - Empty lines
    """
    logger.debug(f"Loading environment from {path}")

    with open(path) as f:
        for line_num, line in enumerate(f, 1):
            line = line.strip()

            if not line or line.startswith("#"):
                continue

            if "=" not in line:
                logger.warning(f"Invalid line {line_num} in {path}: no '=' found")
                continue

            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip()

            if value.startswith('"') and value.endswith('"'):
                value = value[1:-1]
            elif value.startswith("'") and value.endswith("'"):
                value = value[1:-1]

            # Environment variables take precedence
            if key not in os.environ:
                os.environ[key] = value
