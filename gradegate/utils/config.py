"""
Configuration for gradegate.

Settings come from three layers, later ones winning:
- built-in defaults
- an optional YAML settings file
- GRADEGATE_* environment variables (a project .env file is loaded first)
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from gradegate.classroom import (
    DEFAULT_NAMESPACE,
    DEFAULT_STORE_DB,
    DEFAULT_TIMEOUT,
    ProgressionEngine,
    SqliteAccessStore,
    default_catalog,
    load_catalog,
)

# Project root (one level above the package)
PROJECT_ROOT = Path(__file__).parent.parent.parent

ENV_PREFIX = "GRADEGATE_"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


class Settings(BaseModel):
    db_path: Path = DEFAULT_STORE_DB
    catalog_path: Optional[Path] = None  # None = bundled catalog
    namespace: str = Field(DEFAULT_NAMESPACE, min_length=1)
    store_timeout: float = Field(DEFAULT_TIMEOUT, gt=0)
    log_level: str = "INFO"


def _env_overrides() -> dict[str, Any]:
    overrides = {}
    for field_name in Settings.model_fields:
        value = os.environ.get(f"{ENV_PREFIX}{field_name.upper()}")
        if value:
            overrides[field_name] = value
    return overrides


def load_settings(config_path: Optional[Path] = None, env_file: Optional[Path] = None) -> Settings:
    """
    Load settings from an optional YAML file and the environment.

    Args:
        config_path: YAML file whose top-level keys match Settings fields
        env_file: .env file to load (default: <project>/.env if present)

    Returns:
        Validated Settings

    Raises:
        FileNotFoundError: If config_path is given but doesn't exist
        pydantic.ValidationError: If a value has the wrong type
    """
    load_dotenv(env_file or PROJECT_ROOT / ".env")

    values: dict[str, Any] = {}
    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Settings file not found: {config_path}")
        with open(config_path, "r", encoding="utf-8") as f:
            values.update(yaml.safe_load(f) or {})

    values.update(_env_overrides())
    return Settings(**values)


def setup_logging(level: str | int = "INFO"):
    """Configure root logging the same way for every script."""
    logging.basicConfig(level=level, format=LOG_FORMAT)


def build_engine(settings: Settings) -> ProgressionEngine:
    """Wire a ProgressionEngine from settings (SQLite store, YAML catalog)."""
    catalog = load_catalog(settings.catalog_path) if settings.catalog_path else default_catalog()
    store = SqliteAccessStore(settings.db_path, timeout=settings.store_timeout)
    return ProgressionEngine(
        catalog,
        store,
        namespace=settings.namespace,
        timeout=settings.store_timeout,
    )
