"""gradegate utilities."""

from .config import Settings, load_settings, setup_logging, build_engine

__all__ = [
    "Settings",
    "load_settings",
    "setup_logging",
    "build_engine",
]
