"""Configuration management for Bandwatch."""

from .logging import get_logger, setup_logging
from .settings import Settings, get_settings
from .symbols import AssetClass, SymbolSpec, load_symbols

__all__ = [
    "AssetClass",
    "Settings",
    "SymbolSpec",
    "get_logger",
    "get_settings",
    "load_symbols",
    "setup_logging",
]
