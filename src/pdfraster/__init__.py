"""pdfraster package."""

from pdfraster.exceptions import (
    ConversionError,
    DependencyError,
    PackageError,
    SettingsError,
)
from pdfraster.logging import configure_logging, get_logger
from pdfraster.settings import Settings, get_settings

__version__ = "0.1.0"

# Initialize package logger at import time via `get_logger`.
logger = get_logger("pdfraster")

__all__ = [
    "ConversionError",
    "DependencyError",
    "PackageError",
    "Settings",
    "SettingsError",
    "__version__",
    "configure_logging",
    "get_logger",
    "get_settings",
    "logger",
]
