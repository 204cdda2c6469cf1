"""
Utilities Package - Logging and Exception Handling
"""
from .logging import get_logger, setup_logging
from .exceptions import (
    CdrCoreError,
    CatalogError,
    TrackingEntryNotFoundError,
    ComponentNotFoundError,
    InvalidComponentValueError,
    InvalidSectionError,
    EncounterNotFoundError,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "CdrCoreError",
    "CatalogError",
    "TrackingEntryNotFoundError",
    "ComponentNotFoundError",
    "InvalidComponentValueError",
    "InvalidSectionError",
    "EncounterNotFoundError",
]
