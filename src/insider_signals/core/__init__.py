"""Core utilities: logging, events, exceptions."""

from insider_signals.core.events import Event, EventBus, EventType
from insider_signals.core.exceptions import (
    DataIntegrityError,
    ExtractionError,
    InsiderSignalsError,
    MalformedDocument,
    MissingRequiredField,
)
from insider_signals.core.logging import get_logger, setup_logging

__all__ = [
    "DataIntegrityError",
    "Event",
    "EventBus",
    "EventType",
    "ExtractionError",
    "InsiderSignalsError",
    "MalformedDocument",
    "MissingRequiredField",
    "get_logger",
    "setup_logging",
]
