"""
Structured Logging Configuration

Console and file logging for the CDR service. Records may carry encounter
context through ``extra=``; the formatter appends any of CONTEXT_FIELDS it
finds as ``key=value`` pairs:

    logger.info("status changed", extra={"encounter_id": "e1", "cdr_id": "heart"})
    → [2026-...] INFO     [app.core.cdr.reconciler] status changed encounter_id=e1 cdr_id=heart
"""
import logging
import sys
from typing import Optional
from datetime import datetime, timezone

CONTEXT_FIELDS = ("encounter_id", "cdr_id", "component_id", "source")


def _context_suffix(record: logging.LogRecord) -> str:
    pairs = [
        f"{name}={getattr(record, name)}"
        for name in CONTEXT_FIELDS
        if getattr(record, name, None) is not None
    ]
    return (" " + " ".join(pairs)) if pairs else ""


class StructuredFormatter(logging.Formatter):
    """Single-line console records with UTC timestamp and encounter context."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m'
    }

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, timezone.utc).isoformat()

        if self.use_color:
            color = self.COLORS.get(record.levelname, self.COLORS['RESET'])
            reset = self.COLORS['RESET']
        else:
            color = reset = ""

        log_message = (
            f"{color}[{timestamp}] {record.levelname:8} [{record.name}] "
            f"{record.getMessage()}{_context_suffix(record)}{reset}"
        )

        if record.exc_info:
            log_message += f"\n{self.formatException(record.exc_info)}"

        return log_message


class FileFormatter(logging.Formatter):
    """Pipe-separated file records, context appended the same way."""

    def __init__(self):
        super().__init__('%(asctime)s | %(levelname)s | %(name)s | %(message)s')

    def format(self, record: logging.LogRecord) -> str:
        return super().format(record) + _context_suffix(record)


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Configure application-wide logging.

    Args:
        level: Logging level name; unknown names fall back to INFO
        log_file: Optional file path for log output
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(StructuredFormatter(use_color=sys.stdout.isatty()))
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(FileFormatter())
        root_logger.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    """Module logger; call as get_logger(__name__)."""
    return logging.getLogger(name)
