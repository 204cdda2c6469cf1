"""
Unit Tests for Logging and Exception Utilities
"""
import logging

import pytest

from app.utils import (
    CdrCoreError,
    ComponentNotFoundError,
    InvalidComponentValueError,
    get_logger,
    setup_logging,
)
from app.utils.logging import StructuredFormatter


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestStructuredFormatter:
    """Tests for the console formatter."""

    def test_plain_output(self):
        """Test uncoloured console output."""
        record = logging.LogRecord("app.core.cdr", logging.WARNING, __file__, 1, "hello %s", ("x",), None)
        text = StructuredFormatter(use_color=False).format(record)

        assert "WARNING" in text
        assert "[app.core.cdr]" in text
        assert text.endswith("hello x")
        assert "\033[" not in text

    def test_context_fields_appended(self):
        """Test encounter context appended to the message."""
        record = logging.LogRecord("n", logging.INFO, __file__, 1, "status changed", None, None)
        record.encounter_id = "enc-1"
        record.cdr_id = "heart"

        text = StructuredFormatter(use_color=False).format(record)

        assert text.endswith("status changed encounter_id=enc-1 cdr_id=heart")

    def test_colour_output(self):
        """Test coloured console output."""
        record = logging.LogRecord("n", logging.ERROR, __file__, 1, "bad", None, None)
        text = StructuredFormatter(use_color=True).format(record)
        assert text.startswith(StructuredFormatter.COLORS["ERROR"])


class TestSetupLogging:
    """Tests for setup_logging / get_logger."""

    def test_file_handler(self, tmp_path, restore_root_logger):
        """Test file logging with context fields."""
        log_file = tmp_path / "cdr.log"
        setup_logging("debug", str(log_file))

        get_logger("app.test").info("catalog loaded", extra={"cdr_id": "heart"})
        for handler in restore_root_logger.handlers:
            handler.flush()

        assert restore_root_logger.level == logging.DEBUG
        assert "catalog loaded cdr_id=heart" in log_file.read_text(encoding="utf-8")

    def test_unknown_level_falls_back_to_info(self, restore_root_logger):
        """Test unknown level names fall back to INFO."""
        setup_logging("chatty")
        assert restore_root_logger.level == logging.INFO


class TestExceptions:
    """Tests for the exception hierarchy."""

    def test_to_dict(self):
        """Test error serialisation."""
        exc = ComponentNotFoundError("heart", "ecg")
        assert exc.to_dict() == {
            "error": "COMPONENT_NOT_FOUND",
            "message": "CDR 'heart' has no component 'ecg'",
            "details": {"cdr_id": "heart", "component_id": "ecg"},
        }

    def test_hierarchy(self):
        """Test subclasses share the base error."""
        exc = InvalidComponentValueError("nope", component_id="age", details={"min": 0})
        assert isinstance(exc, CdrCoreError)
        assert exc.details == {"component_id": "age", "min": 0}
        assert str(exc) == "nope"
