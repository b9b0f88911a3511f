"""
Tests for structured logging and console setup.
"""

import io
import logging

import pytest

from bladeforge.utils import StructuredLogger, setup_console_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    level = root.level
    handlers = list(root.handlers)
    yield root
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)


class TestStructuredLogger:

    def test_metadata_appended_as_json(self, caplog):
        log = StructuredLogger("bladeforge.test", {'document': 1})
        with caplog.at_level(logging.INFO, logger="bladeforge.test"):
            log.info("Adjusting", role="blade", target=12)
        assert caplog.records[0].getMessage() == (
            'Adjusting | {"document": 1, "role": "blade", "target": 12}'
        )

    def test_plain_message_without_metadata(self, caplog):
        log = StructuredLogger("bladeforge.test")
        with caplog.at_level(logging.WARNING, logger="bladeforge.test"):
            log.warning("Nothing bound")
        assert caplog.records[0].getMessage() == "Nothing bound"

    def test_bind_keeps_parent_metadata(self, caplog):
        parent = StructuredLogger("bladeforge.test", {'document': 1})
        child = parent.bind(role="handle")
        with caplog.at_level(logging.ERROR, logger="bladeforge.test"):
            child.error("Failed", step=2)
        assert '"role": "handle"' in caplog.text
        assert '"document": 1' in caplog.text
        assert parent.metadata == {'document': 1}


class TestConsoleLogging:

    def test_writes_plain_format_to_non_tty(self, restore_root_logger):
        stream = io.StringIO()
        setup_console_logging("DEBUG", color=True, stream=stream)
        logging.getLogger("bladeforge.demo").debug("hello")

        assert "bladeforge.demo - DEBUG - hello" in stream.getvalue()
        assert restore_root_logger.level == logging.DEBUG

    def test_repeated_setup_replaces_handler(self, restore_root_logger):
        first = setup_console_logging("INFO", stream=io.StringIO())
        second = setup_console_logging("WARNING", stream=io.StringIO())

        assert first not in restore_root_logger.handlers
        assert second in restore_root_logger.handlers
        assert restore_root_logger.level == logging.WARNING
