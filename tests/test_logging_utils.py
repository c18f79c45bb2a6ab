from __future__ import annotations

import json
import logging
import sys

import pytest

from application_status.config import LoggingConfig
from application_status.logging_utils import JsonFormatter, configure_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)


def test_json_formatter_includes_extra_fields() -> None:
    record = logging.LogRecord("application_status", logging.INFO, __file__, 1, "server_status", None, None)
    record.status = "CONNECTED"
    record.ip_address = None

    payload = json.loads(JsonFormatter().format(record))

    assert payload["level"] == "INFO"
    assert payload["name"] == "application_status"
    assert payload["message"] == "server_status"
    assert payload["status"] == "CONNECTED"
    assert payload["ip_address"] is None
    assert "pathname" not in payload


def test_json_formatter_includes_exception() -> None:
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = logging.LogRecord("test", logging.ERROR, __file__, 1, "failed", None, sys.exc_info())
    payload = json.loads(JsonFormatter().format(record))
    assert "RuntimeError: boom" in payload["exc_info"]


def test_configure_logging_writes_json_file(tmp_path, restore_root_logger) -> None:
    log_file = tmp_path / "status.log"
    configure_logging(LoggingConfig(level="DEBUG", log_file=str(log_file)))

    logging.getLogger("application_status.test").info("record_counts", extra={"sent": 5})
    for handler in logging.getLogger().handlers:
        handler.flush()

    lines = log_file.read_text().splitlines()
    payload = json.loads(lines[-1])
    assert payload["message"] == "record_counts"
    assert payload["sent"] == 5
    assert logging.getLogger().level == logging.DEBUG
