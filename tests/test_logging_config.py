import io
import json
import logging

import pytest
import structlog

from swapwidget.logging_config import setup_logging


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


def test_setup_logging_installs_single_handler():
    setup_logging("DEBUG")
    setup_logging("INFO", json_logs=True)

    root = logging.getLogger()

    assert len(root.handlers) == 1
    assert root.level == logging.INFO
    assert isinstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)
    assert logging.getLogger("httpx").level == logging.WARNING


def test_structlog_events_render(capsys):
    setup_logging("INFO", json_logs=True)

    structlog.stdlib.get_logger("aggregator").info("aggregator_request", path="/tokenPrice")

    out = capsys.readouterr().out
    assert "aggregator_request" in out
    assert "/tokenPrice" in out


def test_stdlib_records_go_to_given_stream():
    stream = io.StringIO()
    setup_logging("INFO", json_logs=True, stream=stream)

    logging.getLogger("swapwidget.core.swap.orchestrator").info("Swap: idle -> checking_allowance")
    logging.getLogger("swapwidget.core.swap.orchestrator").debug("filtered out")

    record = json.loads(stream.getvalue().strip())
    assert record["event"] == "Swap: idle -> checking_allowance"
    assert record["level"] == "info"
    assert record["logger"] == "swapwidget.core.swap.orchestrator"
