"""Tests for logging setup and output helpers."""

import json
import logging

import pytest
from rich.logging import RichHandler

from plandeploy.utils import StructuredFormatter, format_entity_tree, setup_logging


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    logger = logging.getLogger("plandeploy")
    for handler in logger.handlers:
        handler.close()
    logger.handlers = []


def test_setup_logging_pretty_console():
    logger = setup_logging(log_level="debug")

    assert logger.level == logging.DEBUG
    assert [type(h) for h in logger.handlers] == [RichHandler]


def test_setup_logging_structured_file(tmp_path):
    log_file = tmp_path / "logs" / "plandeploy.log"
    logger = setup_logging(log_file, log_format="structured", console_output=False)

    logging.getLogger("plandeploy.plan").info("Deploying plan site-sync")
    for handler in logger.handlers:
        handler.flush()

    entry = json.loads(log_file.read_text().splitlines()[-1])
    assert entry["level"] == "INFO"
    assert entry["logger"] == "plandeploy.plan"
    assert entry["message"] == "Deploying plan site-sync"


def test_structured_formatter_extra_fields():
    record = logging.LogRecord("plandeploy", logging.ERROR, __file__, 1, "failed", None, None)
    record.plan = "site-sync"
    record.deployment_id = "01ABC"

    data = json.loads(StructuredFormatter().format(record))

    assert data["plan"] == "site-sync"
    assert data["deployment_id"] == "01ABC"


def test_format_entity_tree():
    tree = {
        "user": {"3": {"node": {"12": True}}},
        "node": {"12": True},
    }

    assert format_entity_tree(tree) == [
        "node/12",
        "user/3 (required by)",
        "    node/12",
    ]
