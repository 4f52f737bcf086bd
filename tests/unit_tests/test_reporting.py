import logging
import os
from unittest.mock import patch

import pytest

from alphapsm.reporting import reporting
from alphapsm.reporting.logging import print_environment, print_logo


@pytest.fixture
def reset_logging():
    yield
    logging.getLogger().handlers = []


def test_logging(tmp_path, reset_logging):
    """Test all messages of at least the given log level end up in the log file."""
    # given
    log_folder = str(tmp_path / "output")

    # when
    reporting.init_logging(log_folder, log_level=logging.INFO)

    python_logger = logging.getLogger()
    python_logger.debug("test")
    python_logger.info("test")
    python_logger.progress("test")
    python_logger.warning("test")
    python_logger.error("test")

    # then
    log_path = os.path.join(log_folder, "log.txt")
    assert os.path.exists(log_path)
    with open(log_path) as f:
        lines = f.readlines()
    assert len(lines) == 4
    assert "PROGRESS: test" in lines[1]


def test_logging_overwrites_existing_log_file(tmp_path, reset_logging):
    """Test an existing log file is replaced."""
    # given
    log_path = tmp_path / "log.txt"
    log_path.write_text("old\n")

    # when
    reporting.init_logging(str(tmp_path))
    logging.getLogger().warning("new")

    # then
    assert "old" not in log_path.read_text()


def test_default_formatter_without_ansi():
    """Test the formatter prefixes the elapsed time and the level."""
    formatter = reporting.DefaultFormatter(use_ansi=False)
    record = logging.LogRecord("root", logging.WARNING, "", 0, "message", None, None)

    formatted = formatter.format(record)

    assert formatted.endswith("WARNING: message")
    assert "\x1b[" not in formatted


@patch("alphapsm.reporting.logging.logger")
def test_print_logo_and_environment(mock_logger):
    """Test the logo and the versions of the dependencies are logged."""
    print_logo()
    print_environment()

    assert mock_logger.progress.call_count > 0
    logged = " ".join(str(call.args[0]) for call in mock_logger.info.call_args_list)
    assert "alphabase" in logged
