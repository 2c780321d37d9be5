import logging

import pytest

from liveu_stats_bot.logging import LOG_FORMAT, NETWORK_LOGGERS, configure_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    for name in NETWORK_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET)
    try:
        yield root
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
            if handler not in handlers:
                handler.close()
        for handler in handlers:
            root.addHandler(handler)
        root.setLevel(level)
        logging.captureWarnings(False)
        for name in NETWORK_LOGGERS:
            logging.getLogger(name).setLevel(logging.NOTSET)


def test_network_loggers_are_quieted_by_default(restore_logging):
    configure_logging("debug")

    assert restore_logging.level == logging.DEBUG
    for name in NETWORK_LOGGERS:
        assert logging.getLogger(name).level == logging.WARNING


def test_log_network_leaves_network_loggers_alone(restore_logging):
    configure_logging("INFO", log_network=True)

    for name in NETWORK_LOGGERS:
        assert logging.getLogger(name).level == logging.NOTSET


def test_file_handler_uses_bot_format(restore_logging, tmp_path):
    log_path = tmp_path / "logs" / "bot.log"

    configure_logging("INFO", log_path=log_path)

    file_handlers = [
        handler
        for handler in restore_logging.handlers
        if isinstance(handler, logging.FileHandler)
    ]
    assert len(file_handlers) == 1
    assert file_handlers[0].formatter._fmt == LOG_FORMAT
    assert log_path.parent.is_dir()
