import logging

from memory_timeline.utils.logger import setup_logger


def test_setup_logger_is_idempotent():
    first = setup_logger("tests.logger_idempotent")
    second = setup_logger("tests.logger_idempotent")

    assert first is second
    assert len(first.handlers) == 1
    assert isinstance(first.handlers[0], logging.StreamHandler)


def test_explicit_level_overrides_default():
    logger = setup_logger("tests.logger_level", level="debug")
    assert logger.level == logging.DEBUG
