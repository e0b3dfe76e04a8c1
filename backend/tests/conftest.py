import logging

import pytest

from freelance_ingest.core.log import LOGGER_NAME


@pytest.fixture(autouse=True)
def _restore_package_logger():
    """Keep handlers installed by one test (e.g. via the CLI) from leaking into others."""
    logger = logging.getLogger(LOGGER_NAME)
    handlers = list(logger.handlers)
    level = logger.level
    yield
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
    logger.setLevel(level)
