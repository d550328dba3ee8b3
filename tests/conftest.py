import logging

import pytest
import structlog

from flobot.config import Settings
from flobot.utils.logging import setup_logging


@pytest.fixture
def configured_logging():
    """Run setup_logging for one test and put the global logging state back afterwards."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level

    def configure(**overrides) -> Settings:
        settings = Settings(**overrides)
        setup_logging(settings)
        return settings

    yield configure

    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)
