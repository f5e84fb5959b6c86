"""
Logging fixtures for testing.

Provides loggers writing into an in-memory stream.
"""

from io import StringIO

import pytest

from srvkit.log import Logger, LoggerFactory


@pytest.fixture
def log_stream() -> StringIO:
    """Stream the ``lg`` fixture writes to."""
    return StringIO()


@pytest.fixture
def log_factory(log_stream: StringIO) -> LoggerFactory:
    """Factory whose loggers write debug and up, simple format, to ``log_stream``."""
    return LoggerFactory(
        {"level": "debug", "outputMode": "simple", "stream": log_stream}
    )


@pytest.fixture
def lg(log_factory: LoggerFactory) -> Logger:
    """Root logger named "test"."""
    return log_factory.create("test")


@pytest.fixture
def json_lg(log_stream: StringIO) -> Logger:
    """Root logger writing JSON lines to ``log_stream``."""
    factory = LoggerFactory({"level": "trace", "outputMode": "json", "stream": log_stream})
    return factory.create("test")
