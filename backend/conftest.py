"""Root conftest: test environment, structlog routing, and shared auth fixtures."""

from pathlib import Path

import pytest
import structlog
from dotenv import load_dotenv

from trackfit.auth.password import IteratedSha512Hasher
from trackfit.storage.memory_store import MemoryKeyValueStore

load_dotenv(Path(__file__).resolve().parent.parent / ".env.tests")

# Route structlog through stdlib logging so caplog sees auth events.
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ],
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=False,
)

FAST_ITERATIONS = 10


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Prevent context leaking between tests."""
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def store():
    return MemoryKeyValueStore()


@pytest.fixture
def hasher():
    """Same scheme as production with a low iteration count."""
    return IteratedSha512Hasher(iterations=FAST_ITERATIONS)
