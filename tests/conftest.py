from collections.abc import Iterator
import logging

import pytest

from catalogmcp.utils.logger import CatalogLogHandler


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def reset_logging() -> Iterator[None]:
    """Drop handlers installed by ``setup_logger`` during the test."""
    yield
    root = logging.getLogger()
    for handler in [h for h in root.handlers if isinstance(h, CatalogLogHandler)]:
        root.removeHandler(handler)
        handler.close()
