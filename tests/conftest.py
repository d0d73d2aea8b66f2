"""Shared pytest fixtures."""

import pytest
import structlog


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Undo any structlog configuration a test applied (e.g. via the CLI),
    so later tests don't log into a closed, test-scoped capture stream."""
    yield
    structlog.reset_defaults()
