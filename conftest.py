"""Shared pytest fixtures."""

import pytest

from paperportal.tests.util import temporary_app


@pytest.fixture
def app():
    """An application with an empty document store."""
    with temporary_app() as app:
        yield app


@pytest.fixture
def client(app):
    """A test client for :func:`app`."""
    return app.test_client()
