"""Test harness plumbing for :mod:`paperportal.auth` tests."""

import pytest
from flask import Flask


@pytest.fixture(autouse=True)
def _request_context():
    """
    Push a bare request context so Flask proxies resolve.

    On Python 3.11, ``mock.patch`` inspects the object being replaced; an
    unbound ``request``/``current_app`` proxy raises ``RuntimeError`` there.
    """
    with Flask(__name__).test_request_context():
        yield
