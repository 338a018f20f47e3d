"""Testing helpers."""

from typing import Any, Generator
from contextlib import contextmanager
from unittest import mock
import io
import os
import shutil
import tempfile

from flask import Flask
from werkzeug.datastructures import FileStorage

from ..factory import create_web_app
from ..services import util

ADMIN_EMAIL = 'admin@conference.org'


@contextmanager
def temporary_app(**config: Any) -> Generator[Flask, None, None]:
    """
    Provide an application backed by an in-memory sqlite database.

    Uploaded documents are written to a temporary directory, and mail is
    not sent. Extra keyword arguments are applied to the app config. The
    app context is pushed for the lifetime of the context manager.
    """
    blob_root = tempfile.mkdtemp()
    environ = {
        'DATABASE_URI': 'sqlite:///:memory:',
        'BLOB_ROOT': blob_root,
        'MAIL_ENABLED': '0',
        'ADMIN_EMAIL': ADMIN_EMAIL,
        'ACCESS_TOKEN_SECRET': 'foosecret',
        'REFRESH_TOKEN_SECRET': 'barsecret',
        'CREATE_DB': '0',
        'AUTH_COOKIE_SECURE': '0',
    }
    with mock.patch.dict(os.environ, environ):
        app = create_web_app()
    app.config['TESTING'] = True
    app.config.update(config)
    with app.app_context():
        util.create_all()
        try:
            yield app
        finally:
            util.drop_all()
            shutil.rmtree(blob_root, ignore_errors=True)


def pdf(filename: str = 'paper.pdf',
        content: bytes = b'%PDF-1.4 fake') -> FileStorage:
    """An uploaded document."""
    return FileStorage(stream=io.BytesIO(content), filename=filename,
                       content_type='application/pdf')
