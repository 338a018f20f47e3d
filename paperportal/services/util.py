"""Helpers and Flask application integration for the document store."""

from typing import Generator
from contextlib import contextmanager
import logging

from flask import Flask
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.session import Session

from .exceptions import Unavailable
from .models import db

logger = logging.getLogger(__name__)


@contextmanager
def transaction() -> Generator[Session, None, None]:
    """
    Context manager for database transaction.

    Commits when the block exits cleanly; otherwise rolls back and
    re-raises. Connection-level failures are raised as
    :class:`.Unavailable`.
    """
    try:
        yield db.session
        db.session.commit()
    except OperationalError as e:
        logger.warning('Database unavailable, rolling back: %s', e)
        db.session.rollback()
        raise Unavailable('Database is temporarily unavailable') from e
    except Exception as e:
        logger.warning('Commit failed, rolling back: %s', e)
        db.session.rollback()
        raise


def init_app(app: Flask) -> None:
    """Set configuration defaults and attach session to the application."""
    db.init_app(app)


def create_all() -> None:
    """Create all tables in the database."""
    db.create_all()


def drop_all() -> None:
    """Drop all tables in the database."""
    db.drop_all()
