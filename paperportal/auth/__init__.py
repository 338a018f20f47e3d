"""Provides tools for working with authenticated accounts."""

from typing import Optional
import logging

from flask import Flask, request
from werkzeug.exceptions import NotFound, Unauthorized

from . import decorators, policy, sessions, tokens
from .exceptions import InvalidToken, MissingToken
from ..services.exceptions import NoSuchAccount

logger = logging.getLogger(__name__)


class Auth(object):
    """
    Attaches the authenticated account to the request.

    Intended for use in a Flask application factory, for example:

    .. code-block:: python

       from flask import Flask
       from paperportal.auth import Auth


       def create_web_app() -> Flask:
          app = Flask('paperportal')
          app.config.from_pyfile('config.py')
          Auth(app)
          return app

    The access token is taken from the access token cookie, or else from an
    ``Authorization: Bearer`` header.
    """

    def __init__(self, app: Optional[Flask] = None) -> None:
        """
        Initialize ``app`` with :meth:`.load_session`.

        Parameters
        ----------
        app : :class:`Flask`

        """
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        """
        Attach :meth:`.load_session` to the Flask app.

        Parameters
        ----------
        app : :class:`Flask`

        """
        self.app = app
        sessions.TokenAuthority.init_app(app)
        self.app.config.setdefault('ACCESS_TOKEN_COOKIE_NAME', 'accessToken')
        self.app.before_request(self.load_session)

    def get_token(self) -> Optional[str]:
        """Get the access token presented with the request, if any."""
        cookie_name = self.app.config['ACCESS_TOKEN_COOKIE_NAME']
        token = request.cookies.get(cookie_name)
        if token:
            return token
        header = request.headers.get('Authorization', '')
        parts = header.split()
        if len(parts) == 2 and parts[0].lower() == 'bearer':
            return parts[1]
        return None

    def load_session(self) -> None:
        """
        Look for an authenticated account, and attach it to the request.

        Failures are not raised here: routes that do not require
        authentication must keep working with stale credentials. Instead,
        the exception is attached in place of the account and raised by
        :func:`.decorators.scoped`.
        """
        request.auth = None
        token = self.get_token()
        if token is None:
            return None
        try:
            request.auth = sessions.authenticate(token)
        except (InvalidToken, MissingToken) as e:
            logger.debug('Access token not valid: %s', e)
            request.auth = Unauthorized('Invalid or expired token')
        except NoSuchAccount as e:
            logger.debug('Token for missing account: %s', e)
            request.auth = NotFound('User not found')
        return None
