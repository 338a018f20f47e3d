"""Application factory for the paper portal."""

import logging

from flask import Flask, Response, jsonify
from werkzeug.exceptions import HTTPException, InternalServerError

from . import auth
from .app_logging import setup_logger
from .auth.sessions import TokenAuthority
from .routes import blueprint
from .services import util as datastore
from .services.blobs import FileStore
from .services.notifications import Notifier

logger = logging.getLogger(__name__)


def create_web_app() -> Flask:
    """Initialize and configure the portal application."""
    app = Flask('paperportal')
    app.config.from_pyfile('config.py')
    setup_logger(app.config['LOGLEVEL'])

    datastore.init_app(app)
    TokenAuthority.init_app(app)
    FileStore.init_app(app)
    Notifier.init_app(app)

    auth.Auth(app)  # Attaches the authenticated account to each request.
    app.register_blueprint(blueprint)

    if app.config['CREATE_DB']:
        with app.app_context():
            datastore.create_all()

    register_error_handlers(app)
    return app


def register_error_handlers(app: Flask) -> None:
    """Register error handlers for the Flask app."""
    app.errorhandler(HTTPException)(jsonify_exception)
    app.errorhandler(Exception)(jsonify_unexpected)


def jsonify_exception(error: HTTPException) -> Response:
    """Render exceptions in the failure envelope."""
    exc_resp = error.get_response()
    response: Response = jsonify({
        'success': False,
        'message': error.description,
        'errors': getattr(error, 'errors', []),
        'data': None
    })
    response.status_code = exc_resp.status_code
    return response


def jsonify_unexpected(error: Exception) -> Response:
    """Log an unclassified failure, and render a generic 500."""
    logger.exception('Unhandled error: %s', error)
    return jsonify_exception(InternalServerError('Something went wrong'))
