"""Web Server Gateway Interface entry-point."""

import os

from paperportal.factory import create_web_app

__flask_app__ = None


def application(environ, start_response):    # type: ignore
    """WSGI application."""
    for key, value in environ.items():
        # uWSGI may pass the container hostname as ``SERVER_NAME``; that
        # should only ever come from the configured environment.
        if key == 'SERVER_NAME':
            continue
        os.environ[key] = str(value)

    global __flask_app__
    if __flask_app__ is None:
        __flask_app__ = create_web_app()
    return __flask_app__(environ, start_response)
