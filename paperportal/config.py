"""Flask configuration."""
import os
import secrets
from datetime import timedelta

#################### General config for app ####################
ENVIRONMENT = os.environ.get('ENVIRONMENT', 'development')
"""Deployment environment; ``production`` turns on secure cookies."""

ADMIN_EMAIL = os.environ.get('ADMIN_EMAIL', 'admin@example.com').strip().lower()
"""The one e-mail address that is granted the administrator role.

Role is always derived from this value; it is never taken from the client.
"""

#################### Tokens ####################
ACCESS_TOKEN_SECRET = os.environ.get('ACCESS_TOKEN_SECRET',
                                     secrets.token_urlsafe(32))
"""Secret used to sign access tokens."""

REFRESH_TOKEN_SECRET = os.environ.get('REFRESH_TOKEN_SECRET',
                                      secrets.token_urlsafe(32))
"""Secret used to sign refresh tokens. Must differ from the access secret."""

ACCESS_TOKEN_EXPIRY = int(os.environ.get('ACCESS_TOKEN_EXPIRY', '900'))
"""Lifetime of an access token, in seconds."""

REFRESH_TOKEN_EXPIRY = int(os.environ.get('REFRESH_TOKEN_EXPIRY', '864000'))
"""Lifetime of a refresh token, in seconds."""

JWT_ALGORITHM = os.environ.get('JWT_ALGORITHM', 'HS256')

ACCESS_TOKEN_COOKIE_NAME = 'accessToken'
REFRESH_TOKEN_COOKIE_NAME = 'refreshToken'
AUTH_COOKIE_SECURE = bool(int(os.environ.get(
    'AUTH_COOKIE_SECURE',
    '1' if ENVIRONMENT == 'production' else '0'
)))

#################### Registration ####################
OTP_VALIDITY = timedelta(minutes=10)
"""How long a one-time registration code stays valid. Not configurable."""

OTP_LENGTH = 6

#################### Document store ####################
SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URI',
                                         'sqlite:///paperportal.db')
SQLALCHEMY_TRACK_MODIFICATIONS = False

CREATE_DB = bool(int(os.environ.get('CREATE_DB', 0)))

#################### Blob store ####################
BLOB_ROOT = os.environ.get('BLOB_ROOT', os.path.join(os.getcwd(), 'uploads'))
"""Directory in which uploaded documents are kept."""

BLOB_BASE_URL = os.environ.get('BLOB_BASE_URL', '/uploads')
"""Public URL prefix under which uploaded documents are served."""

#################### Mail ####################
MAIL_ENABLED = bool(int(os.environ.get('MAIL_ENABLED', '0')))
"""If not set, messages are written to the log instead of being sent."""

MAIL_HOST = os.environ.get('MAIL_HOST', 'localhost')
MAIL_PORT = int(os.environ.get('MAIL_PORT', '25'))
MAIL_SENDER = os.environ.get('MAIL_SENDER', 'noreply@example.com')

#################### Minor configs ##############################
SECRET_KEY = os.environ.get('SECRET_KEY', secrets.token_urlsafe(16))
"""Sets the `Flask` secret key. Not directly used by the portal."""

MAX_CONTENT_LENGTH = int(os.environ.get('MAX_CONTENT_LENGTH',
                                        str(20 * 1024 * 1024)))

VERSION = '0.1'

LOGLEVEL = int(os.environ.get('LOGLEVEL', 20))
