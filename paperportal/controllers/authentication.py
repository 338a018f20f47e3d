"""
Controllers for logging in and out, and for token refresh.

Logging in issues an access/refresh token pair and stores the refresh token
on the account. Because only the latest refresh token is stored, logging in
again (from any device) ends the previous session.
"""

from typing import Any, Dict, Optional
from http import HTTPStatus
import logging

from flask import current_app
from werkzeug.datastructures import MultiDict
from werkzeug.exceptions import Forbidden, InternalServerError, NotFound, \
    Unauthorized, BadRequest
from wtforms import Form, PasswordField, StringField
from wtforms.validators import DataRequired

from .. import domain
from ..auth import passwords, policy, sessions
from ..auth.exceptions import InvalidToken, MissingToken, \
    SessionCreationFailed
from ..services import accounts
from ..services.exceptions import NoSuchAccount
from ..util import normalize_email
from .util import REQUIRED, ResponseData, token_data, validate

logger = logging.getLogger(__name__)

ADMIN_NOT_REGISTERED = 'Admin not registered yet. Please register first.'
AUTHOR_NOT_REGISTERED = 'Author not registered yet. Please register first.'
ADMIN_LOGIN_REFUSED = \
    'Only official admin can login. Please login as an author.'
AUTHOR_LOGIN_REFUSED = \
    'This email is registered as admin. Please login as admin.'


class LoginForm(Form):
    """Log in form."""

    email = StringField('Email', validators=[DataRequired(REQUIRED)])
    password = PasswordField('Password', validators=[DataRequired(REQUIRED)])
    role = StringField('Role', validators=[DataRequired(REQUIRED)])


def login(form_data: MultiDict) -> ResponseData:
    """
    Authenticate with e-mail, password and role, and issue a token pair.

    Parameters
    ----------
    form_data : MultiDict
        Should include ``email``, ``password`` and ``role``.

    Returns
    -------
    dict
        The sanitized account and the new tokens. The ``cookies`` entry is
        used by the route to set token cookies.
    int
        HTTP status code.
    dict
        Headers to add to the response.

    Raises
    ------
    :class:`.InvalidInput`
    :class:`.NotFound`
        If there is no account for the address.
    :class:`.Forbidden`
        If the account does not hold the requested role.
    :class:`.Unauthorized`
        If the password is wrong.
    :class:`.InternalServerError`
        If tokens could not be issued.

    """
    form = LoginForm(form_data)
    validate(form)
    email = normalize_email(form.email.data)

    try:
        account = accounts.get_account_by_email(email)
    except NoSuchAccount as e:
        admin_email = current_app.config['ADMIN_EMAIL']
        if policy.compute_role(email, admin_email) == domain.Role.ADMIN:
            raise NotFound(ADMIN_NOT_REGISTERED) from e
        raise NotFound(AUTHOR_NOT_REGISTERED) from e

    if form.role.data != account.role:
        logger.debug('Login as %s refused for account %s', form.role.data,
                     account.account_id)
        if form.role.data == domain.Role.ADMIN:
            raise Forbidden(ADMIN_LOGIN_REFUSED)
        raise Forbidden(AUTHOR_LOGIN_REFUSED)

    if not passwords.check_password(form.password.data,
                                    account.password_hash):
        logger.debug('Authentication failed for account %s',
                     account.account_id)
        raise Unauthorized('Invalid credentials')

    try:
        pair = sessions.issue_pair(account.account_id)
    except SessionCreationFailed as e:
        logger.error('Could not create session: %s', e)
        raise InternalServerError('Cannot log in') from e

    data: Dict[str, Any] = {'user': domain.to_dict(account.sanitized())}
    data.update(token_data(pair))
    return data, HTTPStatus.OK, {}


def logout(actor: domain.Account) -> ResponseData:
    """
    End the session of the authenticated account.

    The route should clear the token cookies on the response.
    """
    try:
        sessions.logout(actor.account_id)
    except NoSuchAccount as e:
        raise NotFound('User not found') from e
    logger.debug('Logged out account %s', actor.account_id)
    return {}, HTTPStatus.OK, {}


def refresh(refresh_token: Optional[str]) -> ResponseData:
    """
    Rotate the token pair of an account.

    Parameters
    ----------
    refresh_token : str
        Taken from the refresh token cookie, or the request body.

    Raises
    ------
    :class:`.BadRequest`
        If no refresh token was presented.
    :class:`.Unauthorized`
        If the token is invalid, expired, or has been superseded.
    :class:`.NotFound`
        If the account no longer exists.
    :class:`.InternalServerError`
        If tokens could not be issued.

    """
    try:
        pair = sessions.refresh(refresh_token)
    except MissingToken as e:
        raise BadRequest('Refresh token missing') from e
    except InvalidToken as e:
        logger.debug('Refresh refused: %s', e)
        raise Unauthorized('Invalid or expired refresh token') from e
    except NoSuchAccount as e:
        raise NotFound('User not found') from e
    except SessionCreationFailed as e:
        logger.error('Could not rotate session: %s', e)
        raise InternalServerError('Token generation failed') from e
    return token_data(pair), HTTPStatus.OK, {}


def current_user(actor: domain.Account) -> ResponseData:
    """Describe the authenticated account."""
    return {'user': domain.to_dict(actor.sanitized())}, HTTPStatus.OK, {}
