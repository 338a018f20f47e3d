"""
Controllers for registration and e-mail verification.

A registration does not create an account. It creates a pending
registration holding a six-digit one-time code, which is e-mailed to the
registrant. The account is created only when that code is presented before
it expires. At most one pending registration exists per e-mail address;
registering again replaces it, and re-sending the code invalidates the
previous one.
"""

from typing import Any, Dict, Optional, Tuple
from datetime import datetime
from http import HTTPStatus
import logging
import secrets

from flask import current_app
from werkzeug.datastructures import MultiDict
from werkzeug.exceptions import Conflict, Forbidden, NotFound, \
    BadRequest, InternalServerError
from wtforms import Form, PasswordField, StringField
from wtforms.validators import AnyOf, DataRequired, Email, EqualTo, Length

from .. import domain
from ..auth import passwords, policy, sessions
from ..auth.exceptions import SessionCreationFailed
from ..services import accounts, notifications
from ..services.exceptions import AccountExists, NoSuchAccount, \
    NoSuchPendingAccount
from ..util import normalize_email, now
from .util import REQUIRED, ResponseData, token_data, validate

logger = logging.getLogger(__name__)

INVALID_CODE = 'Invalid or expired OTP'


def _strip(value: Optional[str]) -> Optional[str]:
    return value.strip() if isinstance(value, str) else value


class RegistrationForm(Form):
    """Fields required to begin a registration."""

    fullname = StringField('Full name', filters=[_strip],
                           validators=[DataRequired(REQUIRED)])
    email = StringField('Email', filters=[_strip],
                        validators=[DataRequired(REQUIRED),
                                    Email('Invalid email address')])
    password = PasswordField(
        'Password',
        validators=[DataRequired(REQUIRED),
                    Length(min=6,
                           message='Password must be at least 6 characters')]
    )
    confirmPassword = PasswordField(
        'Confirm password',
        validators=[DataRequired(REQUIRED),
                    EqualTo('password', message='Passwords do not match')]
    )
    role = StringField('Role', filters=[_strip],
                       validators=[DataRequired(REQUIRED),
                                   AnyOf(domain.Role.ALL,
                                         message='Invalid role')])


class VerifyForm(Form):
    """A one-time code presented for a pending registration."""

    email = StringField('Email', filters=[_strip],
                        validators=[DataRequired(REQUIRED)])
    otp = StringField('Code', filters=[_strip],
                      validators=[DataRequired(REQUIRED)])
    role = StringField('Role', filters=[_strip],
                       validators=[DataRequired(REQUIRED)])


class ResendForm(Form):
    """Identifies a pending registration."""

    email = StringField('Email', filters=[_strip],
                        validators=[DataRequired(REQUIRED)])
    role = StringField('Role', filters=[_strip],
                       validators=[DataRequired(REQUIRED)])


def begin_registration(form_data: MultiDict) -> ResponseData:
    """
    Start a registration, and send a one-time code to the registrant.

    Parameters
    ----------
    form_data : MultiDict
        Should include ``fullname``, ``email``, ``password``,
        ``confirmPassword`` and ``role``.

    Returns
    -------
    dict
        The normalized e-mail address and role. Never includes tokens.
    int
        HTTP status code.
    dict
        Headers to add to the response.

    Raises
    ------
    :class:`.InvalidInput`
        If a field is missing or malformed.
    :class:`.Forbidden`
        If the requested role is not the role derived for the address.
    :class:`.Conflict`
        If an account already exists for the address.

    """
    form = RegistrationForm(form_data)
    validate(form)
    email = normalize_email(form.email.data)
    role = form.role.data
    _check_role(role, email)

    if accounts.does_email_exist(email):
        logger.debug('Registration for existing account')
        if role == domain.Role.ADMIN:
            raise Conflict('Admin already exists')
        raise Conflict('Author with this email already exists')

    code, expires = _new_code()
    pending = accounts.create_pending_account(domain.PendingAccount(
        email=email,
        fullname=form.fullname.data,
        role=role,
        password=form.password.data,
        otp=code,
        otp_expires=expires,
        created=now()
    ))
    _send_code(pending)
    logger.info('Registration pending verification')
    return {'email': pending.email, 'role': pending.role}, \
        HTTPStatus.CREATED, {}


def verify(form_data: MultiDict) -> ResponseData:
    """
    Verify a one-time code, and create the account.

    The code is rejected at or after its expiry instant. On success the
    pending registration is removed and a token pair is issued.

    Parameters
    ----------
    form_data : MultiDict
        Should include ``email``, ``otp`` and ``role``.

    Raises
    ------
    :class:`.InvalidInput`
    :class:`.Forbidden`
        If the requested role is not the role derived for the address.
    :class:`.NotFound`
        If there is no pending registration for the address and role.
    :class:`.BadRequest`
        If the code does not match, or has expired.
    :class:`.Conflict`
        If an account was created for the address in the meantime.
    :class:`.InternalServerError`
        If tokens could not be issued.

    """
    form = VerifyForm(form_data)
    validate(form)
    email = normalize_email(form.email.data)
    _check_role(form.role.data, email)

    try:
        pending = accounts.get_pending_account(email, form.role.data)
    except NoSuchPendingAccount as e:
        raise NotFound('No pending registration found') from e

    if pending.is_expired(now()):
        logger.debug('Code expired at %s', pending.otp_expires)
        raise BadRequest(INVALID_CODE)
    if not _matches(pending.otp, form.otp.data):
        logger.debug('Code does not match')
        raise BadRequest(INVALID_CODE)

    try:
        account = accounts.create_account(
            promote(pending, current_app.config['ADMIN_EMAIL'])
        )
    except AccountExists as e:
        raise Conflict('An account with this email already exists') from e
    accounts.delete_pending_account(email)
    logger.info('Created account %s', account.account_id)

    try:
        pair = sessions.issue_pair(account.account_id)
    except (SessionCreationFailed, NoSuchAccount) as e:
        logger.error('Could not issue tokens for new account: %s', e)
        raise InternalServerError('Token generation failed') from e

    data: Dict[str, Any] = {'user': domain.to_dict(account.sanitized())}
    data.update(token_data(pair))
    return data, HTTPStatus.CREATED, {}


def resend(form_data: MultiDict) -> ResponseData:
    """
    Replace the one-time code on a pending registration, and send it.

    Any code sent earlier stops being valid immediately.

    Raises
    ------
    :class:`.InvalidInput`
    :class:`.Forbidden`
        If the requested role is not the role derived for the address.
    :class:`.NotFound`
        If there is no pending registration for the address and role.

    """
    form = ResendForm(form_data)
    validate(form)
    email = normalize_email(form.email.data)
    _check_role(form.role.data, email)
    code, expires = _new_code()
    try:
        pending = accounts.update_pending_otp(email, form.role.data, code,
                                              expires)
    except NoSuchPendingAccount as e:
        raise NotFound('No pending registration found') from e
    _send_code(pending)
    return {'email': pending.email, 'role': pending.role}, HTTPStatus.OK, {}


def promote(pending: domain.PendingAccount,
            admin_email: str) -> domain.Account:
    """
    Build a verified :class:`domain.Account` from a pending registration.

    The role is derived again from the configured admin address rather than
    taken from the pending record, and the password is hashed here.
    """
    return domain.Account(
        email=pending.email,
        fullname=pending.fullname,
        role=policy.compute_role(pending.email, admin_email),
        password_hash=passwords.hash_password(pending.password),
        verified=True,
        created=now()
    )


def _check_role(requested: Optional[str], email: str) -> None:
    refusal = policy.role_refusal(requested, email,
                                  current_app.config['ADMIN_EMAIL'])
    if refusal is not None:
        logger.debug('Requested role %s refused', requested)
        raise Forbidden(refusal)


def _new_code() -> Tuple[str, datetime]:
    length = int(current_app.config.get('OTP_LENGTH', 6))
    code = f'{secrets.randbelow(10 ** length):0{length}d}'
    return code, now() + current_app.config['OTP_VALIDITY']


def _matches(expected: str, presented: Any) -> bool:
    """Compare a presented code in constant time; only digits can match."""
    presented = str(presented)
    if len(presented) != len(expected) \
            or not (presented.isascii() and presented.isdigit()):
        return False
    return secrets.compare_digest(expected.encode('ascii'),
                                  presented.encode('ascii'))


def _send_code(pending: domain.PendingAccount) -> None:
    minutes = int(current_app.config['OTP_VALIDITY'].total_seconds() // 60)
    notifications.deliver(notifications.Message(
        to=pending.email,
        subject='Your verification code',
        body=(f'Hello {pending.fullname},\n\n'
              f'Your verification code is {pending.otp}. '
              f'It expires in {minutes} minutes.\n')
    ))
