"""
Credential store: verified accounts and pending registrations.

Accounts are only ever created from a verified :class:`.PendingAccount`.
Password hashing happens before an account reaches this module; nothing here
derives roles or transforms credentials.
"""

from typing import Optional
from datetime import datetime
import logging

from sqlalchemy.exc import IntegrityError

from .. import domain
from ..util import now
from . import util
from .exceptions import AccountExists, NoSuchAccount, NoSuchPendingAccount
from .models import DBAccount, DBPendingAccount, to_storage

logger = logging.getLogger(__name__)


def does_email_exist(email: str) -> bool:
    """
    Determine whether an account with a particular address already exists.

    Parameters
    ----------
    email : str

    Returns
    -------
    bool

    """
    with util.transaction() as session:
        data = session.query(DBAccount.account_id) \
            .filter(DBAccount.email == email) \
            .first()
    return data is not None


def create_account(account: domain.Account) -> domain.Account:
    """
    Persist a new :class:`domain.Account`.

    Parameters
    ----------
    account : :class:`domain.Account`
        Must already carry a password hash and a derived role.

    Returns
    -------
    :class:`domain.Account`
        The stored account, with its identifier.

    Raises
    ------
    :class:`.AccountExists`
        If an account with the same e-mail address is already stored.

    """
    created = account.created or now()
    db_account = DBAccount(
        email=account.email,
        fullname=account.fullname,
        role=account.role,
        password_hash=account.password_hash,
        refresh_token=account.refresh_token,
        verified=account.verified,
        created=to_storage(created),
        updated=to_storage(created)
    )
    try:
        with util.transaction() as session:
            session.add(db_account)
    except IntegrityError as e:
        raise AccountExists(f'Account exists for {account.email}') from e
    logger.debug('Created account %s', db_account.account_id)
    return db_account.to_domain()


def get_account_by_id(account_id: str) -> domain.Account:
    """Load an account by its identifier."""
    with util.transaction() as session:
        db_account = session.get(DBAccount, _as_int(account_id))
        if db_account is None:
            raise NoSuchAccount(f'No account {account_id}')
        return db_account.to_domain()


def get_account_by_email(email: str) -> domain.Account:
    """Load an account by its (normalized) e-mail address."""
    with util.transaction() as session:
        db_account = session.query(DBAccount) \
            .filter(DBAccount.email == email) \
            .first()
        if db_account is None:
            raise NoSuchAccount(f'No account for {email}')
        return db_account.to_domain()


def set_refresh_token(account_id: str, token: Optional[str]) -> None:
    """
    Unconditionally replace the stored refresh token.

    Passing ``None`` clears the token, which ends the account's session.

    Raises
    ------
    :class:`.NoSuchAccount`

    """
    with util.transaction() as session:
        updated = session.query(DBAccount) \
            .filter(DBAccount.account_id == _as_int(account_id)) \
            .update({DBAccount.refresh_token: token,
                     DBAccount.updated: to_storage(now())},
                    synchronize_session=False)
    if not updated:
        raise NoSuchAccount(f'No account {account_id}')


def swap_refresh_token(account_id: str, expected: str, token: str) -> bool:
    """
    Replace the stored refresh token only if it still equals ``expected``.

    This is a single conditional ``UPDATE``, so two callers presenting the
    same token cannot both succeed.

    Returns
    -------
    bool
        ``True`` if the token was replaced.

    """
    with util.transaction() as session:
        updated = session.query(DBAccount) \
            .filter(DBAccount.account_id == _as_int(account_id),
                    DBAccount.refresh_token == expected) \
            .update({DBAccount.refresh_token: token,
                     DBAccount.updated: to_storage(now())},
                    synchronize_session=False)
    return updated == 1


def create_pending_account(pending: domain.PendingAccount) \
        -> domain.PendingAccount:
    """
    Persist a new registration, replacing any earlier one for the address.

    Parameters
    ----------
    pending : :class:`domain.PendingAccount`

    Returns
    -------
    :class:`domain.PendingAccount`

    """
    with util.transaction() as session:
        session.query(DBPendingAccount) \
            .filter(DBPendingAccount.email == pending.email) \
            .delete(synchronize_session=False)
        db_pending = DBPendingAccount(
            email=pending.email,
            fullname=pending.fullname,
            role=pending.role,
            password=pending.password,
            otp=pending.otp,
            otp_expires=to_storage(pending.otp_expires),
            created=to_storage(pending.created or now())
        )
        session.add(db_pending)
    return db_pending.to_domain()


def get_pending_account(email: str, role: str) -> domain.PendingAccount:
    """
    Load the registration waiting for ``email`` with ``role``.

    Raises
    ------
    :class:`.NoSuchPendingAccount`

    """
    with util.transaction() as session:
        db_pending = session.query(DBPendingAccount) \
            .filter(DBPendingAccount.email == email,
                    DBPendingAccount.role == role) \
            .first()
        if db_pending is None:
            raise NoSuchPendingAccount(f'No pending registration for {email}')
        return db_pending.to_domain()


def update_pending_otp(email: str, role: str, otp: str,
                       expires: datetime) -> domain.PendingAccount:
    """Replace the one-time code on a pending registration."""
    with util.transaction() as session:
        db_pending = session.query(DBPendingAccount) \
            .filter(DBPendingAccount.email == email,
                    DBPendingAccount.role == role) \
            .first()
        if db_pending is None:
            raise NoSuchPendingAccount(f'No pending registration for {email}')
        db_pending.otp = otp
        db_pending.otp_expires = to_storage(expires)
        session.add(db_pending)
    return db_pending.to_domain()


def delete_pending_account(email: str) -> None:
    """Discard any pending registration for ``email``."""
    with util.transaction() as session:
        session.query(DBPendingAccount) \
            .filter(DBPendingAccount.email == email) \
            .delete(synchronize_session=False)


def _as_int(identifier: str) -> int:
    try:
        return int(identifier)
    except (TypeError, ValueError) as e:
        raise NoSuchAccount(f'No account {identifier}') from e
