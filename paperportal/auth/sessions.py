"""
Issues, verifies and rotates access/refresh token pairs.

Only the most recently issued refresh token is stored on an
:class:`.Account`, and it is the sole record of which refresh token is
valid. Logging in on a second device therefore ends the session on the
first: this is a single-active-session policy, not a per-device one.
"""

from typing import Optional
from functools import wraps
import logging

import jwt
from flask import Flask, current_app, g

from .. import domain
from ..services import accounts
from ..util import now
from . import tokens
from .exceptions import MissingToken, ReusedToken, SessionCreationFailed

logger = logging.getLogger(__name__)


class TokenAuthority(object):
    """Mints and checks signed tokens for stored accounts."""

    def __init__(self, access_secret: str, refresh_secret: str,
                 access_expires: int = 900, refresh_expires: int = 864000,
                 algorithm: str = 'HS256') -> None:
        """Configure signing secrets and lifetimes (in seconds)."""
        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self._access_expires = access_expires
        self._refresh_expires = refresh_expires
        self._algorithm = algorithm

    def issue_pair(self, account_id: str) -> domain.TokenPair:
        """
        Issue a new token pair, replacing the stored refresh token.

        Parameters
        ----------
        account_id : str

        Returns
        -------
        :class:`domain.TokenPair`

        Raises
        ------
        :class:`.NoSuchAccount`
            If there is no such account.
        :class:`.SessionCreationFailed`
            If either token could not be signed.

        """
        account = accounts.get_account_by_id(account_id)
        pair = self._mint(account)
        accounts.set_refresh_token(account.account_id, pair.refresh_token)
        logger.debug('Issued token pair for account %s', account.account_id)
        return pair

    def authenticate(self, access_token: Optional[str]) -> domain.Account:
        """
        Resolve an access token to the account it was issued for.

        Returns
        -------
        :class:`domain.Account`
            Without password hash or refresh token.

        Raises
        ------
        :class:`.MissingToken`
        :class:`.InvalidToken`
            If the token is malformed, badly signed or expired.
        :class:`.NoSuchAccount`
            If the account was deleted after the token was issued.

        """
        if not access_token:
            raise MissingToken('No access token')
        claims = tokens.decode(access_token, self._access_secret,
                               tokens.ACCESS, self._algorithm)
        return accounts.get_account_by_id(claims['id']).sanitized()

    def refresh(self, refresh_token: Optional[str]) -> domain.TokenPair:
        """
        Rotate a token pair.

        The presented token must equal the one stored on the account. The new
        refresh token is written with a conditional update against the
        presented value, so two concurrent refreshes with the same token
        cannot both succeed.

        Raises
        ------
        :class:`.MissingToken`
        :class:`.InvalidToken`
            If the token is malformed, badly signed or expired.
        :class:`.NoSuchAccount`
        :class:`.ReusedToken`
            If the token has been superseded.

        """
        if not refresh_token:
            raise MissingToken('Refresh token missing')
        claims = tokens.decode(refresh_token, self._refresh_secret,
                               tokens.REFRESH, self._algorithm)
        account = accounts.get_account_by_id(claims['id'])
        if account.refresh_token != refresh_token:
            logger.info('Superseded refresh token for account %s',
                        account.account_id)
            raise ReusedToken('Invalid or expired refresh token')

        pair = self._mint(account)
        if not accounts.swap_refresh_token(account.account_id, refresh_token,
                                           pair.refresh_token):
            logger.info('Lost refresh race for account %s',
                        account.account_id)
            raise ReusedToken('Invalid or expired refresh token')
        logger.debug('Rotated token pair for account %s', account.account_id)
        return pair

    def logout(self, account_id: str) -> None:
        """Clear the stored refresh token. Safe to call more than once."""
        accounts.set_refresh_token(account_id, None)

    def _mint(self, account: domain.Account) -> domain.TokenPair:
        issued = now()
        try:
            access_token = tokens.encode_access(
                account, self._access_secret, self._access_expires, issued,
                self._algorithm
            )
            refresh_token = tokens.encode_refresh(
                account, self._refresh_secret, self._refresh_expires, issued,
                self._algorithm
            )
        except (jwt.exceptions.PyJWTError, TypeError, ValueError) as e:
            raise SessionCreationFailed(f'Token generation failed: {e}') \
                from e
        return domain.TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            access_expires=self._access_expires,
            refresh_expires=self._refresh_expires
        )

    @classmethod
    def init_app(cls, app: Flask) -> None:
        """Set default configuration parameters for an application."""
        app.config.setdefault('ACCESS_TOKEN_EXPIRY', 900)
        app.config.setdefault('REFRESH_TOKEN_EXPIRY', 864000)
        app.config.setdefault('JWT_ALGORITHM', 'HS256')

    @classmethod
    def get_authority(cls, app: Optional[Flask] = None) -> 'TokenAuthority':
        """Get a new authority with the configured secrets."""
        config = (app or current_app).config
        return cls(config['ACCESS_TOKEN_SECRET'],
                   config['REFRESH_TOKEN_SECRET'],
                   int(config['ACCESS_TOKEN_EXPIRY']),
                   int(config['REFRESH_TOKEN_EXPIRY']),
                   config['JWT_ALGORITHM'])

    @classmethod
    def current_authority(cls) -> 'TokenAuthority':
        """Get/create :class:`.TokenAuthority` for this context."""
        if 'authority' not in g:
            g.authority = cls.get_authority()
        return g.authority      # type: ignore


@wraps(TokenAuthority.issue_pair)
def issue_pair(account_id: str) -> domain.TokenPair:
    """Issue a new token pair."""
    return TokenAuthority.current_authority().issue_pair(account_id)


@wraps(TokenAuthority.authenticate)
def authenticate(access_token: Optional[str]) -> domain.Account:
    """Resolve an access token to an account."""
    return TokenAuthority.current_authority().authenticate(access_token)


@wraps(TokenAuthority.refresh)
def refresh(refresh_token: Optional[str]) -> domain.TokenPair:
    """Rotate a token pair."""
    return TokenAuthority.current_authority().refresh(refresh_token)


@wraps(TokenAuthority.logout)
def logout(account_id: str) -> None:
    """End the session of an account."""
    return TokenAuthority.current_authority().logout(account_id)

