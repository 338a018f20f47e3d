"""Functions for working with access and refresh tokens."""

from typing import Any, Dict
from datetime import datetime, timedelta
import uuid

import jwt

from .exceptions import ExpiredToken, InvalidToken
from .. import domain

ACCESS = 'access'
REFRESH = 'refresh'


def encode_access(account: domain.Account, secret: str, expires: int,
                  issued: datetime, algorithm: str = 'HS256') -> str:
    """Encode an access token carrying identity and role."""
    return _encode({
        'id': account.account_id,
        'email': account.email,
        'role': account.role,
        'type': ACCESS,
    }, secret, expires, issued, algorithm)


def encode_refresh(account: domain.Account, secret: str, expires: int,
                   issued: datetime, algorithm: str = 'HS256') -> str:
    """Encode a refresh token carrying identity only."""
    return _encode({
        'id': account.account_id,
        'type': REFRESH,
    }, secret, expires, issued, algorithm)


def decode(token: str, secret: str, token_type: str,
           algorithm: str = 'HS256') -> Dict[str, Any]:
    """
    Decode and verify a token.

    Parameters
    ----------
    token : str
    secret : str
    token_type : str
        Either :data:`ACCESS` or :data:`REFRESH`.

    Returns
    -------
    dict
        The token claims.

    Raises
    ------
    :class:`.ExpiredToken`
    :class:`.InvalidToken`
        If the token is malformed, has a bad signature, is of the wrong
        type, or lacks an ``id`` claim.

    """
    try:
        claims: dict = jwt.decode(token, secret, algorithms=[algorithm],
                                  options={'require': ['exp', 'iat']})
    except jwt.exceptions.ExpiredSignatureError as e:
        raise ExpiredToken('Token has expired') from e
    except jwt.exceptions.InvalidTokenError as e:
        raise InvalidToken('Not a valid token') from e
    if claims.get('type') != token_type or not claims.get('id'):
        raise InvalidToken('Token payload malformed')
    return claims


def _encode(claims: Dict[str, Any], secret: str, expires: int,
            issued: datetime, algorithm: str) -> str:
    claims.update({
        'iat': issued,
        'exp': issued + timedelta(seconds=expires),
        'jti': uuid.uuid4().hex,    # Tokens minted in the same second differ.
    })
    return jwt.encode(claims, secret, algorithm=algorithm)
