"""Defines accounts, registrations and papers for the submission portal."""

from typing import Any, List, NamedTuple, Optional
from datetime import datetime


class Role:
    """Known account roles."""

    AUTHOR = 'author'
    ADMIN = 'admin'

    ALL = (AUTHOR, ADMIN)


class PaperStatus:
    """
    Review status of a :class:`.Paper`.

    Status is a free field: the administrator may set any of these values at
    any time, in any order. It is not a workflow engine.
    """

    SUBMITTED = 'Submitted'
    REVIEW_AWAITING = 'Review Awaiting'
    REVIEW_OBTAINED = 'Review Obtained'
    ACCEPT = 'Accept'
    REJECT = 'Reject'

    ALL = (SUBMITTED, REVIEW_AWAITING, REVIEW_OBTAINED, ACCEPT, REJECT)


class Account(NamedTuple):
    """A registered, verified author or administrator."""

    email: str
    """Unique, lower-cased e-mail address."""

    fullname: str
    """Display name."""

    role: str
    """One of :attr:`Role.ALL`, derived from the configured admin e-mail."""

    account_id: Optional[str] = None
    """Unique identifier. If ``None``, the account has not been stored."""

    password_hash: Optional[str] = None
    """bcrypt hash of the account password."""

    refresh_token: Optional[str] = None
    """
    The only refresh token that is currently valid for this account.

    Issuing a new token pair overwrites this value, which invalidates any
    earlier refresh token. There is one active session per account, not per
    device.
    """

    verified: bool = False
    """Whether the e-mail address has been confirmed with a one-time code."""

    created: Optional[datetime] = None
    updated: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        """Whether this account holds the administrator role."""
        return self.role == Role.ADMIN

    def sanitized(self) -> 'Account':
        """Copy of this account without credential material."""
        return self._replace(password_hash=None, refresh_token=None)


class PendingAccount(NamedTuple):
    """A registration that is waiting for its one-time code."""

    email: str
    fullname: str
    role: str
    password: str
    """The password as submitted; hashed only when the account is created."""

    otp: str
    """Six-digit one-time code."""

    otp_expires: datetime
    """The code is rejected at or after this instant."""

    pending_id: Optional[str] = None
    created: Optional[datetime] = None

    def is_expired(self, at: datetime) -> bool:
        """Whether the one-time code has expired at time ``at``."""
        return at >= self.otp_expires


class Document(NamedTuple):
    """A stored PDF, as returned by the blob store."""

    viewer_url: str
    """URL suitable for embedding in a viewer."""

    download_url: str
    """URL that serves the document as an attachment."""

    storage_id: str
    """Opaque identifier used to delete the blob."""


class Paper(NamedTuple):
    """A submission under review."""

    fullname: str
    """Full name of the submitting author."""

    email: str
    """E-mail of the owning author."""

    title: str
    abstract: str
    keywords: List[str]

    pdf: Document
    """The primary document. Always present."""

    supplementary: Optional[Document] = None
    """Optional supplementary document."""

    status: str = PaperStatus.SUBMITTED
    paper_id: Optional[str] = None
    created: Optional[datetime] = None
    updated: Optional[datetime] = None


class TokenPair(NamedTuple):
    """Credentials issued to an account on login, verification or refresh."""

    access_token: str
    refresh_token: str

    access_expires: int
    """Lifetime of the access token, in seconds."""

    refresh_expires: int
    """Lifetime of the refresh token, in seconds."""


def to_dict(obj: tuple) -> dict:
    """
    Generate a dict representation of a NamedTuple instance.

    Child NamedTuple instances are cast to ``dict`` as well, and datetimes
    are rendered as ISO-8601 strings. Credential material on an
    :class:`.Account` is never included.

    Parameters
    ----------
    obj : tuple
        A NamedTuple instance.

    Returns
    -------
    dict

    """
    if not hasattr(obj, '_asdict'):  # NamedTuple-generated classes have this.
        return {}
    data = obj._asdict()  # type: ignore
    if isinstance(obj, Account):
        data.pop('password_hash')
        data.pop('refresh_token')

    def _cast(value: Any) -> Any:
        if hasattr(value, '_asdict'):
            value = to_dict(value)
        elif isinstance(value, datetime):
            value = value.isoformat()
        elif isinstance(value, list):
            value = [_cast(o) for o in value]
        return value

    return {key: _cast(value) for key, value in data.items()}
