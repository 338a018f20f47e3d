"""
Authorization policy for the submission portal.

There is exactly one administrator: the account whose e-mail address equals
the configured ``ADMIN_EMAIL``. Role is always computed from that value and
is never accepted from the client. Clients do state the role they expect
(on registration, verification and login), and a request whose stated role
disagrees with the computed one is refused rather than corrected.
"""

from typing import Optional

from flask import current_app

from ..domain import Account, Paper, Role
from ..util import normalize_email

ADMIN_ROLE_REFUSED = \
    'Only official admin can register. Please register as an author.'
AUTHOR_ROLE_REFUSED = \
    'This email is registered as admin. Please continue as admin.'


def compute_role(email: str, admin_email: str) -> str:
    """The role for ``email``: admin iff it is the configured admin email."""
    if normalize_email(email) == normalize_email(admin_email):
        return Role.ADMIN
    return Role.AUTHOR


def role_refusal(requested: Optional[str], email: str,
                 admin_email: str) -> Optional[str]:
    """
    Check the role a client asked for against the computed role.

    Returns
    -------
    str or None
        A reason to refuse the request, or ``None`` if the roles agree.

    """
    computed = compute_role(email, admin_email)
    if requested == computed:
        return None
    if requested == Role.ADMIN:
        return ADMIN_ROLE_REFUSED
    return AUTHOR_ROLE_REFUSED


def is_admin(actor: Account, admin_email: Optional[str] = None) -> bool:
    """
    Whether ``actor`` is the administrator.

    Judged by the configured address, not by the role stored on the account.
    """
    if admin_email is None:
        admin_email = current_app.config['ADMIN_EMAIL']
    return compute_role(actor.email, admin_email) == Role.ADMIN


def can_mutate(actor: Account, paper: Paper,
               admin_email: Optional[str] = None) -> bool:
    """The owning author and the administrator may change a paper."""
    return is_admin(actor, admin_email) \
        or normalize_email(actor.email) == paper.email


def can_transition_status(actor: Account,
                          admin_email: Optional[str] = None) -> bool:
    """Only the administrator may set review status."""
    return is_admin(actor, admin_email)
