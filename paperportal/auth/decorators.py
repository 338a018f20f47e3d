"""
Authorization of requests to the portal API.

This module provides :func:`scoped`, a decorator factory used to protect
Flask routes for which authentication is required. The authenticated
:class:`.Account` is attached to the request by :class:`.Auth` as
``request.auth``. If the credentials on the request could not be verified,
``request.auth`` holds the exception to raise instead.

.. code-block:: python

   @blueprint.route('/papers/', methods=['GET'])
   @scoped(admin=True)
   def list_papers():
       ...

"""

from typing import Any, Callable, Optional
from functools import wraps
import logging

from flask import request
from werkzeug.exceptions import Forbidden, Unauthorized

from . import policy

logger = logging.getLogger(__name__)

NO_TOKEN = 'Unauthorized - No token provided'
ADMIN_ONLY = 'Admin access only'


def scoped(admin: bool = False,
           authorizer: Optional[Callable] = None) -> Callable:
    """
    Generate a decorator to enforce authorization requirements.

    Parameters
    ----------
    admin : bool
        If ``True``, only the administrator may use the decorated route.
    authorizer : function
        An optional function with the signature
        ``(account: domain.Account, *args, **kwargs) -> bool``, called with
        the parameters passed to the decorated route. If it returns ``False``
        a :class:`Forbidden` exception is raised.

    Returns
    -------
    function

    """
    def protector(func: Callable) -> Callable:
        """Decorator that provides authorization enforcement."""
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            """
            Check the authenticated account before executing the route.

            Raises
            ------
            :class:`.Unauthorized`
                Raised when no credentials were presented.
            :class:`.Forbidden`
                Raised when the account is not authorized.

            """
            account = getattr(request, 'auth', None)
            # Credentials were presented, but could not be verified.
            if isinstance(account, Exception):
                logger.debug('Auth extension passed an exception: %s',
                             account)
                raise account
            if account is None:
                logger.debug('No valid session; aborting')
                raise Unauthorized(NO_TOKEN)

            if admin and not policy.can_transition_status(account):
                logger.debug('Account %s is not the administrator',
                             account.account_id)
                raise Forbidden(ADMIN_ONLY)

            if authorizer and not authorizer(account, *args, **kwargs):
                logger.debug('Authorizer returned negative result')
                raise Forbidden('Access denied')

            logger.debug('Request is authorized, proceeding')
            return func(*args, **kwargs)
        return wrapper
    return protector
