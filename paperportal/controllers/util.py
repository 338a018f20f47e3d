"""Helpers for :mod:`paperportal.controllers`."""

from typing import Any, Dict, List, Optional, Tuple

from werkzeug.exceptions import BadRequest
from wtforms import Form

from .. import domain

ResponseData = Tuple[dict, int, dict]

REQUIRED = 'This field is required.'
MISSING_FIELDS = 'All fields are required'


class InvalidInput(BadRequest):
    """Request data failed validation; carries per-field errors."""

    def __init__(self, description: Optional[str] = None,
                 errors: Optional[List[Dict[str, Any]]] = None) -> None:
        super(InvalidInput, self).__init__(description)
        self.errors = errors or []


def validate(form: Form, message: str = MISSING_FIELDS) -> None:
    """
    Validate ``form``, raising :class:`.InvalidInput` if it is not valid.

    If any field is missing, ``message`` is used as the description.
    Otherwise the first field error is.
    """
    if form.validate():
        return
    errors = [{'field': name, 'messages': list(messages)}
              for name, messages in form.errors.items()]
    if not any(REQUIRED in error['messages'] for error in errors):
        message = errors[0]['messages'][0]
    raise InvalidInput(message, errors)


def token_data(pair: domain.TokenPair) -> Dict[str, Any]:
    """
    Response data for a newly issued token pair.

    The ``cookies`` entry is consumed by the route, which sets the
    corresponding cookies on the response.
    """
    return {
        'accessToken': pair.access_token,
        'refreshToken': pair.refresh_token,
        'cookies': {
            'access_token': (pair.access_token, pair.access_expires),
            'refresh_token': (pair.refresh_token, pair.refresh_expires),
        }
    }
