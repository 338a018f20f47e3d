"""Exceptions raised while issuing and checking credentials."""


class InvalidToken(ValueError):
    """Token in request is not valid."""


class ExpiredToken(InvalidToken):
    """Token has expired."""


class MissingToken(ValueError):
    """No token was presented."""


class SessionCreationFailed(RuntimeError):
    """Failed to issue a token pair."""


class ReusedToken(InvalidToken):
    """A refresh token was presented after it had been superseded."""
