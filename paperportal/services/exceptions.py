"""Exceptions raised by the document store, blob store and notifier."""


class Unavailable(RuntimeError):
    """The document store is temporarily unavailable."""


class NoSuchAccount(RuntimeError):
    """Account does not exist."""


class AccountExists(RuntimeError):
    """An account with that e-mail address already exists."""


class NoSuchPendingAccount(RuntimeError):
    """No registration is waiting for verification."""


class NoSuchPaper(RuntimeError):
    """Paper does not exist."""


class UploadFailed(RuntimeError):
    """A document could not be stored."""


class DeletionFailed(RuntimeError):
    """A stored document could not be deleted."""
