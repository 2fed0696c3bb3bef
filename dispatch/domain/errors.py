"""Typed errors raised by the dispatch core.

The API layer maps each class to an HTTP status; services and domain
functions only ever raise these (or let SQLAlchemy errors surface as
``DataAccessError``).
"""


class DispatchError(Exception):
    """Base class for every error the dispatch core reports to callers."""


class ValidationError(DispatchError):
    """Invalid input to an action.  Raised before anything is written."""


class TransitionError(DispatchError):
    """Requested status is not the successor of the current status."""


class NotFound(DispatchError):
    """Referenced record does not exist."""


class StaleTripError(DispatchError):
    """The trip changed since it was read; the write was not applied."""


class SettlementInProgress(DispatchError):
    """Another settlement for the same driver holds the lock."""


class DataAccessError(DispatchError):
    """The backing store failed.  Nothing from the action was committed."""
