"""Exceptions raised by the calgate engine."""


class CalgateError(Exception):
    """Base class for calgate errors."""


class UserNotFound(CalgateError):
    """Handle lookup missed, or the account has not finished onboarding.

    The two causes are never distinguished to callers.
    """


class ConnectionRejected(CalgateError):
    """A connect/disconnect request is not valid for the viewer's current state."""


class MutationFailure(CalgateError):
    """The credential store failed while connecting or disconnecting."""


class AggregationError(CalgateError):
    """The viewer's credentials could not be loaded; no categories are produced."""


class TransientFetchFailure(CalgateError):
    """A query kept failing after its retry budget was spent."""

    def __init__(self, key: str, attempts: int, cause: BaseException):
        super().__init__(f"{key} failed after {attempts} attempt(s): {cause}")
        self.key = key
        self.attempts = attempts
        self.cause = cause
