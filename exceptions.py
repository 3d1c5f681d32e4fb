"""Exceptions raised across the case service boundary."""


class CaseServiceError(Exception):
    """Raised when a case lookup or update cannot be completed.

    The message is short and safe to show to the user; store details are
    only logged.
    """

    pass


class CaseNotFoundError(CaseServiceError):
    """Raised when a case does not exist or is not owned by the caller."""

    pass


class InvalidStatusError(CaseServiceError):
    """Raised when a status change other than closing is requested."""

    pass
