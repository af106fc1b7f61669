"""
Error taxonomy shared by the store, the engines and the API boundary.

Engines raise these; only the webapp layer turns them into HTTP responses.
"""

from typing import Optional


class MingleError(Exception):
    """Base class for every expected failure of a domain operation."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidArgument(MingleError):
    status_code = 400
    default_message = "Invalid argument"


class SelfReference(InvalidArgument):
    """A relationship whose two ends are the same user."""

    default_message = "A user cannot reference themselves"


class Unauthenticated(MingleError):
    status_code = 401
    default_message = "Authentication required"


class Forbidden(MingleError):
    status_code = 403
    default_message = "You are not authorized to perform this action"


class NotFound(MingleError):
    status_code = 404
    default_message = "Not found"


class AlreadyExists(MingleError):
    """Uniqueness violation on a relationship (follow, like)."""

    status_code = 409
    default_message = "Already exists"


class DuplicateKey(MingleError):
    """Uniqueness violation on an identity key (username, email)."""

    status_code = 409
    default_message = "Duplicate key"


class Conflict(MingleError):
    """The store detected a concurrent mutation (lock timeout, serialization failure)."""

    status_code = 409
    default_message = "Concurrent modification, please retry"


class Internal(MingleError):
    """
    A failure with no client-side remedy.

    Engines do not raise it; the catch-all handler in mingle/webapp/api.py stands
    in for it and answers any unexpected exception with this status and message.
    """

    status_code = 500
    default_message = "Internal server error"
