"""
LoveHub — Domain errors.

Every validation failure raised by the services derives from
``LoveHubError``.  Each kind carries the HTTP status and machine-readable
``code`` the API layer renders, so routers never translate errors by hand.
"""

from __future__ import annotations


class LoveHubError(Exception):
    """Base class for all LoveHub domain errors."""

    status_code: int = 400
    code: str = "lovehub_error"

    def __init__(self, message: str, **context: object) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.code}


class InvalidSwipe(LoveHubError):
    """A user tried to swipe on (or be matched with) themselves."""

    status_code = 422
    code = "invalid_swipe"


class EmptyMessage(LoveHubError):
    """A message with neither text nor an image reference."""

    status_code = 422
    code = "empty_message"


class NotAParticipant(LoveHubError):
    """The acting user is not one of the match's two users."""

    status_code = 403
    code = "not_a_participant"


class MatchNotFound(LoveHubError):
    status_code = 404
    code = "match_not_found"


class UserNotFound(LoveHubError):
    status_code = 404
    code = "user_not_found"


class StorageCorrupt(LoveHubError):
    """A stored collection blob could not be decoded."""

    status_code = 503
    code = "storage_corrupt"
