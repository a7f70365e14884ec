"""Error taxonomy for calls to the certificate backend.

Every failure a portal operation can hit is one of these classes.  The
``code`` attribute is the discriminator callers branch on:

  network       the call never completed (transport error, timeout, 5xx,
                unreadable payload) -- worth retrying later
  validation    the backend rejected the input (4xx with a field message)
                -- the user has to fix something
  conflict      the action is illegal in the entity's current state,
                e.g. approving an already-approved request -- nothing to do
  not_found     the id does not exist
  unauthorized  missing, expired or insufficient bearer token
  precondition  the portal refused to send the request at all

``user_message`` is what the UI shows.  It is the backend's envelope
``message`` when there was one, otherwise a fallback chosen by the
caller.  None of these are retried automatically.
"""

from __future__ import annotations


class PortalError(Exception):
    code = "error"

    def __init__(self, user_message: str, *, status_code: int | None = None) -> None:
        super().__init__(user_message)
        self.user_message = user_message
        self.status_code = status_code


class NetworkError(PortalError):
    code = "network"


class ResponseFormatError(NetworkError):
    """The backend answered, but not with something we can parse."""


class ValidationError(PortalError):
    code = "validation"


class ConflictError(PortalError):
    code = "conflict"


class NotFoundError(PortalError):
    code = "not_found"


class UnauthorizedError(PortalError):
    code = "unauthorized"


class PreconditionError(PortalError):
    """Raised before any network call when input is unusable."""

    code = "precondition"
