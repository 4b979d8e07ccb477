"""
Domain Errors
Every failure the core reports carries a stable kind and a readable message.
The HTTP layer maps kinds to status codes; nothing below it knows about HTTP.
"""


class MembershipError(Exception):
    """Base class for all domain errors"""

    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": self.message}


class NotFoundError(MembershipError):
    """Referenced college/admin/user/event does not exist"""

    kind = "not_found"


class ConflictError(MembershipError):
    """Uniqueness violation or an already-occupied tenure"""

    kind = "conflict"


class ValidationError(MembershipError):
    """Field constraints violated"""

    kind = "validation_error"


class RegistrationError(MembershipError):
    """Event registration precondition failed"""

    kind = "registration_error"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class Unauthorized(MembershipError):
    """Missing, invalid or wrong-type token"""

    kind = "unauthorized"


class Forbidden(MembershipError):
    """Valid identity lacking the required permission or scope"""

    kind = "forbidden"


class InvalidStateError(MembershipError):
    """Entity is not in the state the operation requires"""

    kind = "invalid_state"
