"""
Domain error kinds and their HTTP status mapping
"""
import enum


class ErrorKind(str, enum.Enum):
    """Closed set of failure kinds raised by services and guards"""
    BAD_REQUEST = "bad_request"
    INVALID_STATE = "invalid_state"
    UNAUTHORIZED = "unauthorized"
    PAYMENT_REQUIRED = "payment_required"
    FORBIDDEN = "forbidden"
    GRADE_MISMATCH = "grade_mismatch"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    SERVER_CONFIG = "server_config"


STATUS_CODES = {
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.INVALID_STATE: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.PAYMENT_REQUIRED: 402,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.GRADE_MISMATCH: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.SERVER_CONFIG: 500,
}


class DomainError(Exception):
    """Base class for expected failures; the kind decides the response status"""
    kind: ErrorKind = ErrorKind.BAD_REQUEST
    default_message = "Bad request"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.kind]


class BadRequest(DomainError):
    kind = ErrorKind.BAD_REQUEST
    default_message = "Invalid parameters"


class InvalidState(DomainError):
    kind = ErrorKind.INVALID_STATE
    default_message = "Operation not allowed in the current state"


class Unauthorized(DomainError):
    kind = ErrorKind.UNAUTHORIZED
    default_message = "Authentication required"


class PaymentRequired(DomainError):
    kind = ErrorKind.PAYMENT_REQUIRED
    default_message = "Plan upgrade required"


class Forbidden(DomainError):
    kind = ErrorKind.FORBIDDEN
    default_message = "Access denied"


class GradeMismatch(DomainError):
    kind = ErrorKind.GRADE_MISMATCH
    default_message = "Grade level does not meet the requirement"


class NotFound(DomainError):
    kind = ErrorKind.NOT_FOUND
    default_message = "Not found"


class Conflict(DomainError):
    kind = ErrorKind.CONFLICT
    default_message = "Already exists"


class ServerConfig(DomainError):
    kind = ErrorKind.SERVER_CONFIG
    default_message = "Server configuration error"
