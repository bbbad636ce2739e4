# academic_records/errors.py


class RecordsError(Exception):
    status_code = 500
    public_message = None

    def __init__(self, message=None):
        super().__init__(message or self.public_message or "Server error")
        self.message = message or self.public_message or "Server error"


class ValidationError(RecordsError):
    status_code = 400


class AuthenticationError(RecordsError):
    status_code = 401
    public_message = "Access token required"


class InvalidTokenError(AuthenticationError):
    public_message = "Invalid refresh token"


class AuthorizationError(RecordsError):
    status_code = 403
    public_message = "Insufficient permissions"


class NotFoundError(RecordsError):
    status_code = 404


class ConflictError(RecordsError):
    status_code = 409


class DependencyError(RecordsError):
    """Persistence or signing failure. The detail stays in the server log."""

    status_code = 500

    def __init__(self, detail=None):
        super().__init__("Server error")
        self.detail = detail
