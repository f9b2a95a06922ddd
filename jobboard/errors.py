"""
Error taxonomy for the application / interview / message workflow.

Services raise these; the handlers registered in jobboard.main render
every one of them as {"success": false, "message": ...} with the
class's status code.
"""


class JobBoardError(Exception):
    status_code = 500
    default_message = "Request failed"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(JobBoardError):
    """Malformed input, rejected before anything is persisted."""
    status_code = 400
    default_message = "Invalid request"


class NotFoundError(JobBoardError):
    status_code = 404
    default_message = "Not found"


class AuthorizationError(JobBoardError):
    """The principal does not own the target record."""
    status_code = 403
    default_message = "Not authorized"


class NotFoundOrUnauthorizedError(AuthorizationError):
    """Missing and foreign records look the same to the caller."""
    status_code = 404
    default_message = "Not found or not authorized"


class ConflictError(JobBoardError):
    status_code = 409
    default_message = "Already exists"


class NotificationError(JobBoardError):
    """Email delivery failed. Always absorbed, never rendered."""
    default_message = "Notification delivery failed"


class DependencyError(JobBoardError):
    """The record store is unavailable."""
    status_code = 500
    default_message = "Storage unavailable"
