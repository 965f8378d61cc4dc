"""Typed failures raised below the HTTP layer.

Each carries the status code the API answers with and a message that is safe
to show to the client. ``app.main`` turns them into ``{"error": message}``.
"""

class ServiceError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)

class UnauthenticatedError(ServiceError):
    status_code = 401
    message = "Not authenticated"

class ForbiddenError(ServiceError):
    status_code = 403
    message = "Not authorized"

class NotFoundError(ServiceError):
    status_code = 404
    message = "Not found"

class UnknownReferenceError(ServiceError):
    """A referenced row (e.g. an assignee id) does not exist."""

    status_code = 400
    message = "Unknown reference"

    def __init__(self, message: str | None = None, missing_ids=()):
        self.missing_ids = list(missing_ids)
        super().__init__(message)
