"""
Domain exceptions raised by the service layer.

Each carries the HTTP status it maps to; the handlers in app.main turn them
into the standard error envelope.
"""


class DashboardError(Exception):
    """Base exception for dashboard errors."""
    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InvalidRequestError(DashboardError):
    status_code = 400


class PermissionDeniedError(DashboardError):
    status_code = 403

    def __init__(self, message: str = "You don't have permission to perform this action"):
        super().__init__(message)


class NotFoundError(DashboardError):
    """Raised when a referenced record does not exist."""
    status_code = 404

    def __init__(self, entity: str = "Resource"):
        super().__init__(f"{entity} not found")
        self.entity = entity


class ConflictError(DashboardError):
    status_code = 409
