"""Failure kinds raised by the task-access layer.

Each carries the HTTP status the transport maps it to, so routers never
translate errors by hand.
"""


class TaskAccessError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class Unauthenticated(TaskAccessError):
    """Missing, malformed, badly signed or expired token."""

    status_code = 401


class Forbidden(TaskAccessError):
    """Valid identity, but the record belongs to someone else."""

    status_code = 403


class NotFound(TaskAccessError):
    status_code = 404


class ValidationError(TaskAccessError):
    """Malformed input. `field` and `constraint` say what to fix."""

    status_code = 400

    def __init__(self, field: str, constraint: str):
        super().__init__(f"{field}: {constraint}")
        self.field = field
        self.constraint = constraint


class Unavailable(TaskAccessError):
    """The task store could not be reached or failed mid-operation."""

    status_code = 503


class RequestTimeout(Unavailable):
    """The request ran past its time budget; nothing was committed."""

    status_code = 504
