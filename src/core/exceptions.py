"""Domain errors shared by services and the HTTP layer.

Services raise these at the point of detection and never catch them;
``src.main`` maps them to HTTP status codes.
"""


class DomainError(Exception):
    """Base class for expected, caller-facing failures."""

    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(DomainError):
    """The entity does not exist or is not owned by the caller.

    Both cases share one error so callers cannot learn which ids other users own.
    """

    status_code = 404


class ValidationError(DomainError):
    """The request is structurally invalid."""

    status_code = 400


class ConflictError(DomainError):
    """The request conflicts with current state (completed session, concurrent write)."""

    status_code = 409
