"""
Rating error taxonomy.

Every failure the rating service can report is one of these. The transport
layer turns them into HTTP responses using ``status_code``.
"""


class RatingError(Exception):
    """Base class for errors surfaced by the rating service."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(RatingError):
    """Malformed input: missing fields, out-of-range stars, oversized comment."""

    status_code = 422


class NotFoundError(RatingError):
    status_code = 404


class InvalidStateError(RatingError):
    """Trip not completed, or the rated party cannot be determined."""

    status_code = 400


class ForbiddenError(RatingError):
    status_code = 403


class ConflictError(RatingError):
    """A rating already exists for this (trip, direction)."""

    status_code = 409


class InternalError(RatingError):
    status_code = 500

    def __init__(self, message: str = "Internal error while processing rating"):
        super().__init__(message)
