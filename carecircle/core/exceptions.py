"""Error taxonomy shared by every CareCircle service.

Each error carries the HTTP status the API layer answers with, so routers
never translate errors themselves.
"""

from fastapi import status


class CareError(Exception):
    """Base class for errors raised by the CareCircle core."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnauthenticatedError(CareError):
    """No principal is attached to the request."""

    status_code = status.HTTP_401_UNAUTHORIZED


class UnauthorizedError(CareError):
    """The principal's role does not allow the operation."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(CareError):
    """The requested entity does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class ValidationError(CareError):
    """Caller-supplied input failed a precondition."""

    # Unprocessable Content
    status_code = 422


class StoreError(CareError):
    """The backing store reported a failure.

    ``message`` is the store's own error text.
    """

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
