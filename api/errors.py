"""Error taxonomy shared by services and routes.

Every error is an ``HTTPException`` so services can raise it directly and
routes can re-raise it unchanged.
"""

from fastapi import HTTPException, status


class Unauthenticated(HTTPException):
    """No credential, or the credential was rejected."""

    def __init__(self, detail: str = "Not authenticated"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class Forbidden(HTTPException):
    """Authenticated, but without the project-scoped privilege.

    The detail is generic on purpose: callers must not learn whether they had
    the wrong role or were simply not a member.
    """

    def __init__(self, detail: str = "Not permitted"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class NotFound(HTTPException):
    """Entity or project missing."""

    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ValidationError(HTTPException):
    """Malformed or out-of-bounds input."""

    def __init__(self, detail: str = "Invalid request"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class Conflict(HTTPException):
    """Request collides with existing state (e.g. duplicate membership)."""

    def __init__(self, detail: str = "Conflict"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class InternalError(HTTPException):
    """Downstream store or object-store failure; detail stays opaque."""

    def __init__(self, detail: str = "Internal server error"):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


class RoleLookupFailed(InternalError):
    """The caller's profile role could not be resolved."""

    def __init__(self, detail: str = "Failed to verify user role"):
        super().__init__(detail=detail)
