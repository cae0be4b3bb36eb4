"""Explicit confirmation for irreversible operations."""

from fastapi import HTTPException, Query, status


def require_confirmation(
    confirm: bool = Query(
        default=False,
        description="Must be true; the operation cannot be undone",
    ),
) -> None:
    """Reject the request with 400 unless ``confirm=true`` was sent.

    Used as a route dependency so the service is never called without it.
    """
    if not confirm:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="This action is irreversible; repeat the request with confirm=true",
        )
