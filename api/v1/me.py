"""Endpoint for the current authenticated user."""

from fastapi import APIRouter, Depends

from api.deps import get_current_user
from models.user import User, UserResponse

router = APIRouter()


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """Get the caller's profile."""
    return current_user
