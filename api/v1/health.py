"""Liveness endpoint."""

from fastapi import APIRouter

import config

router = APIRouter()


@router.get("/health")
async def health_check():
    """Report that the process is up; touches no store."""
    return {
        "status": "ok",
        "env": config.settings.ENV,
        "service": "project-portal",
    }
