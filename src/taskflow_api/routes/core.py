"""
Core API routes for TaskFlow, i.e. health checks.

Note that unlike every other API route (other than auth) these routes are not behind authentication.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, status

core_router = APIRouter()


@core_router.get("/health", status_code=status.HTTP_200_OK, response_model=dict[str, str])
def health():
    """Basic health check endpoint for the server."""
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}
