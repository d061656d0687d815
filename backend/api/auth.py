"""FastAPI dependencies for the caller identity and the engine services.

Authentication happens upstream; the gateway forwards the verified user id in
the ``X-User-Id`` header.
"""

from fastapi import Header, HTTPException, Request

from backend.services.factory import SearchServices


def get_current_user_id(x_user_id: str | None = Header(None)) -> str:
    """Returns the caller's user id or raises 401."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Authentication required")
    return x_user_id.strip()


def get_services(request: Request) -> SearchServices:
    return request.app.state.services
