"""
Request dependencies shared by the routers.
"""

from fastapi import Header, HTTPException


def get_current_user_id(x_user_id: int | None = Header(default=None)) -> int:
    """
    The caller's user id.

    Authentication happens upstream; by the time a request gets
    here the gateway has verified the session and forwarded the
    user id in the X-User-Id header.
    """
    if x_user_id is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return x_user_id
