# backend/planner/api/dependencies/auth.py
"""
Caller identity.

Authentication happens upstream; the gateway forwards the authenticated
user's id in the X-User-Id header.
"""

from fastapi import Header, HTTPException, status

USER_ID_HEADER = "X-User-Id"


def get_current_user_id(x_user_id: str = Header(..., alias=USER_ID_HEADER)) -> str:
    user_id = x_user_id.strip()
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"{USER_ID_HEADER} header is required",
        )
    return user_id
