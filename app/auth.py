# app/auth.py
from typing import Optional

from fastapi import Header

from app.errors import Unauthenticated


def get_requester_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """
    Caller identity as verified by the authentication layer in front of the API.

    That layer sets ``X-User-Id`` after checking the caller's token; requests
    reaching us without it are rejected.
    """
    if not x_user_id or not x_user_id.strip():
        raise Unauthenticated()
    return x_user_id.strip()
