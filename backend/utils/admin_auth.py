# utils/admin_auth.py
import secrets
from typing import Optional

from fastapi import Header, HTTPException, Query, status

from config import settings

# Shared-token gate for the admin dashboard and its API.
# The token may come as ?token=... (dashboard links) or as the X-Admin-Token header.
def require_admin(
    token: Optional[str] = Query(None, include_in_schema=False),
    x_admin_token: Optional[str] = Header(None),
) -> str:
    supplied = token or x_admin_token
    expected = settings.ADMIN_TOKEN
    # compare_digest only accepts ASCII str, compare the encoded bytes
    if not expected or not supplied or not secrets.compare_digest(
        supplied.encode("utf-8"), expected.encode("utf-8")
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return "admin"
