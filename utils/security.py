"""Password hashing and session identity helpers."""

import os
from typing import Optional, Set

import bcrypt
from fastapi import HTTPException, Request, status

MAX_BCRYPT_BYTES = 72
SESSION_USER_KEY = "user_id"


def hash_password(password: str) -> str:
    p = password.encode("utf-8")[:MAX_BCRYPT_BYTES]
    return bcrypt.hashpw(p, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    p = plain.encode("utf-8")[:MAX_BCRYPT_BYTES]
    return bcrypt.checkpw(p, hashed.encode("utf-8"))


def admin_emails() -> Set[str]:
    """Emails granted admin access, from the comma-separated ADMIN_EMAILS variable."""
    raw = os.getenv("ADMIN_EMAILS", "")
    return {email.strip().lower() for email in raw.split(",") if email.strip()}


def current_user_id(request: Request) -> Optional[str]:
    """Return the signed-in user's id from the session cookie, if any."""
    user_id = request.session.get(SESSION_USER_KEY)
    return str(user_id) if user_id else None


def require_user_id(request: Request) -> str:
    """FastAPI dependency returning the signed-in user's id or raising 401."""
    user_id = current_user_id(request)
    if user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return user_id
