"""Local email/password accounts backed by the session cookie."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request

from dal.user_dal import UserDAL
from models.errors import InvalidInputError
from utils.security import SESSION_USER_KEY, admin_emails, current_user_id, hash_password, verify_password

LOGGER = logging.getLogger(__name__)
MIN_PASSWORD_LENGTH = 8


def _user_dal(request: Request) -> UserDAL:
    return UserDAL(request.app.state.db_initializer)


async def register(
    request: Request,
    email: str,
    password: str,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
) -> Dict[str, Any]:
    """Create an account and sign it in."""
    if "@" not in email:
        raise InvalidInputError("A valid email address is required.")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidInputError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    user = await _user_dal(request).create_user(email, hash_password(password), first_name, last_name)
    request.session[SESSION_USER_KEY] = user.id
    LOGGER.info("Registered user %s", user.id)
    return user.to_api(is_admin=user.email in admin_emails())


async def login(request: Request, email: str, password: str) -> Dict[str, Any]:
    """Verify credentials and start a session."""
    user = await _user_dal(request).get_by_email(email)
    if user is None or not verify_password(password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    request.session[SESSION_USER_KEY] = user.id
    return user.to_api(is_admin=user.email in admin_emails())


async def logout(request: Request) -> Dict[str, Any]:
    request.session.clear()
    return {"message": "Logged out"}


async def get_current_user(request: Request) -> Dict[str, Any]:
    """Return the signed-in user or raise 401."""
    user_id = current_user_id(request)
    user = await _user_dal(request).get_by_id(user_id) if user_id else None
    if user is None:
        request.session.clear()
        raise HTTPException(status_code=401, detail="Authentication required")
    return user.to_api(is_admin=user.email in admin_emails())
