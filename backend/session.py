# backend/session.py
from __future__ import annotations
from typing import Any, Mapping, Optional

from fastapi import Request

from core.security import (
    AuthError, CredentialsError, create_session_token, read_session_token, verify_password,
)
from core.settings import SESSION_COOKIE
from models import User
from queries import FetchError, get_user
from schemas import LoginIn, validate

class NotAuthenticated(Exception):
    """No signed-in user behind the request."""

# -------------------------- Credentials provider --------------------------
def sign_in(credentials: Mapping[str, Any]) -> str:
    """
    Checks e-mail + password and returns a new session token.
    Raises CredentialsError for bad input or a wrong password, AuthError when
    the lookup itself fails.
    """
    result = validate("login", credentials)
    if not result.success:
        raise CredentialsError("Invalid credentials")
    login: LoginIn = result.data

    try:
        user = get_user(login.email)
    except FetchError as e:
        raise AuthError(str(e)) from e

    if user is None or not verify_password(login.password, user.password):
        raise CredentialsError("Invalid credentials")
    return create_session_token(user.email)

# ---------------------------- Session resolver ----------------------------
def get_session_user(token: Optional[str]) -> Optional[User]:
    email = read_session_token(token)
    if email is None:
        return None
    return get_user(email)

def current_user(request: Request) -> User:
    """Dependency for every page that needs a signed-in user."""
    user = get_session_user(request.cookies.get(SESSION_COOKIE))
    if user is None:
        raise NotAuthenticated()
    return user
