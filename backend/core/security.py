# core/security.py
from __future__ import annotations
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from core.settings import JWT_SECRET, JWT_ALGORITHM, SESSION_EXPIRE_MINUTES

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# ------------------------------ Errors ------------------------------
class AuthError(Exception):
    """Failure inside the credentials provider; `type` names the failure kind."""

    type = "CallbackRouteError"

    def __init__(self, message: str = "Authentication failed", type: Optional[str] = None):
        super().__init__(message)
        if type:
            self.type = type

class CredentialsError(AuthError):
    type = "CredentialsSignin"

# ----------------------------- Passwords ----------------------------
def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # stored value is not a hash passlib recognizes
        return False

# --------------------------- Session tokens --------------------------
def create_session_token(email: str, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=SESSION_EXPIRE_MINUTES))
    return jwt.encode({"sub": email, "exp": expire}, JWT_SECRET, algorithm=JWT_ALGORITHM)

def read_session_token(token: Optional[str]) -> Optional[str]:
    """E-mail carried by a valid token, None for a missing, expired or tampered one."""
    if not token:
        return None
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None
    email = payload.get("sub")
    return email if isinstance(email, str) and email else None
