from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import jwt

from envindo.core.config import settings
from envindo.core.roles import Role

# --- JWT Token Management ---

def create_access_token(user_id: int, role: Role, expires_delta: Optional[timedelta] = None) -> Dict[str, Any]:
    """Creates a new JWT access token and returns it along with its expiry."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    issued_at = datetime.now(timezone.utc)
    expire = issued_at + expires_delta

    to_encode = {
        "sub": str(user_id),
        "role": Role(role).value,
        "iat": int(issued_at.timestamp()),
        "exp": int(expire.timestamp()),
    }
    encoded_jwt = jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.ALGORITHM)
    return {"access_token": encoded_jwt, "expires_in": int(expires_delta.total_seconds())}
