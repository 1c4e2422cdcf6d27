from typing import AsyncGenerator, Callable, FrozenSet, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from envindo.core.database import db_manager
from jose import ExpiredSignatureError, JWTError, jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from envindo.core.config import settings
from envindo.core.exceptions import ForbiddenError, UnauthenticatedError
from envindo.core.roles import ROUTE_POLICY, Role, allow
from envindo.schemas.token_schema import Identity

bearer_scheme = HTTPBearer(auto_error=False)

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async for session in db_manager.get_db_session():
        yield session

# --- Identity Token Gate ---

def decode_identity(token: str) -> Identity:
    """
    Verifies the HS256 signature and expiry of a bearer token and returns the
    identity it carries. Raises UnauthenticatedError for anything else.
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.ALGORITHM],
            options={"require_exp": True, "require_sub": True},
        )
    except ExpiredSignatureError:
        raise UnauthenticatedError("Token has expired")
    except JWTError:
        raise UnauthenticatedError("Invalid token")

    try:
        return Identity(user_id=int(payload["sub"]), role=Role(payload.get("role")))
    except (KeyError, TypeError, ValueError):
        raise UnauthenticatedError("Invalid token claims")

async def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Identity:
    """
    Dependency that authenticates the request. It does not make any per-route
    authorization decision; that is the role policy's job.
    """
    if credentials is None:
        raise UnauthenticatedError("Authorization header required")
    if credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise UnauthenticatedError("Invalid authorization header format")
    return decode_identity(credentials.credentials)

# --- Role Policy Dependencies ---

def require_roles(required_roles: FrozenSet[Role]) -> Callable[..., Identity]:
    """Builds a dependency enforcing ``required_roles`` on top of the token gate."""

    async def _dependency(identity: Identity = Depends(get_current_identity)) -> Identity:
        if not allow(required_roles, identity.role):
            raise ForbiddenError("Insufficient permissions")
        return identity

    return _dependency

def route_policy(route_group: str) -> Callable[..., Identity]:
    """Dependency for a route group declared in ``ROUTE_POLICY``."""
    return require_roles(ROUTE_POLICY[route_group])
