"""Bearer token verification for admin endpoints.

Identity is owned by the external auth provider; this module only verifies
the JWTs it issues (shared HS256 secret, `authenticated` audience).
"""

from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel

from app.config import settings

router = APIRouter()

bearer_scheme = HTTPBearer(auto_error=False)


class AuthenticatedUser(BaseModel):
    """Principal extracted from the provider token"""
    id: str
    email: Optional[str] = None
    role: Optional[str] = None


def create_access_token(
    user_id: str,
    email: Optional[str] = None,
    role: str = "authenticated",
    expires_minutes: int = 60,
) -> str:
    """Issue a token shaped like the provider's; used by local tooling and tests"""
    expire = datetime.utcnow() + timedelta(minutes=expires_minutes)
    payload = {
        "sub": user_id,
        "email": email,
        "role": role,
        "aud": settings.auth_jwt_audience,
        "exp": expire,
    }
    return jwt.encode(payload, settings.auth_jwt_secret, algorithm=settings.auth_jwt_algorithm)


async def get_current_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> AuthenticatedUser:
    """Resolve the authenticated user from the Authorization header"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="No autorizado",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if credentials is None:
        raise credentials_exception

    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.auth_jwt_secret,
            algorithms=[settings.auth_jwt_algorithm],
            audience=settings.auth_jwt_audience,
        )
    except JWTError:
        raise credentials_exception

    user_id = payload.get("sub")
    if user_id is None:
        raise credentials_exception

    return AuthenticatedUser(id=user_id, email=payload.get("email"), role=payload.get("role"))


@router.get("/me", response_model=AuthenticatedUser)
async def get_current_user_info(
    current_user: AuthenticatedUser = Depends(get_current_admin),
):
    """Get current user information"""
    return current_user
