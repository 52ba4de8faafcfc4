"""FastAPI dependency: acting user from an optional bearer token."""

from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from sfa.application.services.auth_service import actor_id_from_token

security = HTTPBearer(auto_error=False)


def get_current_actor_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[int]:
    """Anonymous requests yield None; a token that does not verify is rejected."""
    if credentials is None:
        return None

    actor_id = actor_id_from_token(credentials.credentials)
    if actor_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return actor_id
