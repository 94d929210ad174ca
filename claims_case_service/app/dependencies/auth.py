# Bearer-token authentication and role checks
import logging
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import ValidationError as PydanticValidationError

from claims_case_service.app.config import settings
from claims_case_service.app.models import ActingUser

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def decode_acting_user(token: str) -> ActingUser:
    """Reads id (`sub` or `id`), `name` and `role` from a signed token. Raises JWTError or ValueError."""
    claims = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    user_id = claims.get("sub") or claims.get("id")
    if not user_id:
        raise ValueError("token carries no subject")
    return ActingUser(id=str(user_id), name=claims.get("name") or str(user_id), role=claims.get("role") or "employee")


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> ActingUser:
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Not authenticated", headers={"WWW-Authenticate": "Bearer"})
    try:
        return decode_acting_user(credentials.credentials)
    except (JWTError, ValueError, PydanticValidationError) as e:
        logger.warning(f"Rejected bearer token: {e}")
        raise HTTPException(status_code=401, detail="Invalid authentication token", headers={"WWW-Authenticate": "Bearer"})


async def require_admin(user: ActingUser = Depends(get_current_user)) -> ActingUser:
    if not user.is_admin:
        logger.warning(f"User {user.id} ({user.role}) denied an admin-only operation.")
        raise HTTPException(status_code=403, detail="Admin role required")
    return user
