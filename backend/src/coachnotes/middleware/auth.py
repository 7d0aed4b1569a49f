"""Authentication middleware."""

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..core.schemas.actor import Actor
from ..security import get_identity_from_token


def client_ip(request: Request) -> Optional[str]:
    """Caller IP, honouring proxy headers."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else None


class JWTBearer(HTTPBearer):
    """JWT Bearer token authentication."""

    def __init__(self, auto_error: bool = True):
        super(JWTBearer, self).__init__(auto_error=auto_error)

    async def __call__(self, request: Request):
        credentials: Optional[HTTPAuthorizationCredentials] = await super().__call__(request)
        if credentials:
            if credentials.scheme != "Bearer":
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="Invalid authentication scheme"
                )

            identity = get_identity_from_token(credentials.credentials)
            if not identity:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="Invalid token or expired token"
                )

            user_id, role = identity
            return Actor(
                id=user_id,
                role=role,
                ip_address=client_ip(request),
                user_agent=request.headers.get("user-agent"),
            )
        else:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid authorization code"
            )


# Dependency for getting the current actor from JWT
async def get_current_actor(actor: Actor = Depends(JWTBearer())) -> Actor:
    """Get current authenticated actor."""
    return actor
