from typing import Optional

from fastapi import Request, HTTPException

from src.auth.tokens import AdminTokenService
from src.models.errors import AuthorizationError


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an 'Authorization: Bearer <token>' header value"""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_token_service(request: Request) -> AdminTokenService:
    """Dependency to get the token service from app state"""
    if not hasattr(request.app.state, 'token_service'):
        raise HTTPException(status_code=500, detail="Token service not initialized")
    return request.app.state.token_service


def require_admin(request: Request) -> str:
    """Dependency that admits only requests carrying a valid administrator token"""
    token_service = get_token_service(request)
    token = bearer_token(request.headers.get("Authorization"))
    if not token_service.verify(token):
        raise AuthorizationError("Unauthorized")
    return token
