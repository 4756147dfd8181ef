"""FastAPI dependencies shared by the route modules."""

from typing import Annotated, Callable, Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.exceptions import Forbidden
from app.db.session import get_db
from app.models.user import UserRole
from app.schemas.user import Claims
from app.services.auth_service import AuthService
from app.services.session_store import SqlAlchemySessionStore
from app.services.token_service import TokenService, get_token_service

DbSession = Annotated[AsyncSession, Depends(get_db)]
Tokens = Annotated[TokenService, Depends(get_token_service)]


def get_auth_service(db: DbSession, tokens: Tokens) -> AuthService:
    store = SqlAlchemySessionStore(db, timeout=get_settings().db_timeout_seconds)
    return AuthService(store, tokens)


Auth = Annotated[AuthService, Depends(get_auth_service)]


def get_current_claims(
    tokens: Tokens,
    authorization: Annotated[Optional[str], Header()] = None,
) -> Claims:
    """Authenticate the bearer token. Proves who the caller is, nothing more."""
    return tokens.authenticate(authorization)


CurrentClaims = Annotated[Claims, Depends(get_current_claims)]


def require_role(role: UserRole) -> Callable[[Claims], Claims]:
    """Build a dependency that lets through only callers holding ``role``."""

    def checker(claims: CurrentClaims) -> Claims:
        if claims.role != role:
            raise Forbidden("Access denied")
        return claims

    return checker


AdminClaims = Annotated[Claims, Depends(require_role(UserRole.ADMIN))]
