"""Services for business logic."""

from app.services.auth_service import AuthService
from app.services.token_service import TokenService, get_token_service
from app.services.session_store import SessionStore, SqlAlchemySessionStore
from app.services.progress_service import ProgressService

__all__ = [
    "AuthService",
    "TokenService",
    "get_token_service",
    "SessionStore",
    "SqlAlchemySessionStore",
    "ProgressService",
]
