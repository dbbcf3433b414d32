"""FastAPI dependency utilities."""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from app.infrastructure.notifications import NotificationConnectionManager
from app.infrastructure.security import decode_access_token, user_id_from_claims

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token")


def _credentials_exception(detail: str = "Invalid credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def resolve_user_id(token: str | None) -> str:
    """Resolve the user identity for the provided token or raise ``401``."""

    if not token:
        raise _credentials_exception("Token required")
    try:
        claims = decode_access_token(token)
    except ValueError as exc:
        raise _credentials_exception() from exc

    user_id = user_id_from_claims(claims)
    if user_id is None:
        raise _credentials_exception()
    return user_id


def get_current_user_id(token: str = Depends(oauth2_scheme)) -> str:
    """Return the identity of the caller from the bearer token."""

    return resolve_user_id(token)


def get_connection_manager(request: Request) -> NotificationConnectionManager:
    return request.app.state.notification_manager
