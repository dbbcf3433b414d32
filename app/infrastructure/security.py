"""Helpers for signing and verifying identity tokens."""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from app.config import get_settings

ALGORITHM = "HS256"

# ---- JWT ----
# Tokens are issued by the accounts service; this service only verifies them.
# ``create_access_token`` mirrors the issuer so scripts and tests can mint one.
settings = get_settings()


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    return jwt.encode({**data, "exp": expire}, settings.secret_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise ValueError("Could not validate credentials") from exc


def user_id_from_claims(claims: dict) -> str | None:
    """Return the user identity carried by ``claims`` (``sub`` or ``id``)."""

    for claim in ("sub", "id"):
        value = claims.get(claim)
        if value is not None and str(value).strip():
            return str(value).strip()
    return None
