from __future__ import annotations

from jose import JWTError, jwt

from workspace_calendar.config import settings


ACCESS_TOKEN_TYPE = "access"
ALGORITHM = "HS256"


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise ValueError("Invalid token") from exc


def require_token_type(payload: dict, expected_type: str) -> None:
    token_type = payload.get("type")
    if token_type != expected_type:
        raise ValueError("Invalid token type")
