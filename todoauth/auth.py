"""JWT issuing and checking, the auth cookie, and the login guard."""

from __future__ import annotations

import functools
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import jwt
from flask import g, jsonify, request

TOKEN_LIFETIME = timedelta(hours=24)
COOKIE_NAME = "token"


class AuthError(Exception):
    """Raised when a token is missing, malformed, badly signed or expired."""


def secret_key() -> bytes:
    """Return the signing key from the JWT_SECRET environment variable."""
    return os.environ.get("JWT_SECRET", "").encode()


def create_token(user_id: str, secret: bytes | str | None = None, now: datetime | None = None) -> str:
    """Sign an HS256 token for ``user_id`` valid for 24 hours from ``now``."""
    now = now or datetime.now(timezone.utc)
    expires = int((now + TOKEN_LIFETIME).timestamp())
    return jwt.encode({"userId": user_id, "exp": expires}, secret or secret_key(), algorithm="HS256")


def decode_token(token: str, secret: bytes | str | None = None) -> str:
    """Verify ``token`` and return its user id; raises AuthError if invalid."""
    try:
        claims = jwt.decode(token, secret or secret_key(), algorithms=["HS256", "HS384", "HS512"])
    except jwt.InvalidTokenError as exc:
        raise AuthError("Token inválido o expirado") from exc
    user_id = claims.get("userId")
    if not isinstance(user_id, str):
        raise AuthError("Token inválido o expirado")
    return user_id


def auth_cookie_header(token: str, env: str | None = None) -> str:
    """Build the Set-Cookie value carrying ``token`` for the given environment."""
    env = os.environ.get("APP_ENV", "") if env is None else env
    domain = os.environ.get("PRODUCTION_COOKIE_DOMAIN", "localhost") if env == "production" else "localhost"
    return (
        f"{COOKIE_NAME}={token}; Path=/; Max-Age={int(TOKEN_LIFETIME.total_seconds())}; "
        f"Domain={domain}; HttpOnly; Secure; SameSite=None; Partitioned; Priority=High"
    )


def login_required(view: Callable[..., Any]) -> Callable[..., Any]:
    """Reject requests without a valid token cookie; sets ``g.user_id``."""

    @functools.wraps(view)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        cookie_value = request.cookies.get(COOKIE_NAME, "")
        if not cookie_value:
            return jsonify({"error": "No autorizado: token ausente"}), 401
        try:
            g.user_id = decode_token(cookie_value)
        except AuthError as exc:
            return jsonify({"error": str(exc)}), 401
        return view(*args, **kwargs)

    return wrapper