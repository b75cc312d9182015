# utils/jwt_utils.py
from datetime import datetime, timedelta, timezone
from functools import wraps

import jwt
from flask import current_app, g, request

from routes.errors import ApiError


def create_access_token(user, ttl_minutes=None):
    """
    Create a signed bearer token for a logged-in user. Contains:
      - sub (user id, as a string)
      - role
      - iat, exp
    """
    cfg = current_app.config
    ttl = ttl_minutes if ttl_minutes is not None else cfg["JWT_EXPIRY_MINUTES"]
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user.id),
        "role": user.role,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=ttl)).timestamp()),
    }
    # pyjwt returns str in v2+
    return jwt.encode(payload, cfg["JWT_SECRET"], algorithm=cfg["JWT_ALGO"])


def verify_access_token(token: str):
    """
    Returns decoded payload if valid, else raises jwt exceptions.
    """
    cfg = current_app.config
    return jwt.decode(token, cfg["JWT_SECRET"], algorithms=[cfg["JWT_ALGO"]])


def _bearer_token():
    auth = request.headers.get("Authorization", "")
    if not auth.lower().startswith("bearer "):
        return None
    return auth.split(" ", 1)[1].strip() or None


def login_required(*roles):
    """Require a valid bearer token, and one of `roles` when given. Sets g.user."""

    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            token = _bearer_token()
            if not token:
                raise ApiError(401, "Missing bearer token")
            try:
                payload = verify_access_token(token)
            except jwt.ExpiredSignatureError:
                raise ApiError(401, "Token expired") from None
            except jwt.InvalidTokenError:
                raise ApiError(401, "Invalid token") from None

            try:
                user_id = int(payload["sub"])
            except (KeyError, TypeError, ValueError):
                raise ApiError(401, "Invalid token") from None

            user = current_app.extensions["attendance"].store.find_user(user_id)
            if user is None:
                raise ApiError(401, "User not found")
            if roles and user.role not in roles:
                raise ApiError(403, "Insufficient permissions")
            g.user = user
            return view(*args, **kwargs)

        return wrapped

    return decorator
