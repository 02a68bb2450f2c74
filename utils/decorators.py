from __future__ import annotations
from functools import wraps
from flask import request, g, abort
from utils.security import decode_token, InvalidAccessToken
from models import storage
from models.user import User


def jwt_required():
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            auth = request.headers.get("Authorization", "")
            if not auth.startswith("Bearer "):
                abort(401, description="Missing or invalid Authorization header")
            token = auth.split(" ", 1)[1].strip()
            try:
                decoded = decode_token(token, expected_type="access")
            except InvalidAccessToken as e:
                abort(401, description=str(e))

            user_id = decoded.get("sub")
            session = storage.get_session()
            user = session.get(User, user_id)
            if not user or not user.is_active:
                abort(401, description="User not found")
            g.current_user = user
            g.current_user_role = getattr(user.role, "value", user.role)
            g.current_token_jti = decoded.get("jti")
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def roles_required(required_roles: list[str]):
    """
    Allow access if the user's role is one of required_roles, else 403.
    """
    req = set(required_roles or [])

    def decorator(fn):
        @wraps(fn)
        @jwt_required()
        def wrapper(*args, **kwargs):
            if getattr(g, "current_user_role", None) not in req:
                abort(403, description="Insufficient role")
            return fn(*args, **kwargs)

        return wrapper

    return decorator
