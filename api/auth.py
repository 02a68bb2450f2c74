"""
Authentication blueprint:
- POST /auth/register
- POST /auth/login
- POST /auth/refresh
- POST /auth/logout
- POST /auth/logout-all
- GET  /auth/me

The implementation:
- Uses Argon2id for password hashing (via utils.security)
- Issues short-lived access JWTs (HS256) and opaque, single-use refresh tokens
- Refresh tokens are rotated by services.token_rotation.TokenRotationGuard; presenting
  a used refresh token revokes every session of the user (403 TOKEN_REUSE_DETECTED)
"""
from __future__ import annotations

from flask import Blueprint, request, jsonify, g, abort, current_app

from models import storage
from models.user import User, UserRole
from models.token_store import TokenStore
from models.schemas.auth import RefreshTokenSchema, TokenPairOutSchema
from models.schemas.user import UserCreateSchema, UserOutSchema, UserLoginSchema
from services.token_rotation import TokenRotationGuard
from utils.decorators import jwt_required
from utils.logger import get_logger
from utils.security import hash_password, verify_password, create_access_token
from utils.timeutils import utcnow

bp = Blueprint("auth", __name__)
logger = get_logger(__name__)

user_create_schema = UserCreateSchema()
user_out_schema = UserOutSchema()
user_login_schema = UserLoginSchema()
refresh_token_schema = RefreshTokenSchema()
token_pair_out_schema = TokenPairOutSchema()


def token_guard() -> TokenRotationGuard:
    return TokenRotationGuard(
        TokenStore(storage.get_session()),
        lifetime=current_app.config["REFRESH_TOKEN_EXPIRES"],
    )


def token_pair(user: User, refresh) -> dict:
    role = getattr(user.role, "value", user.role)
    return token_pair_out_schema.dump({
        "access_token": create_access_token(subject=user.id, role=role),
        "refresh_token": refresh.token,
        "expires_in": int(current_app.config["ACCESS_TOKEN_EXPIRES"].total_seconds()),
        "refresh_expires_at": refresh.expires_at,
    })


@bp.post("/register")
def register():
    """
    Register a new user and log them in.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            name: { type: string }
            email: { type: string }
            password: { type: string }
            role: { type: string, enum: [user, partner] }
    responses:
      201:
        description: Created (returns user and tokens)
      409:
        description: Email already registered
      422:
        description: Validation error
    """
    payload = request.get_json(silent=True) or {}
    data = user_create_schema.load(payload)

    session = storage.get_session()
    if session.query(User).filter(User.email == data["email"]).first():
        abort(409, description="Email already registered")

    user = User(
        name=data["name"],
        email=data["email"],
        password_hash=hash_password(data["password"]),
        role=UserRole(data["role"]),
        last_login_at=utcnow(),
    )
    storage.new(user)
    storage.save()

    refresh = token_guard().issue(user.id)
    logger.info("User registered: %s", user.id)
    return jsonify({"data": {"user": user_out_schema.dump(user), **token_pair(user, refresh)}}), 201


@bp.post("/login")
def login():
    """
    Login: return access_token and refresh_token
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             email: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Unauthorized
    """
    payload = request.get_json(silent=True) or {}
    data = user_login_schema.load(payload)

    session = storage.get_session()
    user = session.query(User).filter(User.email == data["email"]).first()
    # same message for unknown email and wrong password
    if not user or not verify_password(data["password"], user.password_hash):
        abort(401, description="Invalid credentials")
    if not user.is_active:
        abort(401, description="User account is inactive")

    user.last_login_at = utcnow()
    storage.new(user)
    storage.save()

    refresh = token_guard().issue(user.id)
    return jsonify({"data": {"user": user_out_schema.dump(user), **token_pair(user, refresh)}}), 200


@bp.post("/refresh")
def refresh():
    """
    Rotate a refresh token: the presented token is consumed and a new pair is returned.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refresh_token: { type: string }
    responses:
      200:
        description: New token pair
      401:
        description: Unknown or expired refresh token
      403:
        description: Refresh token reuse detected, every session of the user was revoked
    """
    data = refresh_token_schema.load(request.get_json(silent=True) or {})
    guard = token_guard()
    successor = guard.rotate(data["refresh_token"])

    user = storage.get(User, successor.user_id)
    if not user or not user.is_active:
        guard.revoke_all(successor.user_id)
        abort(401, description="User account is inactive")

    return jsonify({"data": {"user": user_out_schema.dump(user), **token_pair(user, successor)}}), 200


@bp.post("/logout")
@jwt_required()
def logout():
    """
    Logout: invalidates the given refresh token of the current user.
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refresh_token: { type: string }
    responses:
      204:
        description: ""
      401:
        description: Unauthorized
    """
    data = refresh_token_schema.load(request.get_json(silent=True) or {})
    token_guard().invalidate(data["refresh_token"], user_id=g.current_user.id)
    logger.info("User logged out: %s", g.current_user.id)
    return ("", 204)


@bp.post("/logout-all")
@jwt_required()
def logout_all():
    """
    Revoke every refresh token of the current user.
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: Number of sessions revoked
    """
    revoked = token_guard().revoke_all(g.current_user.id)
    return jsonify({"data": {"revoked": revoked}}), 200


@bp.get("/me")
@jwt_required()
def me():
    """
    Current user.
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    return jsonify({"data": user_out_schema.dump(g.current_user)}), 200
