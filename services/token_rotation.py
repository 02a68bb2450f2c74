"""
Refresh token rotation guard.

States (derived from used_at / replaced_by, see RefreshToken.state):
    ISSUED_LIVE  used_at NULL
    CONSUMED     used_at set, replaced_by set   (rotated once)
    REVOKED      used_at set, replaced_by NULL  (logout, logout-all, reuse response)

rotate() reads the token under a row lock and consumes it with a compare-and-swap on
used_at, so of two concurrent refreshes with the same value exactly one wins; the
other sees a used token and takes the reuse branch. Reuse revokes every token of the
owner in one bulk update, then raises SecurityAlert. Revocation only touches live
tokens, so repeating it is a no-op.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable, List

from sqlalchemy.exc import OperationalError, SQLAlchemyError

from models.refresh_token import RefreshToken
from models.token_store import TokenStore
from services.exceptions import SecurityAlert, TokenError, TokenExpired, TokenNotFound
from utils.logger import get_logger
from utils.retry import retry
from utils.security import generate_refresh_token_value
from utils.timeutils import utcnow

logger = get_logger(__name__)

DEFAULT_REFRESH_LIFETIME = timedelta(days=30)


class TokenRotationGuard:
    def __init__(self, store: TokenStore, lifetime: timedelta = DEFAULT_REFRESH_LIFETIME,
                 clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.lifetime = lifetime
        self.clock = clock

    def _new_token(self, user_id: str, now: datetime) -> RefreshToken:
        return RefreshToken(
            token=generate_refresh_token_value(),
            user_id=user_id,
            expires_at=now + self.lifetime,
        )

    def issue(self, user_id: str) -> RefreshToken:
        """New live token for a login or registration."""
        token = self._new_token(user_id, self.clock())
        try:
            self.store.add(token)
            self.store.commit()
        except SQLAlchemyError:
            self.store.rollback()
            raise
        return token

    def rotate(self, value: str) -> RefreshToken:
        """
        Exchange a live token for its successor.
        Raises TokenNotFound, TokenExpired (token left untouched) or SecurityAlert.
        """
        now = self.clock()
        try:
            token = self.store.find_by_value(value, lock=True)
            if token is None:
                raise TokenNotFound("Invalid refresh token")
            user_id = token.user_id
            if token.used_at is None:
                if token.is_expired(now):
                    raise TokenExpired("Refresh token has expired")
                if self.store.consume(token.id, now):
                    successor = self._new_token(user_id, now)
                    self.store.add(successor)
                    self.store.link(token, successor.id)
                    self.store.commit()
                    return successor
        except (TokenError, SQLAlchemyError):
            self.store.rollback()
            raise

        # Presented token was already used, or a concurrent refresh consumed it first
        self.store.rollback()
        revoked = self._revoke_user(user_id)
        logger.warning("Refresh token reuse detected for user %s; %d live tokens revoked", user_id, revoked)
        raise SecurityAlert(user_id, revoked)

    def invalidate(self, value: str, user_id: str | None = None) -> bool:
        """
        Logout: mark exactly this token used, no successor. Returns False when the token
        was no longer live. user_id, when given, must own the token.
        """
        now = self.clock()
        try:
            token = self.store.find_by_value(value, lock=True)
            if token is None or (user_id is not None and token.user_id != user_id):
                raise TokenNotFound("Invalid refresh token")
            changed = self.store.consume(token.id, now)
            self.store.commit()
        except (TokenError, SQLAlchemyError):
            self.store.rollback()
            raise
        return changed

    def revoke_all(self, user_id: str) -> int:
        """Logout-all / admin action. Idempotent; returns the number of tokens revoked now."""
        revoked = self._revoke_user(user_id)
        logger.info("Revoked %d refresh tokens for user %s", revoked, user_id)
        return revoked

    @retry(OperationalError, tries=3)
    def _revoke_user(self, user_id: str) -> int:
        try:
            revoked = self.store.revoke_user(user_id, self.clock())
            self.store.commit()
        except SQLAlchemyError:
            self.store.rollback()
            raise
        return revoked

    def chain(self, value: str) -> List[RefreshToken]:
        """The token and every successor reachable through replaced_by."""
        token = self.store.find_by_value(value)
        if token is None:
            raise TokenNotFound("Invalid refresh token")
        out = [token]
        seen = {token.id}
        while token.replaced_by and token.replaced_by not in seen:
            token = self.store.get(token.replaced_by)
            if token is None:
                break
            seen.add(token.id)
            out.append(token)
        return out
