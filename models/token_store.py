"""
Token store: every refresh-token read/write goes through here.

The session is injected by the caller; the store never commits on its own except
through commit(), so a guard operation is a single transaction.
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from models.refresh_token import RefreshToken


class TokenStore:
    def __init__(self, session: Session):
        self.session = session

    def find_by_value(self, value: str, lock: bool = False) -> Optional[RefreshToken]:
        """Row lookup by token value; lock=True takes a row lock where the backend supports it."""
        query = self.session.query(RefreshToken).filter(RefreshToken.token == value)
        if lock:
            query = query.with_for_update()
        return query.first()

    def get(self, token_id: str) -> Optional[RefreshToken]:
        return self.session.get(RefreshToken, token_id)

    def add(self, token: RefreshToken) -> RefreshToken:
        self.session.add(token)
        self.session.flush()
        return token

    def consume(self, token_id: str, now: datetime) -> bool:
        """Compare-and-swap on used_at: True only for the caller that flipped it from NULL."""
        updated = (
            self.session.query(RefreshToken)
            .filter(RefreshToken.id == token_id, RefreshToken.used_at.is_(None))
            .update({RefreshToken.used_at: now}, synchronize_session="fetch")
        )
        return updated == 1

    def link(self, token: RefreshToken, successor_id: str) -> None:
        token.replaced_by = successor_id
        self.session.flush()

    def revoke_user(self, user_id: str, now: datetime) -> int:
        """Bulk-set used_at on every live token of the user; already used tokens are untouched."""
        return (
            self.session.query(RefreshToken)
            .filter(RefreshToken.user_id == user_id, RefreshToken.used_at.is_(None))
            .update({RefreshToken.used_at: now}, synchronize_session="fetch")
        )

    def for_user(self, user_id: str) -> List[RefreshToken]:
        return (
            self.session.query(RefreshToken)
            .filter(RefreshToken.user_id == user_id)
            .order_by(RefreshToken.created_at)
            .all()
        )

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
