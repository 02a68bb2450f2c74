"""
RefreshToken model: one row per opaque refresh token.
Fields:
- token (unique, fixed-length random value)
- user_id (String(36)) - FK to users.id
- expires_at - fixed lifetime from issuance
- used_at - NULL while the token is live; set when it is rotated, invalidated or revoked
- replaced_by - id of the token issued in exchange for this one (rotation chain)
"""
from enum import Enum

from sqlalchemy import Column, String, DateTime, ForeignKey, Index

from models.base_model import BaseModel, Base
from utils.timeutils import as_utc


class TokenState(str, Enum):
    ISSUED_LIVE = "issued_live"
    CONSUMED = "consumed"
    REVOKED = "revoked"


class RefreshToken(BaseModel, Base):
    __tablename__ = "refresh_tokens"

    token = Column(String(128), nullable=False, unique=True, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used_at = Column(DateTime(timezone=True), nullable=True)
    replaced_by = Column(String(36), ForeignKey("refresh_tokens.id"), nullable=True)

    __table_args__ = (
        Index("ix_refresh_tokens_used_at", "used_at"),
    )

    @property
    def state(self) -> TokenState:
        if self.used_at is None:
            return TokenState.ISSUED_LIVE
        if self.replaced_by is not None:
            return TokenState.CONSUMED
        return TokenState.REVOKED

    def is_expired(self, now) -> bool:
        return as_utc(self.expires_at) <= now

    def __repr__(self):
        return f"<RefreshToken user_id={self.user_id} state={self.state.value}>"
