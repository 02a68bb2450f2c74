from enum import Enum

from sqlalchemy import (
    Column,
    String,
    Integer,
    Float,
    Text,
    JSON,
    DateTime,
    ForeignKey,
    CheckConstraint,
    Index,
)
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base


class SubscriptionTier(str, Enum):
    FREE = "free"
    BASIC = "basic"
    STANDARD = "standard"
    PREMIUM = "premium"


class EstablishmentStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    ACTIVE = "active"
    SUSPENDED = "suspended"
    ARCHIVED = "archived"


PRICE_RANGES = ("$", "$$", "$$$")


class Establishment(BaseModel, Base):
    __tablename__ = "establishments"

    partner_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    city = Column(String(50), nullable=False, index=True)
    address = Column(String(500), nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    cuisines = Column(JSON, nullable=False, default=list)
    price_range = Column(String(3), nullable=True)

    # Plain strings rather than SA enums: values written by other tools are read back
    # as-is and rejected by the score calculator instead of failing at load time.
    status = Column(String(20), nullable=False, default=EstablishmentStatus.DRAFT.value, index=True)
    subscription_tier = Column(String(20), nullable=False, default=SubscriptionTier.FREE.value, index=True)

    # Quality signals, maintained by review writes
    average_rating = Column(Float, nullable=False, default=0.0)
    review_count = Column(Integer, nullable=False, default=0)

    # Ranking cache, written only by the rank cache updater
    quality_score = Column(Float, nullable=False, default=0.0)
    subscription_score = Column(Float, nullable=False, default=0.0)
    computed_rank = Column(Float, nullable=False, default=0.0)
    rank_updated_at = Column(DateTime(timezone=True), nullable=True)

    partner = relationship("User", back_populates="establishments")
    reviews = relationship("Review", back_populates="establishment", passive_deletes=True)

    __table_args__ = (
        CheckConstraint("review_count >= 0", name="ck_establishments_review_count_nonnegative"),
        CheckConstraint("average_rating >= 0 AND average_rating <= 5", name="ck_establishments_rating_range"),
        CheckConstraint("latitude >= -90 AND latitude <= 90", name="ck_establishments_latitude"),
        CheckConstraint("longitude >= -180 AND longitude <= 180", name="ck_establishments_longitude"),
        Index("ix_establishments_lat_lon", "latitude", "longitude"),
        Index("ix_establishments_computed_rank", "computed_rank"),
    )
