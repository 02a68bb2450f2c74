from sqlalchemy import Column, String, Integer, Text, ForeignKey, CheckConstraint, Index, text
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base, SoftDeleteMixin


class Review(SoftDeleteMixin, BaseModel, Base):
    __tablename__ = "reviews"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    establishment_id = Column(
        String(36), ForeignKey("establishments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    rating = Column(Integer, nullable=False)
    content = Column(Text, nullable=True)

    establishment = relationship("Establishment", back_populates="reviews")
    user = relationship("User")

    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_reviews_rating_range"),
        # one live review per user and establishment; soft-deleted rows do not count
        Index(
            "uq_reviews_user_establishment_live",
            "user_id",
            "establishment_id",
            unique=True,
            sqlite_where=text("deleted_at IS NULL"),
            postgresql_where=text("deleted_at IS NULL"),
        ),
    )
