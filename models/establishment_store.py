"""
Establishment store used by the ranking engine.

Reads: ids for a recompute batch, one locked row, search candidates, a partner's listing.
Writes: the cached ranking fields only.
"""
from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from models.establishment import Establishment, EstablishmentStatus


class EstablishmentStore:
    def __init__(self, session: Session):
        self.session = session

    def ids_for_refresh(self, active: Optional[bool] = None) -> List[str]:
        """
        active=True: only status 'active'; active=False: everything else; None: all.
        """
        query = self.session.query(Establishment.id)
        if active is True:
            query = query.filter(Establishment.status == EstablishmentStatus.ACTIVE.value)
        elif active is False:
            query = query.filter(Establishment.status != EstablishmentStatus.ACTIVE.value)
        return [row[0] for row in query.order_by(Establishment.id).all()]

    def get(self, establishment_id: str) -> Optional[Establishment]:
        return self.session.get(Establishment, establishment_id)

    def get_for_update(self, establishment_id: str) -> Optional[Establishment]:
        """Fresh copy of the row under a row lock (no-op lock on SQLite)."""
        return (
            self.session.query(Establishment)
            .filter(Establishment.id == establishment_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def write_rank(self, establishment: Establishment, quality_score: float,
                   subscription_score: float, computed_rank: float, now: datetime) -> None:
        establishment.quality_score = quality_score
        establishment.subscription_score = subscription_score
        establishment.computed_rank = computed_rank
        establishment.rank_updated_at = now
        self.session.flush()

    def candidates(
        self,
        bbox: Tuple[float, float, float, float],
        min_rating: Optional[float] = None,
        price_ranges: Optional[Iterable[str]] = None,
        statuses: Iterable[str] = (EstablishmentStatus.ACTIVE.value,),
    ) -> List[Establishment]:
        """
        Coarse SQL prefilter: bounding box, status, rating and price.
        A box with min_lon > max_lon crosses the antimeridian and matches both sides.
        """
        min_lat, max_lat, min_lon, max_lon = bbox
        query = (
            self.session.query(Establishment)
            .filter(Establishment.status.in_(list(statuses)))
            .filter(Establishment.latitude >= min_lat, Establishment.latitude <= max_lat)
        )
        if min_lon <= max_lon:
            query = query.filter(Establishment.longitude >= min_lon, Establishment.longitude <= max_lon)
        else:
            query = query.filter(or_(Establishment.longitude >= min_lon, Establishment.longitude <= max_lon))
        if min_rating is not None:
            query = query.filter(Establishment.average_rating >= min_rating)
        if price_ranges:
            query = query.filter(Establishment.price_range.in_(list(price_ranges)))
        return query.all()

    def by_partner(self, partner_id: str, status: Optional[str] = None,
                   page: int = 1, limit: int = 20) -> Tuple[List[Establishment], int]:
        """One page of a partner's establishments, newest first, plus the total."""
        query = self.session.query(Establishment).filter(Establishment.partner_id == partner_id)
        if status:
            query = query.filter(Establishment.status == status)
        total = query.count()
        rows = (
            query.order_by(Establishment.created_at.desc(), Establishment.id)
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return rows, total

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
