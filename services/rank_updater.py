"""
Rank cache updater.

Recomputes the location-independent ranking fields of establishments and writes
them back one row per transaction:
    quality_score, subscription_score, computed_rank (static rank), rank_updated_at

A failing row (unknown tier, store error after retries) is rolled back, logged and left for the
next cycle; the rest of the batch carries on. Readers only ever see committed values.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy.exc import OperationalError, SQLAlchemyError

from models.establishment_store import EstablishmentStore
from services.exceptions import ConfigurationError
from services.scoring import quality_factor, subscription_factor, static_rank
from services.weights import WeightSet, DEFAULT_WEIGHTS
from utils.logger import get_logger
from utils.retry import retry
from utils.timeutils import utcnow

logger = get_logger(__name__)


@dataclass
class RefreshSummary:
    scope: str
    started_at: datetime
    finished_at: Optional[datetime] = None
    updated: int = 0
    missing: int = 0
    failed: List[str] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return self.updated + self.missing + len(self.failed)

    def as_dict(self) -> dict:
        return {
            "scope": self.scope,
            "processed": self.processed,
            "updated": self.updated,
            "missing": self.missing,
            "failed": list(self.failed),
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }


class RankCacheUpdater:
    def __init__(self, store: EstablishmentStore, weights: WeightSet = DEFAULT_WEIGHTS,
                 clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.weights = weights
        self.clock = clock

    @retry(OperationalError, tries=3)
    def refresh_one(self, establishment_id: str) -> bool:
        """
        Recompute and commit one establishment. Returns False if the row is gone.
        Raises ConfigurationError / SQLAlchemyError after rolling back; transient
        OperationalErrors are retried first.
        """
        try:
            est = self.store.get_for_update(establishment_id)
            if est is None:
                self.store.rollback()
                return False
            q = quality_factor(est.average_rating, est.review_count)
            s = subscription_factor(est.subscription_tier)
            self.store.write_rank(est, q, s, static_rank(q, s, self.weights), self.clock())
            self.store.commit()
            return True
        except (ConfigurationError, SQLAlchemyError):
            self.store.rollback()
            raise

    def run(self, active: Optional[bool] = None) -> RefreshSummary:
        """One recompute cycle. active=True/False restricts to active/other establishments."""
        scope = {True: "active", False: "idle", None: "all"}[active]
        summary = RefreshSummary(scope=scope, started_at=self.clock())
        for establishment_id in self.store.ids_for_refresh(active):
            try:
                if self.refresh_one(establishment_id):
                    summary.updated += 1
                else:
                    summary.missing += 1
            except (ConfigurationError, SQLAlchemyError):
                logger.exception("Rank refresh failed for establishment %s", establishment_id)
                summary.failed.append(establishment_id)
        summary.finished_at = self.clock()
        logger.info(
            "Rank refresh (%s): %d updated, %d missing, %d failed",
            scope, summary.updated, summary.missing, len(summary.failed),
        )
        return summary
