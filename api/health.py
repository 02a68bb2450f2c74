from flask import Blueprint
from sqlalchemy.exc import SQLAlchemyError

from models import storage
from utils.logger import get_logger

bp = Blueprint("health", __name__)
logger = get_logger(__name__)


@bp.get("/health")
def health():
    """
    Health check
    ---
    tags:
      - Health
    responses:
      200:
        description: API and database are up
      503:
        description: Database unreachable
    """
    try:
        storage.ping()
    except SQLAlchemyError as exc:
        logger.error("Database health check failed: %s", exc)
        return {"status": "unhealthy", "version": "1.0.0", "checks": {"database": "unhealthy"}}, 503
    return {"status": "ok", "version": "1.0.0", "checks": {"database": "healthy"}}, 200
