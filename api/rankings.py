from flask import Blueprint, request, jsonify, abort

from models import storage
from models.establishment_store import EstablishmentStore
from services.rank_updater import RankCacheUpdater
from utils.decorators import roles_required

bp = Blueprint("rankings", __name__)

SCOPES = {"all": None, "active": True, "idle": False}


@bp.post("/rankings/refresh")
@roles_required(["admin"])
def refresh_rankings():
    """
    Run one rank cache refresh cycle now (admin)
    ---
    tags:
      - Rankings
    security:
      - Bearer: []
    parameters:
      - { in: query, name: scope, type: string, enum: [all, active, idle], default: all }
    responses:
      200:
        description: Refresh summary
    """
    scope = request.args.get("scope", "all")
    if scope not in SCOPES:
        abort(400, description="scope must be one of: all, active, idle")
    summary = RankCacheUpdater(EstablishmentStore(storage.get_session())).run(active=SCOPES[scope])
    return jsonify({"data": summary.as_dict()})
