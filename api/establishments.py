from __future__ import annotations

import math

from flask import Blueprint, request, jsonify, abort, g, current_app

from models import storage
from models.establishment import Establishment, EstablishmentStatus
from models.establishment_store import EstablishmentStore
from models.schemas.establishment import (
    EstablishmentCreateSchema,
    EstablishmentUpdateSchema,
    EstablishmentOutSchema,
    PartnerListQuerySchema,
)
from models.schemas.search import LocationQuerySchema
from services import search as search_service
from services.rank_updater import RankCacheUpdater
from utils.decorators import roles_required
from utils.logger import get_logger
from api.search import search_context_from
from api.utils.pagination import parse_pagination

bp = Blueprint("establishments", __name__)
logger = get_logger(__name__)

establishment_create_schema = EstablishmentCreateSchema()
establishment_update_schema = EstablishmentUpdateSchema()
establishment_out_schema = EstablishmentOutSchema()
location_query_schema = LocationQuerySchema()
partner_list_query_schema = PartnerListQuerySchema()
establishments_out_schema = EstablishmentOutSchema(many=True)

PARTNER_MAX_LIMIT = 50
SIMPLE_FIELDS = ["name", "description", "city", "address", "latitude", "longitude", "cuisines", "price_range"]


def get_or_404(establishment_id: str) -> Establishment:
    est = storage.get(Establishment, establishment_id)
    if not est:
        abort(404)
    return est


@bp.post("/establishments")
@roles_required(["partner", "admin"])
def create_establishment():
    """
    Create an establishment (starts as draft)
    ---
    tags:
      - Establishments
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            name: { type: string }
            description: { type: string }
            city: { type: string }
            address: { type: string }
            latitude: { type: number }
            longitude: { type: number }
            cuisines: { type: array, items: { type: string } }
            price_range: { type: string, enum: ["$", "$$", "$$$"] }
    responses:
      201:
        description: Created
      422:
        description: Validation error
    """
    data = establishment_create_schema.load(request.get_json(silent=True) or {})
    est = Establishment(partner_id=g.current_user.id, status=EstablishmentStatus.DRAFT.value, **data)
    storage.new(est)
    storage.save()

    # seed the rank cache so the new row does not sit at zero until the next cycle
    RankCacheUpdater(EstablishmentStore(storage.get_session())).refresh_one(est.id)
    return jsonify({"data": establishment_out_schema.dump(est)}), 201


@bp.get("/establishments/<establishment_id>")
def get_establishment(establishment_id: str):
    """
    Get a single establishment by id
    ---
    tags:
      - Establishments
    parameters:
      - { in: path, name: establishment_id, type: string, required: true }
    responses:
      200:
        description: Establishment found
      404:
        description: Not found
    """
    return jsonify({"data": establishment_out_schema.dump(get_or_404(establishment_id))})


@bp.patch("/establishments/<establishment_id>")
@roles_required(["partner", "admin"])
def update_establishment(establishment_id: str):
    """
    Update an establishment (partial)
    Partners may edit their own establishments and submit a draft for moderation
    (status "pending"); status changes otherwise and subscription tier changes are admin only.
    ---
    tags:
      - Establishments
    security:
      - Bearer: []
    parameters:
      - { in: path, name: establishment_id, type: string, required: true }
      - in: body
        name: body
        required: true
        schema:
          type: object
    responses:
      200:
        description: Updated
      403:
        description: Not the owner, or field reserved to admins
      404:
        description: Not found
    """
    est = get_or_404(establishment_id)
    is_admin = g.current_user_role == "admin"
    if not is_admin and est.partner_id != g.current_user.id:
        abort(403, description="Not the owner of this establishment")

    data = establishment_update_schema.load(request.get_json(silent=True) or {})

    if "subscription_tier" in data:
        if not is_admin:
            abort(403, description="Subscription tier can only be changed by an admin")
        est.subscription_tier = data["subscription_tier"]

    if "status" in data:
        submitting = est.status == EstablishmentStatus.DRAFT.value and data["status"] == EstablishmentStatus.PENDING.value
        if not is_admin and not submitting:
            abort(403, description="Only draft establishments can be submitted for moderation")
        est.status = data["status"]

    for field in SIMPLE_FIELDS:
        if field in data:
            setattr(est, field, data[field])

    storage.new(est)
    storage.save()
    logger.info("Establishment %s updated by %s", est.id, g.current_user.id)
    return jsonify({"data": establishment_out_schema.dump(est)})


@bp.get("/establishments/<establishment_id>/score")
def establishment_score(establishment_id: str):
    """
    Ranking transparency: per-factor breakdown for a caller position
    ---
    tags:
      - Establishments
    parameters:
      - { in: path, name: establishment_id, type: string, required: true }
      - { in: query, name: latitude, type: number, required: true }
      - { in: query, name: longitude, type: number, required: true }
      - { in: query, name: radius, type: number }
      - { in: query, name: sort, type: string, enum: [default, by_rating, by_distance] }
      - { in: query, name: velocity, type: number }
    responses:
      200:
        description: distance_score, quality_score, subscription_score, composite and weights
      404:
        description: Not found
    """
    est = get_or_404(establishment_id)
    data = location_query_schema.load(request.args.to_dict())
    context = search_context_from(data)
    breakdown = search_service.explain(est, context, current_app.config["HIGH_VELOCITY_THRESHOLD_MPS"])
    return jsonify({"data": breakdown})


@bp.get("/partner/establishments")
@roles_required(["partner", "admin"])
def list_partner_establishments():
    """
    The caller's own establishments, newest first
    ---
    tags:
      - Establishments
    security:
      - Bearer: []
    parameters:
      - { in: query, name: status, type: string, enum: [draft, pending, active, suspended, archived] }
      - { in: query, name: page, type: integer, default: 1 }
      - { in: query, name: limit, type: integer, default: 20, maximum: 50 }
    responses:
      200:
        description: Page of establishments
      422:
        description: Unknown status
    """
    data = partner_list_query_schema.load(request.args.to_dict())
    page, limit = parse_pagination(max_limit=PARTNER_MAX_LIMIT)

    rows, total = EstablishmentStore(storage.get_session()).by_partner(
        g.current_user.id, status=data.get("status"), page=page, limit=limit
    )
    return jsonify(
        {
            "data": establishments_out_schema.dump(rows),
            "meta": {"page": page, "limit": limit, "total": total, "pages": math.ceil(total / limit)},
        }
    )
