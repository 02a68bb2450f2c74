"""
Search blueprint:
- GET /search/establishments
- GET /search/map

Ranking is done by services.search: distance factor per request, quality and
subscription factors from the rank cache, weights chosen from sort/velocity.
"""
from __future__ import annotations

from flask import Blueprint, request, jsonify, abort, current_app

from models import storage
from models.establishment_store import EstablishmentStore
from models.schemas.establishment import EstablishmentOutSchema, SearchResultOutSchema
from models.schemas.search import MapQuerySchema, SearchQuerySchema
from services import search as search_service
from services.geo import velocity_mps
from services.weights import SearchContext, SortPreference
from api.utils.pagination import parse_pagination

bp = Blueprint("search", __name__)

search_query_schema = SearchQuerySchema()
results_out_schema = SearchResultOutSchema(many=True)
map_query_schema = MapQuerySchema()
establishments_out_schema = EstablishmentOutSchema(many=True)


def search_context_from(data: dict) -> SearchContext:
    """Build a SearchContext from a loaded LocationQuerySchema payload."""
    radius_km = data.get("radius") or current_app.config["DEFAULT_SEARCH_RADIUS_KM"]
    if radius_km > current_app.config["MAX_SEARCH_RADIUS_KM"]:
        abort(400, description=f"radius must not exceed {current_app.config['MAX_SEARCH_RADIUS_KM']:g} km")

    velocity = data.get("velocity")
    if velocity is None and data.get("prev_latitude") is not None:
        velocity = velocity_mps(
            data["prev_latitude"], data["prev_longitude"],
            data["latitude"], data["longitude"],
            data["elapsed_seconds"],
        )

    return SearchContext(
        latitude=data["latitude"],
        longitude=data["longitude"],
        radius_m=radius_km * 1000.0,
        sort=SortPreference(data.get("sort") or "default"),
        velocity_mps=velocity,
    )


@bp.get("/search/establishments")
def search_establishments():
    """
    Ranked establishment search around a point
    ---
    tags:
      - Search
    parameters:
      - { in: query, name: latitude, type: number, required: true }
      - { in: query, name: longitude, type: number, required: true }
      - { in: query, name: radius, type: number, description: "km, default 10" }
      - { in: query, name: sort, type: string, enum: [default, by_rating, by_distance] }
      - { in: query, name: velocity, type: number, description: "m/s" }
      - { in: query, name: prev_latitude, type: number }
      - { in: query, name: prev_longitude, type: number }
      - { in: query, name: elapsed_seconds, type: number }
      - { in: query, name: min_rating, type: number }
      - { in: query, name: price_range, type: string, description: "comma-separated, e.g. $,$$" }
      - { in: query, name: cuisines, type: string, description: "comma-separated" }
      - { in: query, name: page, type: integer, default: 1 }
      - { in: query, name: limit, type: integer, default: 20 }
    responses:
      200:
        description: Ranked page of establishments
      422:
        description: Validation error
    """
    data = search_query_schema.load(request.args.to_dict())
    page, limit = parse_pagination()
    context = search_context_from(data)

    result = search_service.search(
        EstablishmentStore(storage.get_session()),
        context,
        page=page,
        limit=limit,
        min_rating=data.get("min_rating"),
        price_ranges=data.get("price_range"),
        cuisines=data.get("cuisines"),
        velocity_threshold=current_app.config["HIGH_VELOCITY_THRESHOLD_MPS"],
    )

    return jsonify(
        {
            "data": results_out_schema.dump(result.items),
            "meta": {
                "page": result.page,
                "limit": result.limit,
                "total": result.total,
                "sort": context.sort.value,
                "radius_m": context.radius_m,
                "weights": result.weights.as_dict(),
            },
        }
    )


@bp.get("/search/map")
def search_map():
    """
    Establishments inside a map viewport, best static rank first
    ---
    tags:
      - Search
    parameters:
      - { in: query, name: min_lat, type: number, required: true }
      - { in: query, name: max_lat, type: number, required: true }
      - { in: query, name: min_lon, type: number, required: true, description: "greater than max_lon across the antimeridian" }
      - { in: query, name: max_lon, type: number, required: true }
      - { in: query, name: min_rating, type: number }
      - { in: query, name: price_range, type: string, description: "comma-separated, e.g. $,$$" }
      - { in: query, name: cuisines, type: string, description: "comma-separated" }
      - { in: query, name: limit, type: integer, default: 100, maximum: 500 }
    responses:
      200:
        description: Establishments in the viewport
      422:
        description: Validation error
    """
    data = map_query_schema.load(request.args.to_dict())
    bbox = (data["min_lat"], data["max_lat"], data["min_lon"], data["max_lon"])

    result = search_service.search_bounds(
        EstablishmentStore(storage.get_session()),
        bbox,
        limit=data["limit"],
        min_rating=data.get("min_rating"),
        price_ranges=data.get("price_range"),
        cuisines=data.get("cuisines"),
    )
    return jsonify(
        {
            "data": establishments_out_schema.dump(result.items),
            "meta": {"total": result.total, "limit": result.limit},
        }
    )
