"""
Reviews blueprint.

Writing or deleting a review refreshes the establishment's average_rating and
review_count right away. The ranking cache is left alone: the new numbers reach
search ordering on the next rank refresh cycle.
"""
from __future__ import annotations

from flask import Blueprint, request, jsonify, abort, g
from sqlalchemy import func

from models import storage
from models.establishment import Establishment
from models.review import Review
from models.schemas.review import ReviewCreateSchema, ReviewOutSchema
from utils.decorators import jwt_required
from api.utils.pagination import parse_pagination

bp = Blueprint("reviews", __name__)

review_create_schema = ReviewCreateSchema()
review_out_schema = ReviewOutSchema()
reviews_out_schema = ReviewOutSchema(many=True)


def refresh_review_stats(session, establishment: Establishment) -> None:
    """Recompute average_rating / review_count from visible reviews (caller commits)."""
    session.flush()
    count, avg = (
        session.query(func.count(Review.id), func.avg(Review.rating))
        .filter(Review.establishment_id == establishment.id, Review.deleted_at.is_(None))
        .one()
    )
    establishment.review_count = int(count or 0)
    establishment.average_rating = round(float(avg), 2) if avg is not None else 0.0


def find_live_review(session, user_id: str, establishment_id: str):
    return (
        session.query(Review)
        .filter(
            Review.user_id == user_id,
            Review.establishment_id == establishment_id,
            Review.deleted_at.is_(None),
        )
        .first()
    )


@bp.post("/establishments/<establishment_id>/reviews")
@jwt_required()
def create_review(establishment_id: str):
    """
    Review an establishment
    ---
    tags:
      - Reviews
    security:
      - Bearer: []
    parameters:
      - { in: path, name: establishment_id, type: string, required: true }
      - in: body
        name: body
        schema:
          type: object
          properties:
            rating: { type: integer, minimum: 1, maximum: 5 }
            content: { type: string }
    responses:
      201:
        description: Created
      404:
        description: Establishment not found
      409:
        description: The caller already has a live review for this establishment
    """
    session = storage.get_session()
    est = storage.get(Establishment, establishment_id)
    if not est:
        abort(404)

    data = review_create_schema.load(request.get_json(silent=True) or {})
    if find_live_review(session, g.current_user.id, est.id):
        abort(409, description="You have already reviewed this establishment")

    review = Review(user_id=g.current_user.id, establishment_id=est.id, **data)
    storage.new(review)
    refresh_review_stats(session, est)
    storage.save()
    return jsonify({"data": review_out_schema.dump(review)}), 201


@bp.get("/establishments/<establishment_id>/reviews")
def list_reviews(establishment_id: str):
    """
    List reviews of an establishment, newest first
    ---
    tags:
      - Reviews
    parameters:
      - { in: path, name: establishment_id, type: string, required: true }
      - { in: query, name: page, type: integer, default: 1 }
      - { in: query, name: limit, type: integer, default: 20 }
    responses:
      200:
        description: Page of reviews
    """
    session = storage.get_session()
    if not storage.get(Establishment, establishment_id):
        abort(404)
    page, limit = parse_pagination()

    query = session.query(Review).filter(
        Review.establishment_id == establishment_id, Review.deleted_at.is_(None)
    )
    total = query.count()
    rows = (
        query.order_by(Review.created_at.desc(), Review.id)
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return jsonify({"data": reviews_out_schema.dump(rows), "meta": {"page": page, "limit": limit, "total": total}})


@bp.delete("/reviews/<review_id>")
@jwt_required()
def delete_review(review_id: str):
    """
    Soft-delete a review (author or admin)
    ---
    tags:
      - Reviews
    security:
      - Bearer: []
    parameters:
      - { in: path, name: review_id, type: string, required: true }
    responses:
      204:
        description: Deleted
      403:
        description: Not the author
      404:
        description: Not found
    """
    session = storage.get_session()
    review = storage.get(Review, review_id)
    if not review or review.is_deleted:
        abort(404)
    if review.user_id != g.current_user.id and g.current_user_role != "admin":
        abort(403, description="Only the author can delete this review")

    review.delete()
    refresh_review_stats(session, review.establishment)
    storage.save()
    return ("", 204)
