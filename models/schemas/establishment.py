from marshmallow import Schema, fields, validate, validates, post_load, EXCLUDE

from models.establishment import PRICE_RANGES, SubscriptionTier, EstablishmentStatus
from models.schemas.common import validate_latitude, validate_longitude, normalize_str_list

TIERS = [t.value for t in SubscriptionTier]
STATUSES = [s.value for s in EstablishmentStatus]


class EstablishmentCreateSchema(Schema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=255))
    description = fields.String(allow_none=True)
    city = fields.String(required=True, validate=validate.Length(min=1, max=50))
    address = fields.String(required=True, validate=validate.Length(min=1, max=500))
    latitude = fields.Float(required=True)
    longitude = fields.Float(required=True)
    cuisines = fields.List(fields.String(), load_default=list, validate=validate.Length(max=3))
    price_range = fields.String(allow_none=True, validate=validate.OneOf(PRICE_RANGES))

    @validates("latitude")
    def _validate_latitude(self, value, **kwargs):
        validate_latitude(value)

    @validates("longitude")
    def _validate_longitude(self, value, **kwargs):
        validate_longitude(value)

    @post_load
    def _normalize_cuisines(self, data, **kwargs):
        if "cuisines" in data:
            data["cuisines"] = normalize_str_list(data["cuisines"])
        return data


class EstablishmentUpdateSchema(EstablishmentCreateSchema):
    # All optional on update; status and tier are checked against the caller's role in the view
    name = fields.String(validate=validate.Length(min=1, max=255))
    city = fields.String(validate=validate.Length(min=1, max=50))
    address = fields.String(validate=validate.Length(min=1, max=500))
    latitude = fields.Float()
    longitude = fields.Float()
    cuisines = fields.List(fields.String(), validate=validate.Length(max=3))
    status = fields.String(validate=validate.OneOf(STATUSES))
    subscription_tier = fields.String(validate=validate.OneOf(TIERS))


class EstablishmentOutSchema(Schema):
    id = fields.String()
    partner_id = fields.String()
    name = fields.String()
    description = fields.String(allow_none=True)
    city = fields.String()
    address = fields.String()
    latitude = fields.Float()
    longitude = fields.Float()
    cuisines = fields.List(fields.String())
    price_range = fields.String(allow_none=True)
    status = fields.String()
    subscription_tier = fields.String()
    average_rating = fields.Float()
    review_count = fields.Integer()
    created_at = fields.DateTime(allow_none=True)
    updated_at = fields.DateTime(allow_none=True)


class SearchResultOutSchema(Schema):
    """One search hit: establishment summary plus its per-request scores."""
    id = fields.Function(lambda r: r.establishment.id)
    name = fields.Function(lambda r: r.establishment.name)
    city = fields.Function(lambda r: r.establishment.city)
    address = fields.Function(lambda r: r.establishment.address)
    latitude = fields.Function(lambda r: r.establishment.latitude)
    longitude = fields.Function(lambda r: r.establishment.longitude)
    cuisines = fields.Function(lambda r: list(r.establishment.cuisines or []))
    price_range = fields.Function(lambda r: r.establishment.price_range)
    average_rating = fields.Function(lambda r: float(r.establishment.average_rating or 0.0))
    review_count = fields.Function(lambda r: int(r.establishment.review_count or 0))
    distance_m = fields.Function(lambda r: round(r.distance_m, 1))
    score = fields.Function(lambda r: round(r.breakdown.composite, 4))


class PartnerListQuerySchema(Schema):
    class Meta:
        unknown = EXCLUDE

    status = fields.String(load_default=None, validate=validate.OneOf(STATUSES))
