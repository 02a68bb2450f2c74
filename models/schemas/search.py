from marshmallow import Schema, fields, validate, validates, validates_schema, ValidationError, EXCLUDE

from models.establishment import PRICE_RANGES
from models.schemas.common import CommaSeparated, validate_latitude, validate_longitude

SORTS = ["default", "by_rating", "by_distance"]
MAP_DEFAULT_LIMIT = 100
MAP_MAX_LIMIT = 500


class LocationQuerySchema(Schema):
    class Meta:
        unknown = EXCLUDE

    latitude = fields.Float(required=True)
    longitude = fields.Float(required=True)
    # kilometres; the upper bound comes from config and is checked in the view
    radius = fields.Float(load_default=None, validate=validate.Range(min=0, min_inclusive=False))
    sort = fields.String(load_default="default", validate=validate.OneOf(SORTS))
    velocity = fields.Float(load_default=None, validate=validate.Range(min=0))
    prev_latitude = fields.Float(load_default=None)
    prev_longitude = fields.Float(load_default=None)
    elapsed_seconds = fields.Float(load_default=None, validate=validate.Range(min=0, min_inclusive=False))

    @validates("latitude")
    def _validate_latitude(self, value, **kwargs):
        validate_latitude(value)

    @validates("longitude")
    def _validate_longitude(self, value, **kwargs):
        validate_longitude(value)

    @validates_schema
    def _validate_gps_sample(self, data, **kwargs):
        sample = [data.get("prev_latitude"), data.get("prev_longitude"), data.get("elapsed_seconds")]
        if any(v is not None for v in sample) and not all(v is not None for v in sample):
            raise ValidationError(
                "prev_latitude, prev_longitude and elapsed_seconds must be given together.",
                "elapsed_seconds",
            )
        if data.get("prev_latitude") is not None:
            validate_latitude(data["prev_latitude"])
            validate_longitude(data["prev_longitude"])


class ResultFilterSchema(Schema):
    """Filters shared by the radius search and the map view."""

    class Meta:
        unknown = EXCLUDE

    min_rating = fields.Float(load_default=None, validate=validate.Range(min=1, max=5))
    price_range = CommaSeparated(load_default=None)
    cuisines = CommaSeparated(load_default=None)

    @validates("price_range")
    def _validate_price_range(self, value, **kwargs):
        bad = [p for p in (value or []) if p not in PRICE_RANGES]
        if bad:
            raise ValidationError(f"Unsupported price range: {', '.join(bad)}")


class SearchQuerySchema(LocationQuerySchema, ResultFilterSchema):
    pass


class MapQuerySchema(ResultFilterSchema):
    # viewport corners; min_lon > max_lon means the viewport crosses the antimeridian
    min_lat = fields.Float(required=True)
    max_lat = fields.Float(required=True)
    min_lon = fields.Float(required=True)
    max_lon = fields.Float(required=True)
    limit = fields.Integer(load_default=MAP_DEFAULT_LIMIT, validate=validate.Range(min=1, max=MAP_MAX_LIMIT))

    @validates_schema
    def _validate_bounds(self, data, **kwargs):
        errors = {}
        for key in ("min_lat", "max_lat"):
            if not -90.0 <= data[key] <= 90.0:
                errors[key] = ["Latitude must be between -90 and 90."]
        for key in ("min_lon", "max_lon"):
            if not -180.0 <= data[key] <= 180.0:
                errors[key] = ["Longitude must be between -180 and 180."]
        if not errors and data["min_lat"] > data["max_lat"]:
            errors["min_lat"] = ["min_lat must not exceed max_lat."]
        if errors:
            raise ValidationError(errors)

