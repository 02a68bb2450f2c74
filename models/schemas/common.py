from marshmallow import ValidationError, fields


def validate_latitude(value) -> None:
    if value is None or not -90.0 <= value <= 90.0:
        raise ValidationError("Latitude must be between -90 and 90.")


def validate_longitude(value) -> None:
    if value is None or not -180.0 <= value <= 180.0:
        raise ValidationError("Longitude must be between -180 and 180.")


def normalize_str_list(values):
    """Trim, lowercase and dedupe while keeping order."""
    seen = []
    for v in values or []:
        v = v.strip().lower()
        if v and v not in seen:
            seen.append(v)
    return seen


class CommaSeparated(fields.Field):
    """Query-string list: "a,b, c" -> ["a", "b", "c"]; lists pass through."""

    def _deserialize(self, value, attr, data, **kwargs):
        if isinstance(value, (list, tuple)):
            items = value
        elif isinstance(value, str):
            items = value.split(",")
        else:
            raise ValidationError("Expected a comma-separated string.")
        return [i.strip() for i in items if isinstance(i, str) and i.strip()]

    def _serialize(self, value, attr, obj, **kwargs):
        if value is None:
            return None
        return ",".join(value)
