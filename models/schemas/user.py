from marshmallow import Schema, fields, pre_load, validates, validate, ValidationError


def _norm_email(v):
    return v.strip().lower() if isinstance(v, str) else v


class UserCreateSchema(Schema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=100))
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True)
    # admins are never self-registered
    role = fields.String(load_default="user", validate=validate.OneOf(["user", "partner"]))

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data["email"] = _norm_email(data["email"])
        return data

    @validates("password")
    def validate_password(self, value, **kwargs):
        if len(value) < 8:
            raise ValidationError("Password must be at least 8 characters long.")


class UserLoginSchema(Schema):
    email = fields.String(required=True)
    password = fields.String(required=True, load_only=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data["email"] = _norm_email(data["email"])
        return data


class UserOutSchema(Schema):
    id = fields.String()
    name = fields.String()
    email = fields.String()
    role = fields.Method("get_role")
    created_at = fields.DateTime(allow_none=True)
    last_login_at = fields.DateTime(allow_none=True)

    def get_role(self, obj):
        return getattr(obj.role, "value", obj.role)
