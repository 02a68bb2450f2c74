from marshmallow import Schema, fields, validate


class ReviewCreateSchema(Schema):
    rating = fields.Integer(required=True, validate=validate.Range(min=1, max=5))
    content = fields.String(allow_none=True, validate=validate.Length(max=2000))


class ReviewOutSchema(Schema):
    id = fields.String()
    user_id = fields.String()
    establishment_id = fields.String()
    rating = fields.Integer()
    content = fields.String(allow_none=True)
    created_at = fields.DateTime(allow_none=True)
