# schemas/common.py

import re
from pydantic import BaseModel, ConfigDict, ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from app.errors import ValidationError

_LOOSE_HHMM = re.compile(r'^([01]?\d|2[0-3]):([0-5]\d)$')


class CamelModel(BaseModel):
    """Request bodies arrive camelCased; fields are snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra='ignore',
    )


def normalize_hhmm(value):
    """Accepts 'H:MM' or 'HH:MM' and returns zero-padded 'HH:MM'."""
    match = _LOOSE_HHMM.match(value or '')
    if not match:
        raise ValueError('must be in HH:MM format (24-hour)')
    return f"{int(match.group(1)):02d}:{match.group(2)}"


def load(schema, payload):
    """Validate a JSON payload against a schema, raising a 400 on failure."""
    if payload is None:
        raise ValidationError('Request body must be valid JSON')
    try:
        return schema.model_validate(payload)
    except PydanticValidationError as e:
        errors = [
            {
                'field': '.'.join(str(part) for part in err['loc']),
                'message': err['msg'],
            }
            for err in e.errors()
        ]
        raise ValidationError('Validation failed', errors=errors)
