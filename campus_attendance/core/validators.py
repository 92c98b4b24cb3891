"""
Request validation helpers
"""
from typing import Any, Optional, Type, TypeVar
import pydantic

from .exceptions import ValidationError, raise_validation_error

ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)

def parse_body(schema: Type[ModelT], data: Any) -> ModelT:
    """
    Validate a JSON body against a schema, raising our ValidationError
    with one entry per offending field
    """
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")

    try:
        return schema.model_validate(data)
    except pydantic.ValidationError as e:
        errors = [
            {"field": ".".join(str(part) for part in err["loc"]) or "body", "message": err["msg"]}
            for err in e.errors()
        ]
        raise ValidationError("Invalid request data", errors=errors) from e

def parse_optional_positive_int(value: Optional[str], field: str) -> Optional[int]:
    """Parse an optional query parameter that must be a positive integer"""
    if value is None or value == "":
        return None
    try:
        number = int(value)
    except ValueError:
        raise_validation_error(f"{field} must be an integer", field, value)
    if number < 1:
        raise_validation_error(f"{field} must be positive", field, value)
    return number
