"""Field checks shared by the model ``@validates`` hooks."""

from backend.errors import ValidationError

SOURCE_TEXT_MIN_LENGTH = 1000
SOURCE_TEXT_MAX_LENGTH = 10000


def require_text(field: str, value: str | None, max_length: int | None = None) -> str:
    if value is None:
        raise ValidationError(field, "required")
    if not isinstance(value, str):
        raise ValidationError(field, "type", f"{field} must be a string")
    if max_length is not None and len(value) > max_length:
        raise ValidationError(
            field, "max_length", f"{field} must be at most {max_length} characters"
        )
    return value


def require_count(field: str, value: int | None, nullable: bool = False) -> int | None:
    if value is None:
        if nullable:
            return None
        raise ValidationError(field, "required")
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(field, "type", f"{field} must be an integer")
    if value < 0:
        raise ValidationError(field, "non_negative", f"{field} must not be negative")
    return value


def require_source_text_length(field: str, value: int | None) -> int:
    value = require_count(field, value)
    if not SOURCE_TEXT_MIN_LENGTH <= value <= SOURCE_TEXT_MAX_LENGTH:
        raise ValidationError(
            field,
            "range",
            f"{field} must be between {SOURCE_TEXT_MIN_LENGTH} and {SOURCE_TEXT_MAX_LENGTH}",
        )
    return value
