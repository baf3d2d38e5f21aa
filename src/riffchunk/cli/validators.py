import json


def validate_positive_integer(type_: object, value: int) -> None:
    if value <= 0:
        raise ValueError("Value must be a positive integer")


def validate_positive_float(type_: object, value: float | None) -> None:
    if value is None:
        return

    if value <= 0.0:
        raise ValueError("Value must be greater than 0")


def validate_json_object(type_: object, value: str | None) -> None:
    """Validate that value is a JSON object literal."""
    if not value:
        return

    try:
        parsed = json.loads(value)
    except json.JSONDecodeError as e:
        raise ValueError(f"Metadata must be valid JSON: {e.msg}") from e

    if not isinstance(parsed, dict):
        raise ValueError("Metadata must be a JSON object")
