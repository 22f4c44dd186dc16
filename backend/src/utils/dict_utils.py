from decimal import Decimal
from typing import Any


def decimals_to_float(value: Any) -> Any:
    """
    Recursively convert Decimal values to float for JSON responses.

    Dicts, lists and tuples are rebuilt; every other value is returned as is.
    Returns a NEW structure, the input is not modified.
    """
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, dict):
        return {key: decimals_to_float(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [decimals_to_float(item) for item in value]
    return value
