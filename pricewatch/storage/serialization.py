"""JSON helpers shared by the stores."""

from datetime import datetime
from decimal import Decimal
from typing import Any


def json_default(obj: Any) -> str:
    """
    JSON serializer that handles Decimal and datetime values.

    Decimals are written as strings to preserve precision.

    Args:
        obj: Object to serialize.

    Returns:
        str: String representation for JSON.

    Raises:
        TypeError: If object type is not serializable.
    """
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, datetime):
        return obj.isoformat()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")
