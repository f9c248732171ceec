"""Infer destination attribute types from sampled source values."""

import numbers
from typing import Any

from ..models.schema import AttributeType


def map_type(value: Any) -> AttributeType:
    """
    Map a sampled source value to a destination attribute type.

    Lists, dicts and nulls map to STRING; they are written as JSON text
    or left out by the transformer. Never raises.
    """
    if isinstance(value, str):
        return AttributeType.STRING
    elif isinstance(value, bool):
        return AttributeType.BOOLEAN
    elif isinstance(value, numbers.Integral):
        return AttributeType.INTEGER
    elif isinstance(value, numbers.Real):
        try:
            if float(value).is_integer():
                return AttributeType.INTEGER
        except (TypeError, ValueError, OverflowError):
            pass
        return AttributeType.DOUBLE
    else:
        return AttributeType.STRING
