"""
Validation functions for configuration values.

These validators normalize the loosely shaped values found in properties
documents, run configuration files and command-line arguments.
"""

import re
from typing import Any, Dict, List, Optional

from .exceptions import ValidationError

# Values such as "yes", "True", "1" and native booleans all enable a flag.
_TRUTHY_PATTERN = re.compile(r"^(true|yes|1)", re.IGNORECASE)


def validate_positive_integer(
    value: Any,
    min_value: int = 1,
    max_value: Optional[int] = None,
    field_name: str = "value"
) -> int:
    """
    Validate that a value is a positive integer.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated integer value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        int_value = int(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    if int_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and int_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    return int_value


def validate_positive_float(
    value: Any,
    min_value: float = 0.0,
    max_value: Optional[float] = None,
    field_name: str = "value"
) -> float:
    """
    Validate that a value is a positive float.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated float value

    Raises:
        ValidationError: If validation fails
    """
    try:
        float_value = float(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid number, got {value}",
            field_name=field_name,
            value=value
        )
    if float_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and float_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    return float_value


def validate_flag(value: Any) -> bool:
    """
    Interpret a loosely typed flag.

    Anything whose string form starts with ``true``, ``yes`` or ``1``
    (case-insensitive) is true; everything else, including a missing value,
    is false.
    """
    if value is None:
        return False
    return bool(_TRUTHY_PATTERN.match(str(value)))


def validate_string_list(value: Any, field_name: str = "value") -> List[str]:
    """
    Normalize a scalar-or-list value into a list of strings.

    Args:
        value: None, a single scalar or a list of scalars
        field_name: Name of the field being validated

    Returns:
        List of strings (empty for None)

    Raises:
        ValidationError: If the value or one of its items is a mapping or a list
    """
    if value is None:
        return []
    items = value if isinstance(value, list) else [value]
    result = []
    for item in items:
        if isinstance(item, (dict, list)):
            raise ValidationError(
                f"{field_name} must contain only scalar values, got {item!r}",
                field_name=field_name,
                value=value
            )
        result.append(str(item))
    return result


def validate_comma_list(value: Any, field_name: str = "value") -> Optional[List[str]]:
    """
    Parse a comma separated string (or a list) into a list of non-empty items.

    Returns None when the value is None so callers can distinguish
    "no restriction" from "empty restriction".
    """
    if value is None:
        return None
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return validate_string_list(value, field_name=field_name)


def validate_option_map(value: Any, field_name: str = "value") -> Dict[str, Dict[str, Any]]:
    """
    Validate a per-executable option map.

    Entries whose value is not a mapping are dropped, matching how the device
    runner treats them as "no options".
    """
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValidationError(
            f"{field_name} must be a mapping of executable name to options",
            field_name=field_name,
            value=value
        )
    return {str(name): dict(opts) for name, opts in value.items() if isinstance(opts, dict)}


def validate_pattern_list(value: Any, field_name: str = "value") -> List[str]:
    """
    Normalize a scalar-or-list value into a list of regular expressions.

    Raises:
        ValidationError: If an item is not a valid regular expression
    """
    patterns = validate_string_list(value, field_name=field_name)
    for pattern in patterns:
        try:
            re.compile(pattern)
        except re.error as e:
            raise ValidationError(
                f"{field_name} contains an invalid pattern {pattern!r}: {e}",
                field_name=field_name,
                value=value
            )
    return patterns
