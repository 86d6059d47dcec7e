from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, getcontext
from typing import Any, Iterable, Union


# ============================================================================
# MONEY ROUNDING
# ============================================================================

def set_money_rounding_context() -> None:
    """
    Set global Decimal context for donation totals.
    Uses ROUND_HALF_UP (0.5 always rounds up).
    Call this once at application startup.
    """
    ctx = getcontext()
    ctx.rounding = ROUND_HALF_UP
    ctx.prec = 28  # Support up to 28 significant digits


# Initialize rounding on module load
set_money_rounding_context()


# ============================================================================
# DECIMAL COERCION HELPERS
# ============================================================================

def to_decimal(value: Any, default: Decimal = Decimal(0)) -> Decimal:
    """
    Safely coerce any value to a Decimal, preserving precision for sums.

    Stored amounts may come back from SQLite or JSON as floats; going
    through str() keeps 0.1 + 0.2 == 0.3 when the values are summed.

    Args:
        value: Any value to convert. Supports int, float, str, Decimal, None.
        default: Decimal fallback if conversion fails. Defaults to Decimal(0).

    Returns:
        Decimal: Precise numeric value, or default if conversion fails.

    Examples:
        >>> to_decimal('50.25')
        Decimal('50.25')
        >>> to_decimal(1.5) == Decimal('1.5')
        True
        >>> to_decimal('invalid') == Decimal(0)
        True
        >>> to_decimal(None, Decimal('-1')) == Decimal('-1')
        True
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        if isinstance(value, Decimal):
            return value
        result = Decimal(str(value).strip())
    except (InvalidOperation, TypeError, ValueError):
        return default
    if not result.is_finite():
        return default
    return result


def parse_decimal(value: Any) -> Decimal:
    """
    Strict variant of to_decimal for user input.

    Raises:
        ValueError: value is not a finite number
    """
    if isinstance(value, bool) or value is None:
        raise ValueError(f"not a number: {value!r}")
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"not a number: {value!r}")
    if not result.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    return result


def sum_decimal(values: Iterable[Any]) -> Decimal:
    """Exact sum of a sequence of numeric values."""
    total = Decimal(0)
    for value in values:
        total += to_decimal(value)
    return total


def to_json_number(value: Decimal) -> Union[int, float]:
    """Render a Decimal as a JSON-friendly number (int when integral)."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)
