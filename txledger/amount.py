"""
amount.py - Exact Fixed-Point Monetary Amounts

Amounts are stored as a non-negative integer count of minor units
(1/10000 of the base unit). Floats never enter the picture, so there is
no rounding drift, and every arithmetic operation is checked against the
representable domain instead of silently growing or wrapping.

Text codec:
    Amount.parse("123.4567")  -> Amount(1234567)
    str(Amount(12300))        -> "1.23"

The codec is lossless: Amount.parse(str(a)) == a for every Amount a.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


# ============================================================================
# CONSTANTS
# ============================================================================

# Number of fractional digits carried by an Amount.
PRECISION = 4

# Minor units per base unit.
SCALE = 10 ** PRECISION

# Largest representable unit count (unsigned 64-bit domain).
MAX_UNITS = 2 ** 64 - 1

_DIGITS = frozenset("0123456789")

# Significant digits of the largest whole part that fits the domain.
_MAX_WHOLE_DIGITS = len(str(MAX_UNITS // SCALE))


# ============================================================================
# EXCEPTIONS
# ============================================================================

class ParseAmountError(ValueError):
    """Base exception for amount text that cannot be parsed."""
    pass


class InvalidNumber(ParseAmountError):
    """Raised when a part of the amount is not a plain run of ASCII digits."""
    pass


class TooLarge(ParseAmountError):
    """Raised when the parsed value does not fit the Amount domain."""

    def __init__(self, message: str = "number is too large"):
        super().__init__(message)


class MultipleDots(ParseAmountError):
    """Raised when the amount text contains more than one '.'."""

    def __init__(self, message: str = "wrong format: multiple dots"):
        super().__init__(message)


class TooPrecise(ParseAmountError):
    """Raised when the fractional part has more than PRECISION significant digits."""

    def __init__(self, message: str = f"unsupported precision of >{PRECISION}"):
        super().__init__(message)


# ============================================================================
# AMOUNT
# ============================================================================

@dataclass(frozen=True, slots=True, order=True)
class Amount:
    """
    Immutable non-negative monetary amount with 4 decimal places.

    Attributes:
        units: Number of minor units (1/10000 of the base unit).

    This class is immutable (frozen=True) and memory-optimized (slots=True).
    The unit count is validated in __post_init__.
    """
    units: int = 0

    def __post_init__(self):
        if isinstance(self.units, bool) or not isinstance(self.units, int):
            raise TypeError(f"Amount units must be int, got {type(self.units)}")
        if not 0 <= self.units <= MAX_UNITS:
            raise ValueError(f"Amount units out of range: {self.units}")

    @classmethod
    def zero(cls) -> Amount:
        return cls(0)

    @classmethod
    def parse(cls, text: str) -> Amount:
        """
        Parse an amount from its decimal text form.

        Grammar: an optional leading '+', an integer part, and an optional
        '.' followed by a fractional part. Either part may be empty when the
        dot is present. Trailing zeros of the fraction do not count towards
        the precision limit.

        Args:
            text: Amount text, e.g. "1", ".5", "010.0010", "+1."

        Returns:
            The parsed Amount

        Raises:
            InvalidNumber: A part contains anything other than ASCII digits
            MultipleDots: More than one '.' is present
            TooPrecise: More than 4 significant fractional digits
            TooLarge: The value exceeds MAX_UNITS minor units
        """
        body = text[1:] if text.startswith("+") else text
        parts = body.split(".")

        if len(parts) == 1:
            whole = _parse_whole(parts[0])
            fraction = 0
        elif len(parts) == 2:
            int_part, frac_part = parts
            whole = _parse_whole(int_part) if int_part else 0
            frac_part = frac_part.rstrip("0")
            if len(frac_part) > PRECISION:
                raise TooPrecise()
            fraction = _parse_digits(frac_part) if frac_part else 0
            fraction *= 10 ** (PRECISION - len(frac_part))
        else:
            raise MultipleDots()

        units = whole * SCALE + fraction
        if units > MAX_UNITS:
            raise TooLarge()
        return cls(units)

    def checked_add(self, other: Amount) -> Optional[Amount]:
        """Return self + other, or None if the sum leaves the Amount domain."""
        units = self.units + other.units
        if units > MAX_UNITS:
            return None
        return Amount(units)

    def checked_sub(self, other: Amount) -> Optional[Amount]:
        """Return self - other, or None if the difference would be negative."""
        if other.units > self.units:
            return None
        return Amount(self.units - other.units)

    def is_zero(self) -> bool:
        return self.units == 0

    def to_decimal(self) -> Decimal:
        """Exact Decimal value of this amount, quantized to 4 places."""
        return Decimal(self.units).scaleb(-PRECISION).quantize(Decimal(1).scaleb(-PRECISION))

    def __str__(self) -> str:
        return format_amount(self)

    def __repr__(self) -> str:
        return f"Amount({format_amount(self)})"


# ============================================================================
# CODEC HELPERS
# ============================================================================

def _parse_whole(part: str) -> int:
    """Integer part of an amount; a digit run longer than any in-domain value is TooLarge."""
    if part and _DIGITS.issuperset(part):
        part = part.lstrip("0") or "0"
        if len(part) > _MAX_WHOLE_DIGITS:
            raise TooLarge()
    return _parse_digits(part)


def _parse_digits(part: str) -> int:
    """
    Convert a run of ASCII digits to int.

    int() alone is too lenient here: it accepts surrounding whitespace,
    underscores, signs and non-ASCII digits.
    """
    try:
        if not part or not _DIGITS.issuperset(part):
            raise ValueError(f"invalid digit found in {part!r}")
        return int(part)
    except ValueError as e:
        raise InvalidNumber(f"int parsing error: {e}") from e


def format_amount(amount: Amount) -> str:
    """
    Render an amount as decimal text.

    The fractional part keeps its leading zeros and drops trailing ones;
    the dot is omitted altogether for whole amounts.

    Example:
        format_amount(Amount(1234567)) -> "123.4567"
        format_amount(Amount(12300))   -> "1.23"
        format_amount(Amount(0))       -> "0"
    """
    whole, fraction = divmod(amount.units, SCALE)
    if fraction == 0:
        return str(whole)
    digits = f"{fraction:0{PRECISION}d}".rstrip("0")
    return f"{whole}.{digits}"
