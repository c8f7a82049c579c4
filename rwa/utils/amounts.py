"""Conversion between decimal token amounts and smallest-unit integers."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext

from ..core.errors import InvalidAmountError

NATIVE_DECIMALS = 18
MAX_UINT256 = 2**256 - 1


def parse_units(amount: str, decimals: int = NATIVE_DECIMALS) -> int:
    """Scale a decimal string to an integer amount of the smallest unit.

    ``parse_units("1.5", 18) == 1_500_000_000_000_000_000``. Fractions beyond
    ``decimals`` places are rounded half-up. Raises :class:`InvalidAmountError`
    for empty, non-numeric, non-finite or negative input, and for amounts that
    do not fit in a uint256.
    """

    if amount is None or not str(amount).strip():
        raise InvalidAmountError("Amount cannot be empty")
    if decimals < 0:
        raise InvalidAmountError(f"Invalid token decimals: {decimals}")

    text = str(amount).strip().replace("_", "")
    with localcontext() as ctx:
        ctx.prec = max(78, len(text) + decimals + 2)
        try:
            value = Decimal(text)
        except InvalidOperation as exc:
            raise InvalidAmountError(f"Invalid amount: {amount!r} is not a number") from exc
        if not value.is_finite():
            raise InvalidAmountError(f"Invalid amount: {amount!r} is not a finite number")
        if value < 0:
            raise InvalidAmountError("Amount cannot be negative")
        try:
            scaled = (value * (Decimal(10) ** decimals)).quantize(Decimal(1), rounding=ROUND_HALF_UP)
        except InvalidOperation as exc:
            raise InvalidAmountError("Amount exceeds uint256 range") from exc
    result = int(scaled)
    if result > MAX_UINT256:
        raise InvalidAmountError("Amount exceeds uint256 range")
    return result


def format_units(value: int, decimals: int = NATIVE_DECIMALS) -> str:
    """Render an integer amount of the smallest unit as a decimal string.

    Trailing fractional zeros are dropped: ``format_units(10**18, 18) == "1"``.
    """

    negative = value < 0
    digits = str(abs(int(value)))
    if decimals > 0:
        digits = digits.rjust(decimals + 1, "0")
        whole, fraction = digits[:-decimals], digits[-decimals:].rstrip("0")
    else:
        whole, fraction = digits, ""
    text = f"{whole}.{fraction}" if fraction else whole
    return f"-{text}" if negative else text
