"""Fee-split arithmetic for settlement release.

    platform_share   = round2(price * fee_bps / 10000)
    instructor_share = round2(price - platform_share)

Money is handled as ``Decimal`` and rounded half-up to cents, so the two
shares always add back to the price exactly.  A price that does not parse
as a finite number yields "0.00" / "0.00" instead of raising; callers that
need validation must do it before getting here.

Arithmetic runs in a local context sized to the amount, so prices wider
than the default 28-digit precision are split exactly instead of tripping
``InvalidOperation``.  Amounts with more than MAX_INTEGER_DIGITS integer
digits are treated as unparseable.
"""

from __future__ import annotations

import decimal
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

BPS_DENOMINATOR = Decimal(10_000)
MAX_INTEGER_DIGITS = 1000
_CENT = Decimal("0.01")
_ZERO = "0.00"


@dataclass(frozen=True, slots=True)
class FeeSplit:
    platform_share: str
    instructor_share: str


def parse_amount(value: str) -> Decimal | None:
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not amount.is_finite() or amount.adjusted() >= MAX_INTEGER_DIGITS:
        return None
    return amount


def _money_context(amount: Decimal) -> decimal.Context:
    # Room for every integer digit, the cents, the bps multiplier and the
    # exact division by 10000.
    digits = len(amount.as_tuple().digits)
    prec = max(decimal.getcontext().prec, amount.adjusted() + 4, digits) + 10
    return decimal.Context(prec=prec, rounding=ROUND_HALF_UP)


def round2(amount: Decimal) -> Decimal:
    with decimal.localcontext(_money_context(amount)):
        return amount.quantize(_CENT, rounding=ROUND_HALF_UP)


def format_amount(value: str) -> str:
    """Render a decimal string with exactly two places ("99" -> "99.00")."""
    amount = parse_amount(value)
    if amount is None:
        return _ZERO
    return f"{round2(amount):.2f}"


def compute_fee_split(price: str, fee_bps: int) -> FeeSplit:
    amount = parse_amount(price)
    if amount is None:
        return FeeSplit(platform_share=_ZERO, instructor_share=_ZERO)

    with decimal.localcontext(_money_context(amount)):
        platform = round2(amount * Decimal(fee_bps) / BPS_DENOMINATOR)
        instructor = round2(amount - platform)
    return FeeSplit(platform_share=f"{platform:.2f}", instructor_share=f"{instructor:.2f}")
