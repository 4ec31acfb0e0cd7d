# ledger/money.py

"""
MONEY HELPERS (FIXED-POINT)

Amounts are stored as Decimal(14, 2). All core arithmetic (splitting, netting,
aggregation) runs in integer cents so comparisons are exact.

MONEY_EPSILON exists for presentation boundaries only (e.g. hiding balances
that round to nothing); core code compares cents directly.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

TWOPLACES = Decimal("0.01")
MONEY_EPSILON = Decimal("0.01")
ZERO = Decimal("0.00")


class InvalidMoneyError(ValueError):
    pass


def money(value) -> Decimal:
    """Normalize any numeric-ish value to a 2dp Decimal (HALF_UP)."""
    if value is None or value == "":
        return ZERO

    if isinstance(value, bool):
        raise InvalidMoneyError(f"Invalid money value: {value!r}")

    if isinstance(value, Decimal):
        amt = value
    else:
        try:
            amt = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError) as exc:
            raise InvalidMoneyError(f"Invalid money value: {value!r}") from exc

    if not amt.is_finite():
        raise InvalidMoneyError(f"Invalid money value: {value!r}")

    return amt.quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def to_cents(value) -> int:
    return int(money(value) * 100)


def from_cents(cents: int) -> Decimal:
    return (Decimal(int(cents)) / 100).quantize(TWOPLACES)


def split_evenly(total_cents: int, parts: int) -> list[int]:
    """
    Divide total_cents into `parts` integer shares that sum exactly to the total.

    The first (total_cents % parts) shares carry one extra cent.
    """
    if parts <= 0:
        raise ValueError("parts must be >= 1")

    base, remainder = divmod(int(total_cents), parts)
    return [base + 1 if i < remainder else base for i in range(parts)]


def is_presentable(amount: Decimal) -> bool:
    """True when |amount| is large enough to show to a user."""
    return abs(amount) > MONEY_EPSILON
