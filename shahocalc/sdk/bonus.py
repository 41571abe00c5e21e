"""Bonus amount rounding for the bonus payment filing (賞与支払届).

The standard bonus amount is the payment (cash + in-kind) truncated to the
thousand yen below. Example: 123,456 -> 123,000.
"""

BONUS_UNIT = 1000


def round_bonus(cash: int, in_kind: int = 0) -> int:
    """Floor cash + in-kind to the lower thousand yen.

    Callers reject negative amounts before calling; no sign validation here.
    """
    return (cash + in_kind) // BONUS_UNIT * BONUS_UNIT
