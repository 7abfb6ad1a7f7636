from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal('0.01')


def as_money(value):
    """
    Format an amount as a string with exactly two decimal places.

    Aggregates such as ``Sum('amount')`` come back unscaled on some
    backends (SQLite returns ``Decimal('1000')``), and ``None`` when there
    are no rows; both are normalised here.
    """
    if value is None:
        value = Decimal('0')
    return str(Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP))
