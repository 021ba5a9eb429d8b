"""Mini README: Number formatting helpers shared by the report renderers."""

from __future__ import annotations

from decimal import Decimal


def plain_number(value: float) -> str:
    """Render a number without exponent or trailing zeros (``100``, ``12.5``)."""

    text = format(Decimal(repr(float(value))).normalize(), "f")
    return "0" if text in {"-0", "0"} else text


def group_indian(value: float, max_fraction_digits: int = 3) -> str:
    """Group digits the en-IN way: last three, then pairs (``12,34,567.5``)."""

    text = f"{abs(value):.{max_fraction_digits}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    whole, _, fraction = text.partition(".")
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])
    sign = "-" if value < 0 and text != "0" else ""
    return f"{sign}{whole}.{fraction}" if fraction else f"{sign}{whole}"


def currency(value: float, symbol: str) -> str:
    return f"{symbol}{group_indian(value)}"
