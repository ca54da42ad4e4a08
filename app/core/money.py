from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal, ROUND_HALF_UP

Money = Decimal

ZERO = Decimal("0.00")


def D(x) -> Money:
    return x if isinstance(x, Decimal) else Decimal(str(x or "0"))


def round_money(x) -> Money:
    return D(x).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def fmt_inr(amount) -> str:
    return f"₹{round_money(amount):,.2f}"


def fmt_long_date(d: date | datetime | None, *, weekday: bool = False) -> str:
    # "Monday, January 5, 2026" / "January 5, 2026"
    if d is None:
        return ""
    s = f"{d.strftime('%B')} {d.day}, {d.year}"
    return f"{d.strftime('%A')}, {s}" if weekday else s


def fmt_time_12h(t: time | None) -> str:
    # "7:30 PM"
    if t is None:
        return ""
    hour = t.hour % 12 or 12
    return f"{hour}:{t.minute:02d} {'PM' if t.hour >= 12 else 'AM'}"
