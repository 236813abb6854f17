from __future__ import annotations

import time
from collections.abc import Iterable
from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)

def iso_now() -> str:
    return utc_now().isoformat()

def generate_local_id(existing: Iterable[str] = ()) -> str:
    """Returns a millisecond timestamp token not present in `existing`."""
    taken = set(existing)
    candidate = time.time_ns() // 1_000_000
    while str(candidate) in taken:
        candidate += 1
    return str(candidate)

def format_price(amount: float, currency: str = "INR") -> str:
    symbol = "₹" if currency == "INR" else f"{currency} "
    sign = "-" if amount < 0 else ""
    whole, fraction = f"{abs(amount):.2f}".split(".")
    if currency == "INR" and len(whole) > 3:
        # Indian grouping: last three digits, then pairs.
        head, tail = whole[:-3], whole[-3:]
        groups: list[str] = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])
    elif len(whole) > 3:
        whole = f"{int(whole):,}"
    return f"{sign}{symbol}{whole}.{fraction}"
