from __future__ import annotations

from dataclasses import replace
from decimal import Decimal, localcontext
from typing import Iterable, List, Sequence

from .formats import HUNDRED, round_tenth
from .logging import get_logger
from .models import BillInput, BillItem, BillOutput, PersonalItem, PersonItem

log = get_logger(__name__)

ZERO = Decimal("0")
GUARD_DIGITS = 28


class InvalidBillDateError(ValueError):
    """Raised when a bill date is not of the form YYYY-MM-DD."""


def format_date(date: str) -> str:
    """Render ``YYYY-MM-DD`` as ``{year}年{month}月{day}日``.

    Leading zeros of month and day are dropped. The calendar itself is not
    checked, so ``2024-13-40`` renders as ``2024年13月40日``.
    """
    parts = date.strip().split("-")
    if len(parts) != 3 or not all(p.isdecimal() for p in parts):
        raise InvalidBillDateError(f"Date must look like YYYY-MM-DD, got {date!r}")
    year, month, day = parts
    return f"{year}年{int(month)}月{int(day)}日"


def calculate_subtotal(items: Iterable[BillItem]) -> Decimal:
    return sum((item.price for item in items), ZERO)


def calculate_tip(subtotal: Decimal, tip_percentage: Decimal) -> Decimal:
    """Tip on ``subtotal`` rounded to the nearest 0.1, e.g. 1.234 -> 1.2."""
    return round_tenth(subtotal * tip_percentage / HUNDRED)


def scan_persons(items: Iterable[BillItem]) -> List[str]:
    """Participants named on personal items, in order of first appearance."""
    persons: List[str] = []
    for item in items:
        if isinstance(item, PersonalItem) and item.person not in persons:
            persons.append(item.person)
    return persons


def calculate_person_amount(
    items: Sequence[BillItem],
    *,
    name: str,
    persons: int,
    tip_percentage: Decimal,
) -> Decimal:
    person_subtotal = ZERO
    for item in items:
        if isinstance(item, PersonalItem):
            if item.person == name:
                person_subtotal += item.price
        else:
            person_subtotal += item.price / persons
    person_tip = calculate_tip(person_subtotal, tip_percentage)
    return round_tenth(person_subtotal + person_tip)


def calculate_items(items: Sequence[BillItem], tip_percentage: Decimal) -> List[PersonItem]:
    names = scan_persons(items)
    return [
        PersonItem(
            name=name,
            amount=calculate_person_amount(
                items,
                name=name,
                persons=len(names),
                tip_percentage=tip_percentage,
            ),
        )
        for name in names
    ]


def adjust_amounts(total_amount: Decimal, items: List[PersonItem]) -> List[PersonItem]:
    """Move any rounding drift onto the first participant.

    Returns a new list; the first entry absorbs the whole difference between
    ``total_amount`` and the sum of the per-person amounts.
    """
    if not items:
        return items
    current = sum((p.amount for p in items), ZERO)
    drift = round_tenth(total_amount - current)
    if drift == ZERO:
        return items
    first = items[0]
    return [replace(first, amount=round_tenth(first.amount + drift))] + items[1:]


def working_precision(bill: BillInput) -> int:
    """Digits needed to keep sums and tips exact for this bill.

    Covers the span between the largest and the finest price digit, the
    growth from summing every item and multiplying by the tip, plus guard
    digits for the shared-item division.
    """
    numbers = [item.price for item in bill.items] + [bill.tip_percentage]
    top = max(max(n.adjusted() for n in numbers), 0)
    bottom = min(min(n.as_tuple().exponent for n in numbers), 0)
    growth = len(str(len(bill.items))) + max(bill.tip_percentage.adjusted(), 0) + 2
    return top - bottom + growth + GUARD_DIGITS


def split_bill(bill: BillInput) -> BillOutput:
    date = format_date(bill.date)
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, working_precision(bill))
        sub_total = calculate_subtotal(bill.items)
        tip = calculate_tip(sub_total, bill.tip_percentage)
        total_amount = sub_total + tip
        items = adjust_amounts(total_amount, calculate_items(bill.items, bill.tip_percentage))
    log.debug(
        "bill.split",
        location=bill.location,
        items=len(bill.items),
        persons=len(items),
        total=str(total_amount),
    )
    return BillOutput(
        date=date,
        location=bill.location,
        sub_total=sub_total,
        tip=tip,
        total_amount=total_amount,
        items=tuple(items),
    )
