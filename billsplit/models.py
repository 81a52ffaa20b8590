from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Tuple, Union


@dataclass(frozen=True)
class SharedItem:
    """An item split evenly between every participant on the bill."""

    name: str
    price: Decimal

    @property
    def is_shared(self) -> bool:
        return True


@dataclass(frozen=True)
class PersonalItem:
    """An item charged in full to a single participant."""

    name: str
    price: Decimal
    person: str

    @property
    def is_shared(self) -> bool:
        return False


BillItem = Union[SharedItem, PersonalItem]


@dataclass(frozen=True)
class BillInput:
    date: str
    location: str
    tip_percentage: Decimal
    items: Tuple[BillItem, ...] = ()


@dataclass(frozen=True)
class PersonItem:
    name: str
    amount: Decimal


@dataclass(frozen=True)
class BillOutput:
    date: str
    location: str
    sub_total: Decimal
    tip: Decimal
    total_amount: Decimal
    items: Tuple[PersonItem, ...] = ()
