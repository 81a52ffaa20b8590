from __future__ import annotations

import json
import re
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, List, Mapping

from .models import BillInput, BillItem, PersonalItem, SharedItem

REQUIRED_FIELDS = ("date", "location", "items")


class BillFormatError(ValueError):
    """Raised when a bill document does not have the expected shape."""


class BillIOError(RuntimeError):
    """Raised when a bill document cannot be read or a result cannot be written."""


def _to_decimal(value: Any, *, what: str) -> Decimal:
    if isinstance(value, bool):
        raise ValueError(f"{what} must be a number, got {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        raw = re.sub(r"\s+", "", value).replace(",", "").replace("$", "").replace("%", "")
        try:
            result = Decimal(raw)
        except InvalidOperation as exc:
            raise ValueError(f"{what} must be a number, got {value!r}") from exc
    else:
        raise ValueError(f"{what} must be a number, got {value!r}")
    if not result.is_finite():
        raise ValueError(f"{what} must be a finite number, got {value!r}")
    return result


def parse_price(value: Any) -> Decimal:
    """Parse an item price such as ``12.5``, ``"12.50"`` or ``"$1,234.50"``."""
    price = _to_decimal(value, what="Price")
    if price < Decimal("0"):
        raise ValueError(f"Price cannot be negative, got {value!r}")
    return price


def parse_percentage(value: Any) -> Decimal:
    """Parse a non-negative percentage such as ``15``, ``"12.5"`` or ``"18%"``."""
    pct = _to_decimal(value, what="Tip percentage")
    if pct < Decimal("0"):
        raise ValueError(f"Tip percentage cannot be negative, got {value!r}")
    return pct


def parse_item(raw: Any, index: int) -> BillItem:
    if not isinstance(raw, Mapping):
        raise BillFormatError(f"Item {index} must be an object")
    if "price" not in raw:
        raise BillFormatError(f"Item {index} is missing 'price'")
    try:
        price = parse_price(raw["price"])
    except ValueError as exc:
        raise BillFormatError(f"Item {index}: {exc}") from exc

    name = raw.get("name", "")
    if not isinstance(name, str):
        raise BillFormatError(f"Item {index}: 'name' must be a string")

    shared = raw.get("isShared")
    if not isinstance(shared, bool):
        raise BillFormatError(f"Item {index}: 'isShared' must be true or false")
    if shared:
        return SharedItem(name=name, price=price)

    person = raw.get("person")
    if not isinstance(person, str) or not person.strip():
        raise BillFormatError(f"Item {index}: personal items need a 'person'")
    return PersonalItem(name=name, price=price, person=person)


def normalize_bill(
    raw: Any,
    *,
    default_tip: Decimal = Decimal("0"),
) -> BillInput:
    """Validate a decoded bill document and build a :class:`BillInput`.

    ``date``, ``location`` and ``items`` are required. ``tipPercentage`` falls
    back to ``default_tip`` when absent. The date is passed through untouched;
    malformed dates are reported when the bill is split.
    """
    if not isinstance(raw, Mapping):
        raise BillFormatError("Bill document must be a JSON object")
    missing = [key for key in REQUIRED_FIELDS if key not in raw or raw[key] is None]
    if missing:
        raise BillFormatError(f"Bill is missing required field(s): {', '.join(missing)}")

    date, location, items = raw["date"], raw["location"], raw["items"]
    if not isinstance(date, str):
        raise BillFormatError("'date' must be a string like 2024-03-21")
    if not isinstance(location, str):
        raise BillFormatError("'location' must be a string")
    if not isinstance(items, list):
        raise BillFormatError("'items' must be a list")

    tip_raw = raw.get("tipPercentage")
    try:
        tip = default_tip if tip_raw is None else parse_percentage(tip_raw)
    except ValueError as exc:
        raise BillFormatError(str(exc)) from exc

    parsed: List[BillItem] = [parse_item(item, i) for i, item in enumerate(items)]
    return BillInput(date=date, location=location, tip_percentage=tip, items=tuple(parsed))


def load_bill_document(path: Path) -> dict:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise BillIOError(f"Cannot read {path}: {exc.strerror or exc}") from exc
    except UnicodeDecodeError as exc:
        raise BillFormatError(f"{path} is not UTF-8 text") from exc
    try:
        data = json.loads(text, parse_float=Decimal)
    except json.JSONDecodeError as exc:
        raise BillFormatError(f"{path} is not valid JSON: {exc.msg} (line {exc.lineno})") from exc
    if not isinstance(data, dict):
        raise BillFormatError(f"{path} must contain a JSON object")
    return data


def load_bill(path: Path, *, default_tip: Decimal = Decimal("0")) -> BillInput:
    return normalize_bill(load_bill_document(path), default_tip=default_tip)
