from __future__ import annotations

import csv
import io
import json
from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Dict, List

import pyperclip

from .models import BillOutput


# --- Money helpers & constants ---
TENTH = Decimal("0.1")
HUNDRED = Decimal("100")

DEFAULT_FORMAT = "json"
FORMAT_EXTENSIONS: Dict[str, str] = {"json": ".json", "text": ".txt", "csv": ".csv"}
FORMAT_ALIASES: Dict[str, str] = {"structured": "json", "txt": "text"}


def round_tenth(value: Decimal) -> Decimal:
    """Round a Decimal to one fractional digit, halves away from zero.

    Precision grows with the value so large amounts never overflow the context.
    """
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + 3)
        return value.quantize(TENTH, rounding=ROUND_HALF_UP)


def fmt_amount(value: Decimal) -> str:
    return f"{round_tenth(value):.1f}"


def resolve_format(name: str | None) -> str:
    """Map a user-supplied format name onto a known format.

    Unknown or missing names fall back to structured JSON output.
    """
    key = (name or "").strip().lower()
    key = FORMAT_ALIASES.get(key, key)
    return key if key in FORMAT_EXTENSIONS else DEFAULT_FORMAT


def is_known_format(name: str | None) -> bool:
    key = (name or "").strip().lower()
    return FORMAT_ALIASES.get(key, key) in FORMAT_EXTENSIONS


# --- Structured output ---
def _number(value: Decimal) -> float | int:
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def output_to_dict(output: BillOutput) -> dict:
    return {
        "date": output.date,
        "location": output.location,
        "subTotal": _number(output.sub_total),
        "tip": _number(output.tip),
        "totalAmount": _number(output.total_amount),
        "items": [{"name": p.name, "amount": _number(p.amount)} for p in output.items],
    }


def render_json(output: BillOutput) -> str:
    return json.dumps(output_to_dict(output), ensure_ascii=False, indent=2)


# --- Text report ---
def render_text(output: BillOutput) -> str:
    lines: List[str] = []
    lines.append("--- Bill Split ---")
    lines.append(f"Date: {output.date}")
    lines.append(f"Location: {output.location}")
    lines.append(f"Subtotal: {fmt_amount(output.sub_total)}")
    lines.append(f"Tip: {fmt_amount(output.tip)}")
    lines.append(f"Total: {fmt_amount(output.total_amount)}")
    lines.append("Each person pays:")
    if not output.items:
        lines.append("  (no participants)")
    width = max((len(p.name) for p in output.items), default=0)
    for person in output.items:
        lines.append(f"  {person.name.ljust(width)}  {fmt_amount(person.amount)}")
    return "\n".join(lines) + "\n"


# --- CSV export ---
CSV_COLUMNS = ["date", "location", "sub_total", "tip", "total_amount", "name", "amount"]


def render_csv(output: BillOutput) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    header = [
        output.date,
        output.location,
        fmt_amount(output.sub_total),
        fmt_amount(output.tip),
        fmt_amount(output.total_amount),
    ]
    for person in output.items:
        writer.writerow(header + [person.name, fmt_amount(person.amount)])
    if not output.items:
        writer.writerow(header + ["", ""])
    return buf.getvalue()


def render(output: BillOutput, fmt: str) -> str:
    fmt = resolve_format(fmt)
    if fmt == "text":
        return render_text(output)
    if fmt == "csv":
        return render_csv(output)
    return render_json(output) + "\n"


def copy_to_clipboard(text: str) -> bool:
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException:
        return False
    return True
