from .batch import BatchReport, discover_documents, process_document, result_path, run_batch
from .formats import (
    HUNDRED,
    TENTH,
    fmt_amount,
    output_to_dict,
    render,
    render_csv,
    render_json,
    render_text,
    resolve_format,
    round_tenth,
)
from .models import BillInput, BillItem, BillOutput, PersonalItem, PersonItem, SharedItem
from .parsing import BillFormatError, BillIOError, load_bill, normalize_bill, parse_percentage, parse_price
from .split_core import InvalidBillDateError, format_date, split_bill

__all__ = [
    "BillInput",
    "BillItem",
    "BillOutput",
    "SharedItem",
    "PersonalItem",
    "PersonItem",
    "split_bill",
    "format_date",
    "InvalidBillDateError",
    "normalize_bill",
    "load_bill",
    "parse_price",
    "parse_percentage",
    "BillFormatError",
    "BillIOError",
    "TENTH",
    "HUNDRED",
    "round_tenth",
    "fmt_amount",
    "output_to_dict",
    "render",
    "render_json",
    "render_text",
    "render_csv",
    "resolve_format",
    "BatchReport",
    "discover_documents",
    "process_document",
    "result_path",
    "run_batch",
]
