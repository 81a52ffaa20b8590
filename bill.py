from __future__ import annotations

# ruff: noqa: E402  # allow docstring before imports

"""Public API and CLI entrypoint for the bill splitter package.

Re-exports the main API from `billsplit` so that

    import bill

gives access to the splitting engine and its helpers. Also provides a
`python bill.py --input=... --output=...` entry.
"""

import importlib.metadata as importlib_metadata
import sys

from billsplit import (
    HUNDRED,
    TENTH,
    BatchReport,
    BillFormatError,
    BillInput,
    BillIOError,
    BillOutput,
    InvalidBillDateError,
    PersonalItem,
    PersonItem,
    SharedItem,
    format_date,
    normalize_bill,
    render,
    round_tenth,
    run_batch,
    split_bill,
)
from billsplit.cli import run_cli

try:
    _distribution_version = importlib_metadata.version("bill-split")
except importlib_metadata.PackageNotFoundError:
    __version__ = "0+unknown"
else:
    __version__ = _distribution_version or "0+unknown"

__all__ = [
    "__version__",
    "BillInput",
    "BillOutput",
    "SharedItem",
    "PersonalItem",
    "PersonItem",
    "split_bill",
    "format_date",
    "normalize_bill",
    "InvalidBillDateError",
    "BillFormatError",
    "BillIOError",
    "TENTH",
    "HUNDRED",
    "round_tenth",
    "render",
    "BatchReport",
    "run_batch",
    "run_cli",
]

if __name__ == "__main__":
    sys.exit(run_cli())
