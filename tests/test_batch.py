import json
from decimal import Decimal
from pathlib import Path

import pytest
import structlog

from billsplit import batch
from billsplit.batch import discover_documents, process_document, result_path, run_batch
from billsplit.logging import get_logger
from billsplit.parsing import BillIOError


GOOD_A = {
    "date": "2024-03-21",
    "location": "Taipei",
    "tipPercentage": 0,
    "items": [
        {"name": "hotpot", "price": 30, "isShared": True},
        {"name": "beer", "price": 10, "isShared": False, "person": "A"},
        {"name": "juice", "price": 20, "isShared": False, "person": "B"},
    ],
}

GOOD_B = {
    "date": "2024-04-01",
    "location": "Tainan",
    "tipPercentage": 10,
    "items": [
        {"name": "rice", "price": 10, "isShared": False, "person": "C"},
    ],
}

MISSING_ITEMS = {"date": "2024-04-02", "location": "Kaohsiung", "tipPercentage": 10}


def write_docs(directory: Path, docs: dict) -> None:
    directory.mkdir(parents=True, exist_ok=True)
    for name, payload in docs.items():
        text = payload if isinstance(payload, str) else json.dumps(payload)
        (directory / name).write_text(text, encoding="utf-8")


@pytest.mark.parametrize("workers", [1, 3])
def test_batch_partial_failure(tmp_path, workers):
    src = tmp_path / "bills"
    out = tmp_path / "results"
    write_docs(src, {"a.json": GOOD_A, "b.json": GOOD_B, "c.json": MISSING_ITEMS})

    report = run_batch(src, out, fmt="json", workers=workers)

    assert report.total == 3
    assert report.succeeded == [src / "a.json", src / "b.json"]
    assert [p for p, _ in report.failed] == [src / "c.json"]
    assert "items" in report.failed[0][1]
    assert not report.ok

    a = json.loads((out / "a-result.json").read_text(encoding="utf-8"))
    assert a["date"] == "2024年3月21日"
    assert a["totalAmount"] == 60
    assert a["items"] == [{"name": "A", "amount": 25}, {"name": "B", "amount": 35}]

    b = json.loads((out / "b-result.json").read_text(encoding="utf-8"))
    assert b["location"] == "Tainan"
    assert b["tip"] == 1
    assert b["items"] == [{"name": "C", "amount": 11}]

    assert not (out / "c-result.json").exists()


def test_batch_counts_bad_json_and_bad_dates(tmp_path):
    src = tmp_path / "bills"
    write_docs(
        src,
        {
            "good.json": GOOD_A,
            "broken.json": "{nope",
            "date.json": dict(GOOD_A, date="21/03/2024"),
        },
    )
    report = run_batch(src, tmp_path / "out", workers=2)
    assert report.succeeded == [src / "good.json"]
    assert sorted(p.name for p, _ in report.failed) == ["broken.json", "date.json"]


def test_batch_keeps_going_after_unexpected_errors(tmp_path, monkeypatch):
    src = tmp_path / "bills"
    write_docs(src, {"a.json": GOOD_A, "b.json": GOOD_A, "c.json": GOOD_A})
    original = batch.process_document

    def flaky(source, destination, **kwargs):
        if source.name == "a.json":
            raise RuntimeError("disk on fire")
        return original(source, destination, **kwargs)

    monkeypatch.setattr(batch, "process_document", flaky)
    report = run_batch(src, tmp_path / "out", workers=3)
    assert report.failed == [(src / "a.json", "disk on fire")]
    assert len(report.succeeded) == 2


def test_batch_text_format_and_suffix(tmp_path):
    src = tmp_path / "bills"
    out = tmp_path / "out"
    write_docs(src, {"dinner.json": GOOD_A})
    report = run_batch(src, out, fmt="text", suffix=".split")
    assert report.ok
    text = (out / "dinner.split.txt").read_text(encoding="utf-8")
    assert text.startswith("--- Bill Split ---\n")
    assert "Total: 60.0" in text


def test_discover_documents_ignores_other_files(tmp_path):
    write_docs(tmp_path, {"b.json": GOOD_A, "A.JSON": GOOD_A, "notes.txt": "hi", "c.json.bak": "x"})
    (tmp_path / "nested.json").mkdir()
    assert [p.name for p in discover_documents(tmp_path)] == ["A.JSON", "b.json"]


def test_discover_documents_requires_directory(tmp_path):
    with pytest.raises(BillIOError):
        discover_documents(tmp_path / "missing")


def test_empty_directory(tmp_path):
    (tmp_path / "bills").mkdir()
    report = run_batch(tmp_path / "bills", tmp_path / "out", workers=4)
    assert report.total == 0
    assert report.ok
    assert (tmp_path / "out").is_dir()


@pytest.mark.parametrize(
    "fmt, expected",
    [("json", "bill-result.json"), ("text", "bill-result.txt"), ("csv", "bill-result.csv"), ("weird", "bill-result.json")],
)
def test_result_path(tmp_path, fmt, expected):
    assert result_path(Path("in/bill.json"), tmp_path, fmt) == tmp_path / expected


def test_process_document_uses_default_tip(tmp_path):
    src = tmp_path / "bill.json"
    src.write_text(json.dumps({k: v for k, v in GOOD_B.items() if k != "tipPercentage"}), encoding="utf-8")
    output = process_document(src, tmp_path / "out" / "bill.json", fmt="json", default_tip=Decimal("20"))
    assert output.tip == Decimal("2.0")
    assert (tmp_path / "out" / "bill.json").is_file()


def test_batch_rejects_documents_sharing_a_result_name(tmp_path):
    src = tmp_path / "bills"
    out = tmp_path / "out"
    write_docs(src, {"a.json": GOOD_A, "a.JSON": GOOD_B})
    report = run_batch(src, out, workers=2)
    assert report.succeeded == [src / "a.JSON"]
    assert [p for p, _ in report.failed] == [src / "a.json"]
    assert "already produced by a.JSON" in report.failed[0][1]
    assert [p.name for p in out.iterdir()] == ["a-result.json"]
    assert json.loads((out / "a-result.json").read_text(encoding="utf-8"))["location"] == "Tainan"


def test_library_use_leaves_stdout_alone(tmp_path, capsys):
    structlog.reset_defaults()
    get_logger("billsplit.tests")
    src = tmp_path / "bills"
    write_docs(src, {"a.json": GOOD_A, "bad.json": MISSING_ITEMS})
    report = run_batch(src, tmp_path / "out")
    assert report.total == 2
    assert capsys.readouterr().out == ""
