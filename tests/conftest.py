import pytest

from billsplit.config import ENV_KEYS


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Keep stray billconfig.json/.env files and BILL_* variables out of tests."""
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
