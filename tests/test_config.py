"""Tests for environment-driven settings."""

import pytest

from pass_claim.config import Settings
from pass_claim.project_constants import CAPACITY, ORACLE_FEE, PASS_ID

ENV = ["RPC_URL", "PASS_ID", "CAPACITY", "ORACLE_FEE", "ORACLE_KEY_HASH"]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    # No stray .env from the working directory
    monkeypatch.chdir(tmp_path)
    for name in ENV:
        # setenv first so teardown also removes anything load_dotenv adds
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


def test_defaults() -> None:
    settings = Settings.from_env()
    assert settings.rpc_url is None
    assert settings.capacity == CAPACITY
    assert settings.oracle_fee == ORACLE_FEE
    assert settings.pass_id == PASS_ID


def test_env_values(monkeypatch) -> None:
    monkeypatch.setenv("RPC_URL", "http://node")
    monkeypatch.setenv("CAPACITY", "1000")
    monkeypatch.setenv("ORACLE_FEE", "0x10")
    monkeypatch.setenv("PASS_ID", "0xpass")
    settings = Settings.from_env()
    assert settings.rpc_url == "http://node"
    assert settings.capacity == 1000
    assert settings.oracle_fee == 16
    assert settings.pass_id == "0xpass"


def test_override_wins(monkeypatch) -> None:
    monkeypatch.setenv("RPC_URL", "http://node")
    assert Settings.from_env(rpc_url_override="http://other").rpc_url == "http://other"


def test_dotenv_file(tmp_path) -> None:
    (tmp_path / ".env").write_text("CAPACITY=12\n", encoding="utf-8")
    assert Settings.from_env().capacity == 12


@pytest.mark.parametrize("value", ["lots", "0", "-3"])
def test_bad_capacity(monkeypatch, value) -> None:
    monkeypatch.setenv("CAPACITY", value)
    with pytest.raises(RuntimeError):
        Settings.from_env()


def test_require_rpc_url() -> None:
    with pytest.raises(RuntimeError, match="RPC_URL"):
        Settings.from_env().require_rpc_url()
