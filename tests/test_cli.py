import logging
import os
import sqlite3
import sys

import pytest

from metaminer import cli
from metaminer.config import DEFAULT_DB_PATH, DEFAULT_RPC_URL, load_dotenv


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("METAMINER_DB", "METAMINER_RPC_URL", "METAMINER_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    args = cli.build_parser().parse_args(["mine-xalts"])
    assert args.db == DEFAULT_DB_PATH
    assert args.rpc == DEFAULT_RPC_URL
    assert args.timeout == 10.0
    assert args.collection == "xalt"
    assert args.mints_file == "../data/xalt-mints"


def test_xape_command_and_overrides():
    args = cli.build_parser().parse_args(
        ["--db", "x.db", "--rpc", "http://rpc", "--timeout", "3", "mine-xapes", "--mints-file", "m.txt"]
    )
    assert (args.db, args.rpc, args.timeout) == ("x.db", "http://rpc", 3.0)
    assert args.collection == "xape"
    assert args.mints_file == "m.txt"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("METAMINER_RPC_URL", "http://env-rpc")
    monkeypatch.setenv("METAMINER_TIMEOUT", "2.5")
    args = cli.build_parser().parse_args(["summarize", "--counts"])
    assert args.rpc == "http://env-rpc"
    assert args.timeout == 2.5
    assert args.counts


def test_load_dotenv_does_not_override(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text("# comment\nMETAMINER_DB='from-file.db'\nMETAMINER_RPC_URL=http://file\n", encoding="utf-8")
    monkeypatch.setenv("METAMINER_RPC_URL", "http://shell")

    try:
        load_dotenv(str(env_file))
        assert os.environ["METAMINER_DB"] == "from-file.db"
        assert os.environ["METAMINER_RPC_URL"] == "http://shell"
    finally:
        os.environ.pop("METAMINER_DB", None)


def test_main_reports_input_error(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    mints = tmp_path / "mints"
    mints.write_text("garbage!\n", encoding="utf-8")
    db = tmp_path / "data" / "mine.db"
    monkeypatch.setattr(sys, "argv", ["metaminer", "--db", str(db), "mine-xalts", "--mints-file", str(mints)])

    assert cli.main() == 1
    assert "invalid mint address" in capsys.readouterr().err


def test_main_summarize(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    db = tmp_path / "mine.db"
    monkeypatch.setattr(sys, "argv", ["metaminer", "--db", str(db), "summarize"])

    assert cli.main() == 0
    assert capsys.readouterr().out == "XALT Traits\n\nXAPE Traits\n\n"
    tables = {row[0] for row in sqlite3.connect(db).execute("SELECT name FROM sqlite_master")}
    assert {"xalts", "xalt_atts", "xapes", "xape_atts"} <= tables


def test_load_dotenv_handles_export_and_quotes(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text('export METAMINER_RPC_URL="http://exported"\nMETAMINER_TIMEOUT=it\'s\n', encoding="utf-8")
    monkeypatch.setenv("METAMINER_TIMEOUT", "4")

    try:
        load_dotenv(str(env_file))
        assert os.environ["METAMINER_RPC_URL"] == "http://exported"
        assert os.environ["METAMINER_TIMEOUT"] == "4"
    finally:
        os.environ.pop("METAMINER_RPC_URL", None)


def test_main_missing_mints_file_is_one_line_error(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    missing = tmp_path / "no-such-mints"
    monkeypatch.setattr(sys, "argv", ["metaminer", "--db", str(tmp_path / "mine.db"), "mine-xalts", "--mints-file", str(missing)])

    assert cli.main() == 1
    err = capsys.readouterr().err
    assert "Cannot read mints file" in err
    assert "Traceback" not in err


def test_main_unopenable_database_is_one_line_error(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(sys, "argv", ["metaminer", "--db", str(tmp_path), "summarize"])

    assert cli.main() == 1
    assert capsys.readouterr().err.startswith("error: ")


def test_main_logs_error_details_at_debug(tmp_path, monkeypatch, caplog):
    monkeypatch.chdir(tmp_path)
    mints = tmp_path / "mints"
    mints.write_text("garbage!\n", encoding="utf-8")
    monkeypatch.setattr(sys, "argv", ["metaminer", "--db", str(tmp_path / "mine.db"), "mine-xalts", "--mints-file", str(mints)])
    caplog.set_level(logging.DEBUG, logger="metaminer.cli")

    assert cli.main() == 1
    messages = [record.getMessage() for record in caplog.records if record.name == "metaminer.cli"]
    assert any("'error_type': 'InputError'" in message and "'line': 1" in message for message in messages)
