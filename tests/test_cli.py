import json
import os

import pytest

from tableprint import main as cli

ORDER = {
    "id": "A17",
    "total": "12.50",
    "items": [{"qty": 1, "product_name": "Carbonara", "price": "12.50"}],
}


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(cli, "configure_logging", lambda level=None: None)
    monkeypatch.setenv("PRINTER_RECEIPTS_DIR", str(tmp_path / "receipts"))
    return tmp_path


def _write(tmp_path, name, payload):
    path = tmp_path / name
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


def test_order_preview(isolated, capsys):
    path = _write(isolated, "order.json", ORDER)
    assert cli.main(["order", path, "--preview"]) == 0
    out = capsys.readouterr().out
    assert "TOTALE" in out
    assert "12.50" in out
    assert not (isolated / "receipts").exists()


def test_daily_preview_accepts_rows_wrapper(isolated, capsys):
    rows = {"rows": [{"start_at": "2025-03-01 20:00:00", "table_number": 2, "customer_first": "Ana"}]}
    path = _write(isolated, "daily.json", rows)
    assert cli.main(["daily", path, "--date", "2025-03-01", "--preview"]) == 0
    assert "PRENOTAZIONI" in capsys.readouterr().out


def test_disabled_printer_saves_fallback(isolated, monkeypatch, capsys):
    monkeypatch.setenv("PRINTER_ENABLED", "0")
    path = _write(isolated, "order.json", ORDER)
    assert cli.main(["order", path]) == 0
    assert "SAVED" in capsys.readouterr().out
    assert len(list((isolated / "receipts").glob("receipt-A17-*.txt"))) == 1


def test_env_file_is_loaded(isolated, monkeypatch, capsys):
    monkeypatch.delenv("PRINTER_ENABLED", raising=False)
    env_file = isolated / "printer.env"
    env_file.write_text("PRINTER_ENABLED=false\n", encoding="utf-8")
    path = _write(isolated, "order.json", ORDER)
    try:
        assert cli.main(["--env-file", str(env_file), "order", path]) == 0
    finally:
        os.environ.pop("PRINTER_ENABLED", None)
    assert "SAVED" in capsys.readouterr().out


def test_unreadable_input_reports_bad_input(isolated, capsys):
    assert cli.main(["order", str(isolated / "missing.json")]) == 2
    assert "BAD INPUT" in capsys.readouterr().out


def test_check_disabled(isolated, monkeypatch, capsys):
    monkeypatch.setenv("PRINTER_ENABLED", "no")
    assert cli.main(["check"]) == 1
    assert "Printing disabled" in capsys.readouterr().out


def test_non_utf8_input_reports_bad_input(isolated, capsys):
    path = isolated / "order.json"
    path.write_bytes(b'{"id": "\xff\xfe"}')
    assert cli.main(["order", str(path)]) == 2
    assert "BAD INPUT" in capsys.readouterr().out
