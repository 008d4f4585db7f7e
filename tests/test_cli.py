from __future__ import annotations

import json
from pathlib import Path

import pytest

from expense_tracker.cli.main import main
from expense_tracker.tips import STATIC_TIPS


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    (tmp_path / "README.md").write_text("marker", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("EXPENSE_STORE_PATH", raising=False)
    return tmp_path


def test_expenses_add_list_and_summary(workspace: Path, capsys: pytest.CaptureFixture[str]) -> None:
    store = str(workspace / "ledger.json")
    assert main(["expenses", "--store", store, "add", "--amount", "12.5", "--date", "2024-02-03", "--category", "Food"]) == 0
    assert main(["expenses", "--store", store, "add", "--amount", "40", "--date", "2024-02-10", "--category", "Travel"]) == 0
    assert main(["expenses", "--store", store, "add", "--amount", "7", "--date", "2024-03-01"]) == 0
    capsys.readouterr()

    assert main(["expenses", "--store", store, "list", "--month", "2024-02"]) == 0
    listed = json.loads(capsys.readouterr().out)
    assert [e["amount"] for e in listed] == [40.0, 12.5]

    assert main(["summary", "--store", store, "--month", "2024-02"]) == 0
    report = json.loads(capsys.readouterr().out)
    assert report["total"] == 52.5
    assert report["by_category"] == {"Food": 12.5, "Travel": 40.0}


def test_default_store_lives_under_var(workspace: Path) -> None:
    assert main(["expenses", "add", "--amount", "1", "--date", "2024-01-01"]) == 0
    assert (workspace / "var" / "expenses.json").is_file()


def test_destructive_commands_need_confirmation(workspace: Path, capsys: pytest.CaptureFixture[str]) -> None:
    store = str(workspace / "ledger.json")
    main(["expenses", "--store", store, "add", "--amount", "3", "--date", "2024-01-01"])
    expense_id = json.loads(capsys.readouterr().out)["id"]

    assert main(["expenses", "--store", store, "delete", str(expense_id)]) == 2
    assert main(["expenses", "--store", store, "clear"]) == 2
    assert main(["expenses", "--store", store, "delete", str(expense_id), "--yes"]) == 0
    assert main(["expenses", "--store", store, "delete", str(expense_id), "--yes"]) == 1


def test_invalid_input_exits_with_usage_code(workspace: Path) -> None:
    store = str(workspace / "ledger.json")
    assert main(["expenses", "--store", store, "add", "--amount", "-4", "--date", "2024-01-01"]) == 2
    assert main(["summary", "--store", store, "--month", "2024-1"]) == 2


def test_tips_use_static_table_offline(workspace: Path, capsys: pytest.CaptureFixture[str]) -> None:
    store = str(workspace / "ledger.json")
    main(["expenses", "--store", store, "add", "--amount", "90", "--date", "2024-04-04", "--category", "Groceries"])
    capsys.readouterr()
    assert main(["tips", "--store", store, "--month", "2024-04"]) == 0
    assert capsys.readouterr().out.strip() in STATIC_TIPS["Groceries"]


def test_extract_local(workspace: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = workspace / "receipt.txt"
    source.write_text("Vendor: Corner Supermarket\nDate: 05/03/2024\nTOTAL: 1,020.00\n", encoding="utf-8")
    assert main(["extract", "--local", "--source", str(source)]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data == {
        "amount": 1020.0,
        "date": "2024-05-03",
        "description": "Corner Supermarket",
        "category": "Groceries",
    }
