"""End-to-end tests for the command line front end."""

import json

import pytest

from tests.fixtures import SAMPLE_SHEET
from tradelog.cli import apply_args_to_settings, async_main, parse_args
from tradelog.config import Settings


@pytest.fixture
def run(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    db = str(tmp_path / "journal.db")

    async def _run(*argv: str) -> int:
        args = parse_args(["--db", db, *argv])
        return await async_main(args, apply_args_to_settings(args, Settings()))

    return _run


@pytest.mark.asyncio
async def test_import_list_and_metrics(run, tmp_path, capsys):
    """Test importing a CSV export and reading it back."""
    print("\n" + "=" * 60)
    print("Test: CLI import, list, metrics")
    print("=" * 60)

    sheet = tmp_path / "operaciones.csv"
    sheet.write_text(SAMPLE_SHEET, encoding="utf-8")

    assert await run("import-csv", str(sheet)) == 0
    output = capsys.readouterr().out
    assert "Imported 2 trades, skipped 1" in output
    assert "row 4" in output

    assert await run("list", "--asset", "eth") == 0
    listed = capsys.readouterr().out.strip().splitlines()
    assert len(listed) == 1
    assert "ETH/USDT" in listed[0]
    assert listed[0].startswith("#2")

    assert await run("capital", "1.000,50") == 0
    assert "1000.50" in capsys.readouterr().out

    assert await run("metrics") == 0
    metrics = capsys.readouterr().out
    print(metrics)
    assert "Closed trades:   2" in metrics
    assert "Win rate:        100.00%" in metrics


@pytest.mark.asyncio
async def test_quick_add_close_and_delete(run, capsys):
    assert await run("quick-add", "15/01/2024,BTC/USDT,long,10x,100,,,,2") == 2
    assert "--open" in capsys.readouterr().err

    assert await run("quick-add", "--open", "15/01/2024,BTC/USDT,long,10x,100,,,,2") == 0
    assert "pnl=open" in capsys.readouterr().out

    assert await run("close", "1", "--exit", "110") == 0
    assert "pnl=20.00" in capsys.readouterr().out

    assert await run("delete", "1") == 0
    assert await run("delete", "1") == 1


@pytest.mark.asyncio
async def test_add_validation_errors(run, capsys):
    code = await run("add", "--date", "2024-01-01", "--asset", "BTC", "--entry", "0", "--size", "1")

    assert code == 2
    assert "entry_price" in capsys.readouterr().err


@pytest.mark.asyncio
async def test_backup_restore_and_export(run, tmp_path, capsys):
    await run("add", "--date", "2024-01-02", "--asset", "BTC", "--entry", "20000", "--exit", "21000", "--size", "0.1")
    backup = tmp_path / "backup.json"

    assert await run("backup", "--output", str(backup)) == 0
    snapshot = json.loads(backup.read_text(encoding="utf-8"))
    assert snapshot["trades"][0]["pnl"] == 100

    await run("delete", "1")
    assert await run("restore", str(backup)) == 0
    capsys.readouterr()

    assert await run("export") == 0
    lines = capsys.readouterr().out.strip().splitlines()
    assert lines[1].split("\t")[:7] == ["1", "02/01/2024", "BTC", "compra", "", "20.000", "21.000"]

    broken = tmp_path / "broken.json"
    broken.write_text('{"trades": []}', encoding="utf-8")
    assert await run("restore", str(broken)) == 1
