"""Tradelog command line interface."""

import argparse
import asyncio
import sys
from dataclasses import replace
from pathlib import Path
from uuid import uuid4

from tradelog.backup.codec import backup_filename, dumps
from tradelog.backup.export import SheetExporter
from tradelog.config import Settings, load_settings
from tradelog.errors import TradelogError, TradeValidationError
from tradelog.ingest.normalize import parse_number
from tradelog.ingest.quick_add import parse_quick_add
from tradelog.ingest.sheet import (
    MAPPABLE_FIELDS,
    auto_map_headers,
    import_rows,
    missing_required,
    read_sheet,
)
from tradelog.journal.forms import TradeForm, apply_edit, build_trade
from tradelog.journal.store import JournalStore
from tradelog.journal.types import DashboardMetrics, FilterState, PnlOutcome, Trade, TradeDirection
from tradelog.monitor.logger import LogContext, setup_logging
from tradelog.persistence import Database, Repository

FIELD_KEYS = [f.key for f in MAPPABLE_FIELDS]


def _add_filter_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--from", dest="start_date", default="", help="Start date (inclusive)")
    parser.add_argument("--to", dest="end_date", default="", help="End date (inclusive)")
    parser.add_argument("--asset", default="", help="Asset substring, case-insensitive")
    parser.add_argument(
        "--outcome",
        choices=[o.value for o in PnlOutcome],
        default=PnlOutcome.ALL.value,
        help="Closed trade outcome",
    )
    parser.add_argument(
        "--id",
        dest="trade_id",
        default="",
        help="Trade id or range like 4-9 (overrides other filters)",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="tradelog",
        description="Tradelog - Derivatives Trade Journal",
    )

    parser.add_argument(
        "--db",
        type=str,
        default=None,
        help="Database path (default: from config)",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Log level (default: from config)",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    import_csv = commands.add_parser("import-csv", help="Import trades from a CSV export")
    import_csv.add_argument("path", type=Path, help="CSV file")
    import_csv.add_argument(
        "--map",
        action="append",
        default=[],
        metavar="FIELD=COLUMN",
        help=f"Override a column mapping. Fields: {', '.join(FIELD_KEYS)}",
    )

    quick_add = commands.add_parser("quick-add", help="Add a trade from a comma separated line")
    quick_add.add_argument("text", help="date,asset,direction,leverage,entry,exit,sl,tp,size,journal")
    quick_add.add_argument(
        "--open",
        action="store_true",
        help="Save as an open trade when the line has no exit price",
    )

    add = commands.add_parser("add", help="Add a trade")
    add.add_argument("--date", required=True)
    add.add_argument("--asset", required=True)
    add.add_argument("--direction", choices=["LONG", "SHORT"], default="LONG")
    add.add_argument("--entry", required=True)
    add.add_argument("--size", required=True)
    add.add_argument("--exit", default="")
    add.add_argument("--leverage", default="")
    add.add_argument("--stop-loss", default="")
    add.add_argument("--take-profit", default="")
    add.add_argument("--journal", default="")

    close = commands.add_parser("close", help="Close an open trade")
    close.add_argument("id", type=int)
    close.add_argument("--exit", required=True)

    delete = commands.add_parser("delete", help="Delete a trade")
    delete.add_argument("id", type=int)

    list_cmd = commands.add_parser("list", help="List trades")
    _add_filter_arguments(list_cmd)

    metrics = commands.add_parser("metrics", help="Show performance metrics")
    _add_filter_arguments(metrics)

    capital = commands.add_parser("capital", help="Show or set the initial capital")
    capital.add_argument("value", nargs="?", default=None)

    backup = commands.add_parser("backup", help="Write a JSON backup")
    backup.add_argument("--output", type=Path, default=None)

    restore = commands.add_parser("restore", help="Replace the journal from a JSON backup")
    restore.add_argument("path", type=Path)

    export = commands.add_parser("export", help="Export trades as tab separated values")
    export.add_argument("--output", type=Path, default=None, help="File (default: stdout)")

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    return build_parser().parse_args(argv)


def apply_args_to_settings(args: argparse.Namespace, settings: Settings) -> Settings:
    """Apply command line arguments to settings."""
    if args.db:
        settings.storage.path = Path(args.db)

    if args.log_level:
        settings.logging.level = args.log_level

    return settings


def filter_state_from_args(args: argparse.Namespace) -> FilterState:
    return FilterState(
        start_date=args.start_date,
        end_date=args.end_date,
        asset=args.asset,
        pnl_outcome=PnlOutcome(args.outcome),
        trade_id=args.trade_id,
    )


def format_trade(trade: Trade) -> str:
    exit_text = str(trade.exit_price) if trade.exit_price is not None else "-"
    pnl_text = f"{trade.pnl:.2f}" if trade.pnl is not None else "open"
    return (
        f"#{trade.id:<4} {trade.date:%Y-%m-%d}  {trade.asset:<12} "
        f"{trade.direction.value:<5} {trade.leverage:<5} "
        f"entry={trade.entry_price} exit={exit_text} size={trade.size}  pnl={pnl_text}"
    )


def format_metrics(metrics: DashboardMetrics) -> list[str]:
    streak = metrics.current_streak
    return [
        f"Closed trades:   {metrics.total_trades}",
        f"Total PnL:       {metrics.total_pnl:.2f}",
        f"Win rate:        {metrics.win_rate:.2f}% ({metrics.total_wins})",
        f"Loss rate:       {metrics.loss_rate:.2f}% ({metrics.total_losses})",
        f"Average win:     {metrics.average_win:.2f}",
        f"Average loss:    {metrics.average_loss:.2f}",
        f"Profit factor:   {metrics.profit_factor:.2f}",
        f"Max win streak:  {metrics.max_win_streak_trades}",
        f"Max loss streak: {metrics.max_loss_streak_trades}",
        f"Current streak:  {streak.count} {streak.type}",
        f"Equity:          {metrics.equity_chart_data[-1].equity:.2f}",
    ]


async def run_command(args: argparse.Namespace, store: JournalStore, settings: Settings) -> int:
    """Execute one subcommand against a loaded store."""
    if args.command == "import-csv":
        sheet = read_sheet(args.path.read_text(encoding="utf-8-sig"))
        mapping = auto_map_headers(sheet.headers)
        for override in args.map:
            key, _, column = override.partition("=")
            if key not in FIELD_KEYS or column not in sheet.headers:
                print(f"Invalid mapping '{override}'", file=sys.stderr)
                return 2
            mapping[key] = column
        missing = missing_required(mapping)
        if missing:
            print(f"Unmapped required fields: {', '.join(missing)}", file=sys.stderr)
            return 2
        report = import_rows(sheet, mapping)
        await store.import_trades(report.trades)
        print(f"Imported {report.imported_count} trades, skipped {report.skipped_count}")
        for error in report.skipped:
            print(f"  row {error.row_number}: {error.reason}")

    elif args.command == "quick-add":
        entry = parse_quick_add(args.text)
        if entry is None:
            print("Could not parse the line: need at least 8 fields and a valid date", file=sys.stderr)
            return 2
        if not entry.has_exit and not args.open:
            print("No exit price; pass --open to save as an open trade", file=sys.stderr)
            return 2
        trade = await store.add_trade(build_trade(entry.to_form()))
        print(format_trade(trade))

    elif args.command == "add":
        form = TradeForm(
            date=args.date,
            asset=args.asset,
            direction=TradeDirection(args.direction),
            leverage=args.leverage,
            entry_price=args.entry,
            exit_price=args.exit,
            size=args.size,
            stop_loss=args.stop_loss,
            take_profit=args.take_profit,
            journal=args.journal,
        )
        trade = await store.add_trade(build_trade(form))
        print(format_trade(trade))

    elif args.command == "close":
        existing = store.ledger.get(args.id)
        if existing is None:
            print(f"Trade #{args.id} not found", file=sys.stderr)
            return 1
        form = replace(TradeForm.from_trade(existing), exit_price=args.exit)
        updated = apply_edit(existing, form)
        await store.update_trade(updated)
        print(format_trade(store.ledger.get(args.id)))

    elif args.command == "delete":
        if not await store.delete_trade(args.id):
            print(f"Trade #{args.id} not found", file=sys.stderr)
            return 1
        print(f"Deleted trade #{args.id}; {len(store.ledger)} trades remain")

    elif args.command == "list":
        for trade in store.filtered(filter_state_from_args(args)):
            print(format_trade(trade))

    elif args.command == "metrics":
        state = filter_state_from_args(args)
        if state == FilterState():
            metrics = store.metrics()
        else:
            metrics = store.filtered_metrics(state)
        print("\n".join(format_metrics(metrics)))

    elif args.command == "capital":
        if args.value is not None:
            value = parse_number(args.value)
            if value < 0:
                print("Initial capital cannot be negative", file=sys.stderr)
                return 2
            await store.set_initial_capital(value)
        print(f"Initial capital: {store.initial_capital}")

    elif args.command == "backup":
        path = args.output or Path(backup_filename())
        path.write_text(dumps(store.snapshot()), encoding="utf-8")
        print(f"Backup written to {path}")

    elif args.command == "restore":
        state = await store.restore(args.path.read_text(encoding="utf-8"))
        print(f"Restored {len(state.trades)} trades from backup of {state.timestamp}")

    elif args.command == "export":
        exporter = SheetExporter(
            decimal_separator=settings.export.decimal_separator,
            thousands_separator=settings.export.thousands_separator,
        )
        text = exporter.render(store.trades)
        if args.output:
            args.output.write_text(text, encoding="utf-8")
            print(f"Exported {len(store.trades)} trades to {args.output}")
        else:
            print(text)

    if store.pending_nudge is not None:
        print(f"\n{store.pending_nudge.message}")
    return 0


async def async_main(args: argparse.Namespace, settings: Settings) -> int:
    """Async main entry point."""
    async with Database(settings.storage.path) as db:
        store = JournalStore(
            Repository(db),
            audit_config=settings.audit,
            default_capital=settings.journal.default_initial_capital,
        )
        await store.load()
        try:
            with LogContext(uuid4().hex[:8]):
                return await run_command(args, store, settings)
        except TradeValidationError as e:
            for field_name, message in e.errors.items():
                print(f"{field_name}: {message}", file=sys.stderr)
            return 2
        except TradelogError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    settings = load_settings()
    settings = apply_args_to_settings(args, settings)

    setup_logging(
        log_dir=settings.logging.log_dir,
        level=settings.logging.level,
        json_format=settings.logging.json_format,
    )

    return asyncio.run(async_main(args, settings))
