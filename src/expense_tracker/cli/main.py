from __future__ import annotations

import argparse
import base64
import json
import mimetypes
import os
import sys
from dataclasses import replace
from datetime import date
from typing import Optional, Sequence

from ..ai.client import AIClient
from ..config import Settings, load_settings
from ..errors import ExpenseTrackerError, InvalidExpenseError, classify_failure
from ..extraction import ExtractionCache, ReceiptFieldExtractor, ReceiptProcessingService
from ..ledger import ExpenseStore, MonthlySummary, filter_by_month, tips_payload
from ..ledger.summary import validate_month
from ..logging import get_logger
from ..paths import expand_abs
from ..tips import TipGenerator

LOG = get_logger("cli-main")


def _settings() -> Settings:
    return load_settings(os.getcwd())


def _store(ns: argparse.Namespace, settings: Settings) -> ExpenseStore:
    path = expand_abs(ns.store) if getattr(ns, "store", None) else settings.store_path
    return ExpenseStore(path)


def _month(value: Optional[str]) -> str:
    return validate_month(value) if value else date.today().isoformat()[:7]


def _print_json(payload: object) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _read_image_b64(path: str) -> str:
    mime, _ = mimetypes.guess_type(path)
    with open(expand_abs(path), "rb") as f:
        data = base64.b64encode(f.read()).decode("ascii")
    return f"data:{mime or 'image/jpeg'};base64,{data}"


def _add_serve_cli(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    serve = subparsers.add_parser("serve", help="Run the receipt/tips HTTP API.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true", help="Enable auto-reload (development only)")
    serve.add_argument("--log-level", default="info")
    serve.add_argument("--static-dir", help="Serve a built frontend from this directory")
    serve.add_argument(
        "--allow-origin",
        action="append",
        dest="allow_origins",
        help="Allowed CORS origin (can be provided multiple times, use '*' for any).",
    )

    def _serve(ns: argparse.Namespace) -> int:
        from ..web import create_app
        import uvicorn

        app = create_app(
            _settings(),
            static_dir=ns.static_dir,
            allow_origins=ns.allow_origins,
        )
        uvicorn.run(app, host=ns.host, port=ns.port, reload=ns.reload, log_level=ns.log_level)
        return 0

    serve.set_defaults(handler=_serve)


def _add_expenses_cli(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    expenses = subparsers.add_parser("expenses", help="Manage the local expense ledger.")
    expenses.add_argument("--store", help="Ledger JSON file (default: EXPENSE_STORE_PATH or var/expenses.json)")
    exp_sub = expenses.add_subparsers(dest="expenses_command", required=True)

    add = exp_sub.add_parser("add", help="Add an expense")
    add.add_argument("--amount", type=float, required=True)
    add.add_argument("--date", default=None, help="YYYY-MM-DD (default: today)")
    add.add_argument("--description", default="")
    add.add_argument("--category", default="Other")

    def _add(ns: argparse.Namespace) -> int:
        store = _store(ns, _settings())
        try:
            expense = store.add(
                amount=ns.amount,
                date=ns.date or date.today().isoformat(),
                description=ns.description,
                category=ns.category,
            )
        except InvalidExpenseError as exc:
            LOG.error(f"Invalid expense: {exc}")
            return 2
        _print_json(expense.to_dict())
        return 0

    add.set_defaults(handler=_add)

    lst = exp_sub.add_parser("list", help="List expenses")
    lst.add_argument("--month", help="Only show YYYY-MM")

    def _list(ns: argparse.Namespace) -> int:
        items = _store(ns, _settings()).load()
        if ns.month:
            items = filter_by_month(items, validate_month(ns.month))
        _print_json([e.to_dict() for e in items])
        return 0

    lst.set_defaults(handler=_list)

    delete = exp_sub.add_parser("delete", help="Delete one expense by id")
    delete.add_argument("id", type=int)
    delete.add_argument("--yes", action="store_true", help="Confirm deletion")

    def _delete(ns: argparse.Namespace) -> int:
        if not ns.yes:
            LOG.error("Refusing to delete without --yes")
            return 2
        return 0 if _store(ns, _settings()).delete(ns.id) else 1

    delete.set_defaults(handler=_delete)

    clear = exp_sub.add_parser("clear", help="Delete every expense")
    clear.add_argument("--yes", action="store_true", help="Confirm clearing the ledger")

    def _clear(ns: argparse.Namespace) -> int:
        if not ns.yes:
            LOG.error("Refusing to clear the ledger without --yes")
            return 2
        removed = _store(ns, _settings()).clear()
        print(removed)
        return 0

    clear.set_defaults(handler=_clear)


def main(argv: Sequence[str] | None = None) -> int:
    provided = list(argv) if argv is not None else sys.argv[1:]
    LOG.debug(f"CLI invoked with arguments: {provided}")

    parser = argparse.ArgumentParser(
        prog="expense-tracker",
        description="Track expenses, extract receipt fields and get budget tips.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    _add_serve_cli(subparsers)

    extract_cmd = subparsers.add_parser("extract", help="Extract expense fields from receipt text.")
    extract_cmd.add_argument("--source", help="Text file to read (default: stdin)")
    extract_cmd.add_argument("--local", action="store_true", help="Use the regex fallback only")

    def _extract(ns: argparse.Namespace) -> int:
        if ns.source:
            with open(expand_abs(ns.source), "r", encoding="utf-8") as f:
                text = f.read()
        else:
            text = sys.stdin.read()
        settings = _settings()
        if ns.local:
            settings = replace(settings, openai_api_key=None)
        ai = AIClient(settings)
        try:
            _print_json(ReceiptFieldExtractor(ai).extract(text).to_dict())
        finally:
            ai.close()
        return 0

    extract_cmd.set_defaults(handler=_extract)

    scan_cmd = subparsers.add_parser("scan", help="Process a receipt image (OCR + field extraction).")
    scan_cmd.add_argument("--source", required=True, help="Path to receipt image")
    scan_cmd.add_argument("--add", action="store_true", help="Store the result in the ledger")
    scan_cmd.add_argument("--store", help="Ledger JSON file")

    def _scan(ns: argparse.Namespace) -> int:
        settings = _settings()
        ai = AIClient(settings)
        service = ReceiptProcessingService(
            ai, ReceiptFieldExtractor(ai, ExtractionCache(settings.cache_size, settings.cache_ttl))
        )
        try:
            result = service.process(_read_image_b64(ns.source))
        except (ExpenseTrackerError, OSError) as exc:
            LOG.error(f"Receipt processing failed: {exc}")
            return 1
        except Exception as exc:
            status, error = classify_failure(exc)
            LOG.error(f"{error} ({status}): {exc}")
            return 1
        finally:
            ai.close()
        _print_json(result.to_dict())
        if ns.add:
            expense = _store(ns, settings).add(
                amount=result.amount if result.amount is not None else 0.0,
                date=result.date or date.today().isoformat(),
                description=result.merchant or "",
                category=result.category,
            )
            LOG.info(f"Stored as expense id={expense.id}")
        return 0

    scan_cmd.set_defaults(handler=_scan)

    tips_cmd = subparsers.add_parser("tips", help="Get a budget tip for a month of the ledger.")
    tips_cmd.add_argument("--month", help="YYYY-MM (default: current month)")
    tips_cmd.add_argument("--simple", action="store_true", help="Skip the model and use static tips")
    tips_cmd.add_argument("--store", help="Ledger JSON file")

    def _tips(ns: argparse.Namespace) -> int:
        settings = _settings()
        month = _month(ns.month)
        selected = filter_by_month(_store(ns, settings).load(), month)
        ai = AIClient(settings)
        try:
            print(TipGenerator(ai).generate(tips_payload(selected), force_simple=ns.simple))
        finally:
            ai.close()
        return 0

    tips_cmd.set_defaults(handler=_tips)

    summary_cmd = subparsers.add_parser("summary", help="Monthly totals per category.")
    summary_cmd.add_argument("--month", help="YYYY-MM (default: current month)")
    summary_cmd.add_argument("--store", help="Ledger JSON file")

    def _summary(ns: argparse.Namespace) -> int:
        settings = _settings()
        report = MonthlySummary.build(_store(ns, settings).load(), _month(ns.month))
        _print_json(report.to_dict())
        return 0

    summary_cmd.set_defaults(handler=_summary)

    _add_expenses_cli(subparsers)

    args = parser.parse_args(provided)
    try:
        code = args.handler(args)
    except ValueError as exc:
        LOG.error(str(exc))
        code = 2
    LOG.debug(f"Subcommand '{args.command}' finished with exit code {code}.")
    return code


if __name__ == "__main__":
    sys.exit(main())
