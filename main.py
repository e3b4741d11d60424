#!/usr/bin/env python3
"""
PlanHaus command line: run the dev backend or inspect a project through the
client sync layer.

Usage:
    python main.py serve                     # http://127.0.0.1:8000
    python main.py serve --port 9000 --reload
    python main.py budget                    # category summary of the first project
    python main.py vendors --search bloom --sort category
    python main.py analyze quotes.xlsx contract.pdf

The client commands talk to PLANHAUS_BASE_URL (default http://127.0.0.1:8000)
and sign in as the demo user when no stored session is valid.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from client import ApiError, build_services
from client.uploads import UploadFile
from utils.config import ClientConfig, ServerConfig
from utils.formatting import TableFormatter, format_currency, format_percent
from utils.logs import configure_logging
from views.budget import calculate_budget_progress
from views.vendors import SORT_FIELDS, filter_vendors, sort_vendors, vendor_stats

logger = logging.getLogger(__name__)


def _signed_in_project(services):
    """Restore the session and return the user's first project, or exit."""
    services.auth.restore()
    project = services.hooks.use_current_project()
    if project.is_error:
        print(f"Error: {project.error}")
        sys.exit(1)
    if project.data is None:
        print("No projects found for this account.")
        sys.exit(1)
    return project.data


def cmd_serve(args: argparse.Namespace) -> None:
    import uvicorn

    cfg = ServerConfig.from_env()
    host = args.host or cfg.api_host
    port = args.port or cfg.api_port
    configure_logging(cfg.log_format)
    print(f"Starting PlanHaus dev backend at http://{host}:{port}")
    uvicorn.run("api.app:app", host=host, port=port, reload=args.reload, log_level="info")


def cmd_budget(args: argparse.Namespace) -> None:
    with build_services(ClientConfig.from_env()) as services:
        project = _signed_in_project(services)
        summary = services.hooks.use_budget_summary(project.id)

        table = TableFormatter(["Category", "Estimated", "Actual", "Remaining", "Spent", "Items"])
        for cat in summary.categories:
            table.add_row([
                cat.name,
                format_currency(cat.estimated),
                format_currency(cat.actual),
                format_currency(cat.remaining),
                format_percent(cat.progress),
                cat.item_count,
            ])
        print(f"{project.name}: budget {format_currency(project.budget)}")
        print()
        print(table.to_string())
        print()
        progress = calculate_budget_progress(project.budget, summary.total_actual)
        print(f"Total estimated {format_currency(summary.total_estimated)}, "
              f"spent {format_currency(summary.total_actual)} "
              f"({format_percent(progress['percentage'])}, {progress['status']})")


def cmd_vendors(args: argparse.Namespace) -> None:
    with build_services(ClientConfig.from_env()) as services:
        project = _signed_in_project(services)
        result = services.hooks.use_vendors(project.id)
        if result.is_error:
            print(f"Error: {result.error}")
            sys.exit(1)
        vendors = filter_vendors(result.data or [], search=args.search,
                                 category=args.category, status=args.status)
        vendors = sort_vendors(vendors, sort_by=args.sort, descending=args.desc)

        table = TableFormatter(["Name", "Category", "Status", "Quote"])
        for vendor in vendors:
            table.add_row([vendor.name, vendor.category, vendor.status,
                           format_currency(vendor.estimated_cost)])
        print(table.to_string())
        stats = vendor_stats(vendors)
        print()
        print(f"{stats.total} vendors, {stats.booked} booked ({stats.booked_percent}%), "
              f"quotes {format_currency(stats.total_quotes)}")


def cmd_analyze(args: argparse.Namespace) -> None:
    with build_services(ClientConfig.from_env()) as services:
        services.auth.restore()
        files = [UploadFile.from_path(p) for p in args.files]
        handles = services.analyzer.analyze_many(files)
        failed = False
        for handle in handles:
            try:
                print(f"{handle.file.name}: {handle.result()}")
            except ApiError as e:
                failed = True
                print(f"{handle.file.name}: failed ({e.message})")
        if failed:
            sys.exit(1)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        description="PlanHaus dev backend and client tools.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the development backend")
    serve.add_argument("--host", default=None, help="Bind address (default: APP_HOST or 127.0.0.1)")
    serve.add_argument("--port", type=int, default=None, help="Port (default: APP_PORT or 8000)")
    serve.add_argument("--reload", action="store_true",
                       help="Enable auto-reload on file changes (development mode)")
    serve.set_defaults(func=cmd_serve)

    budget = sub.add_parser("budget", help="Print the budget by category")
    budget.set_defaults(func=cmd_budget)

    vendors = sub.add_parser("vendors", help="List vendors, booked first")
    vendors.add_argument("--search", default="", help="Match name, category or email")
    vendors.add_argument("--category", default="", help="Only this category")
    vendors.add_argument("--status", default="", help="Only this status")
    vendors.add_argument("--sort", default="name", choices=SORT_FIELDS,
                         help="Secondary sort field (default: name)")
    vendors.add_argument("--desc", action="store_true", help="Sort descending")
    vendors.set_defaults(func=cmd_vendors)

    analyze = sub.add_parser("analyze", help="Upload files for analysis")
    analyze.add_argument("files", nargs="+", type=Path, help="PDF, XLSX, XLS or CSV files")
    analyze.set_defaults(func=cmd_analyze)

    args = parser.parse_args(argv)
    configure_logging(ClientConfig.from_env().log_format,
                      logging.DEBUG if args.verbose else logging.WARNING)
    try:
        args.func(args)
    except ApiError as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
