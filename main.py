"""
Main Application Runner
Starts the CRT Reports proxy or drives the report client from the command line
"""
import argparse
import json
import logging
import signal
import sys

import pandas as pd

from crt_reports.client.dashboard_client import DashboardClient
from crt_reports.client.fanout import CancelToken
from crt_reports.client.session import Session, SessionManager
from crt_reports.client.settings_store import SettingsStore
from crt_reports.client.storage import ClientStorage
from crt_reports.config.settings import Config
from crt_reports.exceptions.base import AppError, PageCancelled
from crt_reports.pages.batch_pages import BatchReportsPage, BatchStudentsPage
from crt_reports.pages.dashboard_page import AreasPage, DashboardPage
from crt_reports.pages.student_pages import StudentReportPage, StudentReportsPage
from crt_reports.pages.testwise_pages import MissedStudentsPage, TestReportPage, TestReportsPage
from crt_reports.utils.logger import setup_logging

logger = logging.getLogger(__name__)

# page name -> (page class, needs --id)
PAGES = {
    "dashboard": (DashboardPage, False),
    "batches": (BatchReportsPage, False),
    "batch": (BatchStudentsPage, True),
    "students": (StudentReportsPage, False),
    "student": (StudentReportPage, True),
    "tests": (TestReportsPage, False),
    "test": (TestReportPage, True),
    "missed": (MissedStudentsPage, True),
    "areas": (AreasPage, False),
}


def run_server(args) -> int:
    """Run the proxy with Flask's built-in server."""
    from crt_reports.app import create_app

    app = create_app()
    host = args.host or Config.HOST
    port = args.port or Config.PORT
    logger.info(f"Starting CRT Reports proxy on {host}:{port}")
    app.run(host=host, port=port, debug=Config.DEBUG, use_reloader=Config.RELOAD)
    return 0


def run_login(args, manager: SessionManager) -> int:
    session = manager.login(args.username, args.password)
    print(f"Logged in as {session.username} ({session.usertype}, {session.city}, {session.course})")
    return 0


def run_logout(args, manager: SessionManager) -> int:
    manager.logout()
    print("Logged out")
    return 0


def run_settings(args, storage: ClientStorage) -> int:
    store = SettingsStore(storage)
    if args.action == "set":
        values = dict(pair.split("=", 1) for pair in args.values)
        settings = store.save(values)
    else:
        settings = store.load()
    print(json.dumps(settings.model_dump(by_alias=True), indent=2))
    return 0


def run_report(args, manager: SessionManager, client: DashboardClient) -> int:
    page_class, needs_id = PAGES[args.page]
    if needs_id and not args.id:
        print(f"Page '{args.page}' needs --id", file=sys.stderr)
        return 2

    page = page_class(client, args.id) if needs_id else page_class(client)
    session = manager.current() or Session()
    token = CancelToken()

    def cancel_load(signum, frame):
        logger.info("Cancelling page load...")
        token.cancel()

    previous_handler = signal.signal(signal.SIGINT, cancel_load)

    try:
        result = page.run(session, token)
        if not result.ok:
            print(f"Error: {result.error}", file=sys.stderr)
            return 1

        criteria = {"email": args.email} if args.email else {}
        view = page.view(
            result, args.search, sort=args.sort, descending=args.desc,
            page=max(args.page_number - 1, 0), page_size=args.page_size, **criteria,
        )

        if result.summary:
            print(json.dumps(result.summary, indent=2, default=str))
        if view.visible:
            print(pd.DataFrame(view.visible).to_string(index=False))
        print(f"Showing {view.matched} of {view.total} rows")
        if view.page_size:
            print(f"Page {view.page_index + 1} of {view.pages}")

        if args.export:
            path = page.export(view.rows, args.export_dir)
            print(f"Exported to {path}")
        if args.all_students:
            path = page.export_all_students(session, args.all_students, args.export_dir)
            print(f"Exported to {path}")
        return 0
    except PageCancelled:
        print("Cancelled", file=sys.stderr)
        return 130
    finally:
        signal.signal(signal.SIGINT, previous_handler)
        page.cleanup()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="crt-reports", description="CRT Reports dashboard")
    parser.add_argument("--log-level", default=Config.LOG_LEVEL)
    commands = parser.add_subparsers(dest="command", required=True)

    serve = commands.add_parser("serve", help="run the proxy server")
    serve.add_argument("--host")
    serve.add_argument("--port", type=int)

    login = commands.add_parser("login", help="log in through the proxy")
    login.add_argument("username")
    login.add_argument("password")

    commands.add_parser("logout", help="clear the stored session")

    settings = commands.add_parser("settings", help="show or update site settings")
    settings.add_argument("action", choices=("show", "set"))
    settings.add_argument("values", nargs="*", help="key=value pairs for 'set'")

    report = commands.add_parser("report", help="load a report page")
    report.add_argument("page", choices=sorted(PAGES))
    report.add_argument("--id", help="batch, student or test id for detail pages")
    report.add_argument("--search", help="filter on the page's search field")
    report.add_argument("--email", help="filter students by email")
    report.add_argument("--sort", metavar="FIELD", help="sort rows by a field, missing values last")
    report.add_argument("--desc", action="store_true", help="sort in descending order")
    report.add_argument("--page", dest="page_number", type=int, default=1, help="1-based page to show")
    report.add_argument("--page-size", type=int, default=0, help="rows per page, 0 shows all")
    report.add_argument("--export", action="store_true", help="export the filtered rows to Excel")
    report.add_argument("--all-students", metavar="TESTNO", help="export attempted and missed students of a test")
    report.add_argument("--export-dir", default=None)

    return parser


def main(argv=None) -> int:
    """Main application entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level, Config.LOG_TO_FILE)

    if args.command == "serve":
        return run_server(args)

    if getattr(args, "all_students", None) and args.page != "tests":
        parser.error("--all-students is only available on the 'tests' page")
    if getattr(args, "email", None) and args.page != "students":
        parser.error("--email is only available on the 'students' page")
    if getattr(args, "page_size", 0) < 0:
        parser.error("--page-size cannot be negative")

    storage = ClientStorage()
    client = DashboardClient()
    manager = SessionManager(storage, client)

    try:
        if args.command == "login":
            return run_login(args, manager)
        if args.command == "logout":
            return run_logout(args, manager)
        if args.command == "settings":
            return run_settings(args, storage)
        return run_report(args, manager, client)
    except AppError as e:
        logger.error(f"{args.command} failed: {e.message}")
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    finally:
        client.cleanup()


if __name__ == "__main__":
    sys.exit(main())
