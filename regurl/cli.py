"""
CLI (Command Line Interface).

Quick terminal commands, e.g.:

    regurl --data data.json url --record-id a01 --object-type course_session
    regurl --data data.json url --record-id p01 --object-type program --location "Main Pool" --age 8
    regurl --api https://api.example.org options --record-id p01 --object-type program
    regurl --data data.json interactive --record-id a01 --object-type course_session

Note:
- The interactive menu lives in regurl/interactive.py
- `url` prints only the URL on stdout so it can be piped; messages go to stderr
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from datetime import date, time
from typing import Any, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from regurl.builder import RegistrationUrlBuilder
from regurl.compose import decode_filters, query_params
from regurl.errors import RegurlError, UnknownFilterError
from regurl.filters import DAYS_OF_WEEK, FilterField
from regurl.loader import BASE_URL, CHANNEL_NAMES
from regurl.logging_config import configure_logging
from regurl.notify import ConsoleNotifier
from regurl.settings import FILE_BACKEND, HTTP_BACKEND, BackendSettings, BuilderSettings, build_backend, load_settings


logger = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True)

# argparse dest -> filter field
FILTER_ARGS: dict[str, FilterField] = {
    "location": FilterField.LOCATION,
    "session": FilterField.SESSION,
    "start_date": FilterField.START_DATE,
    "end_date": FilterField.END_DATE,
    "start_time": FilterField.START_TIME,
    "end_time": FilterField.END_TIME,
    "day": FilterField.DAY_OF_WEEK,
    "age": FilterField.AGE,
    "course_option_id": FilterField.COURSE_OPTION_ID,
    "show_unavailable": FilterField.SHOW_UNAVAILABLE_COURSE_OPTIONS,
    "instructor": FilterField.INSTRUCTOR,
    "grade": FilterField.GRADE,
}


def _iso_date(text: str) -> date:
    try:
        return date.fromisoformat(text.strip())
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date {text!r} (expected YYYY-MM-DD)") from None


def _iso_time(text: str) -> time:
    try:
        return time.fromisoformat(text.strip())
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid time {text!r} (expected HH:MM)") from None


def _settings_from_args(args: argparse.Namespace) -> BuilderSettings:
    """
    Settings file first, then command line flags on top.
    """
    settings = load_settings(args.settings)

    backend = settings.backend
    if args.api:
        backend = BackendSettings(kind=HTTP_BACKEND, url=args.api, timeout=backend.timeout)
    elif args.data:
        backend = BackendSettings(kind=FILE_BACKEND, path=args.data, timeout=backend.timeout)

    return settings.with_overrides(registration_url_path=args.registration_path, backend=backend)


async def _apply_filter_args(args: argparse.Namespace, builder: RegistrationUrlBuilder) -> None:
    for dest, field_name in FILTER_ARGS.items():
        value: Any = getattr(args, dest, None)
        if value is None or value is False or value == []:
            continue
        await builder.set_filter(field_name, value)


def _print_explain(url: str) -> None:
    table = Table(title="URL parts", box=box.SIMPLE)
    table.add_column("Parameter")
    table.add_column("Value")
    for key, value in query_params(url).items():
        table.add_row(escape(key), escape(value))
    for key, value in decode_filters(url).items():
        table.add_row(f"filters.{key}", escape(str(value)))
    err_console.print(table)


async def _cmd_url(args: argparse.Namespace, builder: RegistrationUrlBuilder) -> int:
    """
    Load data, apply the filter flags, print the URL; optionally copy/open it.
    """
    await builder.start()
    await _apply_filter_args(args, builder)

    url = builder.url
    print(url)

    if args.explain:
        _print_explain(url)

    # Never hand a URL without a base to the clipboard or the browser
    if not builder.base_url:
        err_console.print("Base URL is not available; the URL above is incomplete.")
        return 1

    rc = 0
    if args.copy:
        ok = await builder.copy_url()
        rc = 0 if ok else 1
    if args.open:
        builder.open_url()
    return rc


def _options_table(builder: RegistrationUrlBuilder, channel: str) -> Table:
    state = builder.loader.state(channel)
    table = Table(title=f"{channel} ({state.status.value})", box=box.SIMPLE)
    table.add_column("#", justify="right")
    table.add_column("Label")
    table.add_column("Value")
    for i, opt in enumerate(builder.options(channel) or [], start=1):
        table.add_row(str(i), escape(opt.label), escape(opt.value))
    return table


async def _cmd_options(args: argparse.Namespace, builder: RegistrationUrlBuilder) -> int:
    """
    Print every reference dataset with its load status.
    """
    await builder.start()

    base_state = builder.loader.state(BASE_URL)
    console.print(f"Base URL ({base_state.status.value}): {escape(builder.base_url or '-')}")
    if builder.display_name is not None:
        console.print(f"Record: {escape(builder.display_name)}")

    rc = 0
    for channel in CHANNEL_NAMES:
        if channel == BASE_URL:
            continue
        if builder.loader.state(channel).is_errored:
            rc = 1
        console.print(_options_table(builder, channel))
    return rc


async def _run(args: argparse.Namespace, builder: RegistrationUrlBuilder) -> int:
    try:
        if args.command == "url":
            return await _cmd_url(args, builder)
        if args.command == "options":
            return await _cmd_options(args, builder)
        if args.command == "interactive":
            from regurl.interactive import run_interactive

            await run_interactive(builder)
            return 0
        return 2
    finally:
        builder.close()


def _add_record_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--record-id", "-r", type=str, required=True, help="Record ID (e.g. a01)")
    p.add_argument(
        "--object-type",
        "-t",
        type=str,
        required=True,
        help="Record type: program, course, course_session (or the full API name)",
    )


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="regurl", description="Registration URL builder")
    parser.add_argument("--settings", type=str, default=None, help="Settings JSON file")
    parser.add_argument("--data", type=str, default=None, help="Read reference data from a JSON file")
    parser.add_argument("--api", type=str, default=None, help="Read reference data from a registration API")
    parser.add_argument("--registration-path", type=str, default=None, help="Registration page path or URL")
    parser.add_argument("--log-level", type=str, default="WARNING", help="Logging level (default WARNING)")
    sub = parser.add_subparsers(dest="command", required=True)

    p_url = sub.add_parser("url", help="Build a registration URL")
    _add_record_args(p_url)
    p_url.add_argument("--location", type=str, help="Location name")
    p_url.add_argument("--session", type=str, help="Session ID")
    p_url.add_argument("--start-date", type=_iso_date, help="YYYY-MM-DD")
    p_url.add_argument("--end-date", type=_iso_date, help="YYYY-MM-DD")
    p_url.add_argument("--start-time", type=_iso_time, help="HH:MM")
    p_url.add_argument("--end-time", type=_iso_time, help="HH:MM")
    p_url.add_argument("--day", action="append", choices=DAYS_OF_WEEK, help="Day of week (repeatable)")
    p_url.add_argument("--age", type=int, help="Participant age")
    p_url.add_argument("--course-option-id", type=str, help="Course option ID (course sessions only)")
    p_url.add_argument("--show-unavailable", action="store_true", help="Include unavailable course options")
    p_url.add_argument("--instructor", type=str, help="Instructor name")
    p_url.add_argument("--grade", type=str, help="Grade")
    p_url.add_argument("--copy", action="store_true", help="Copy the URL to the clipboard")
    p_url.add_argument("--open", action="store_true", help="Open the URL in a browser tab")
    p_url.add_argument("--explain", action="store_true", help="Show the URL parameters")

    p_options = sub.add_parser("options", help="Show reference data (locations, sessions, ...)")
    _add_record_args(p_options)

    p_interactive = sub.add_parser("interactive", help="Interactive menu mode")
    _add_record_args(p_interactive)

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    level = getattr(logging, str(args.log_level).upper(), logging.WARNING)
    configure_logging(level=level if isinstance(level, int) else logging.WARNING)

    try:
        settings = _settings_from_args(args)
        backend = build_backend(settings.backend)
    except RegurlError as e:
        err_console.print(f"Error: {e}")
        raise SystemExit(1)

    builder = RegistrationUrlBuilder(
        backend,
        args.record_id.strip(),
        args.object_type,
        ConsoleNotifier(err_console),
        settings=settings,
    )

    if not builder.has_access:
        err_console.print("You do not have permission to get public registration URLs.")
        raise SystemExit(1)

    try:
        raise SystemExit(asyncio.run(_run(args, builder)))
    except UnknownFilterError as e:
        err_console.print(f"Error: {e}")
        raise SystemExit(2)
    except RegurlError as e:
        err_console.print(f"Error: {e}")
        raise SystemExit(1)
