from __future__ import annotations

import asyncio
from datetime import date, time
from typing import Any, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from regurl.builder import RegistrationUrlBuilder
from regurl.errors import UnknownFilterError
from regurl.filters import DAYS_OF_WEEK, FIELD_FACETS, FilterField
from regurl.loader import COURSE_OPTIONS, GRADES, INSTRUCTORS, LOCATIONS, SESSIONS


console = Console()

# fields whose value is picked from a reference dataset: field -> (channel, control)
PICKLIST_FIELDS: dict[FilterField, tuple[str, str]] = {
    FilterField.LOCATION: (LOCATIONS, "location"),
    FilterField.SESSION: (SESSIONS, "session"),
    FilterField.COURSE_OPTION_ID: (COURSE_OPTIONS, "course_option"),
    FilterField.INSTRUCTOR: (INSTRUCTORS, "instructor"),
    FilterField.GRADE: (GRADES, "grade"),
}

SESSION_FIELDS = (FilterField.COURSE_OPTION_ID, FilterField.SHOW_UNAVAILABLE_COURSE_OPTIONS)

LABELS: dict[FilterField, str] = {
    FilterField.LOCATION: "Location",
    FilterField.SESSION: "Session",
    FilterField.START_DATE: "Start date",
    FilterField.END_DATE: "End date",
    FilterField.START_TIME: "Start time",
    FilterField.END_TIME: "End time",
    FilterField.DAY_OF_WEEK: "Day of week",
    FilterField.AGE: "Age",
    FilterField.COURSE_OPTION_ID: "Course option",
    FilterField.SHOW_UNAVAILABLE_COURSE_OPTIONS: "Show unavailable course options",
    FilterField.INSTRUCTOR: "Instructor",
    FilterField.GRADE: "Grade",
}


async def _prompt(msg: str) -> str:
    # input() blocks; keep the event loop free for loading channels
    return await asyncio.to_thread(console.input, escape(msg))


def _safe_str(x: Any) -> str:
    if x is None:
        return ""
    if isinstance(x, list):
        return ", ".join(str(v) for v in x)
    return str(x)


def editable_fields(builder: RegistrationUrlBuilder) -> list[FilterField]:
    """
    Course sessions only take a course option; everything else takes the
    regular filters allowed by the enabled facets.
    """
    if builder.is_course_session:
        return list(SESSION_FIELDS)
    facets = builder.settings.facets
    return [f for f, facet in FIELD_FACETS.items() if facet in facets]


def _print_header(builder: RegistrationUrlBuilder, still_loading: bool = False) -> None:
    name = escape(builder.display_name or builder.record_id or "")
    console.print(f"\n=== Registration URL: {name} ===")
    if still_loading or builder.busy:
        console.print("[yellow]Loading...[/]")
    console.print(f"URL: [bold]{escape(builder.url)}[/]")
    if builder.url_is_copied:
        console.print("[green]Copied![/]")


def _print_filters(builder: RegistrationUrlBuilder, fields: list[FilterField]) -> None:
    table = Table(title="Filters", box=box.SIMPLE)
    table.add_column("#", justify="right")
    table.add_column("Filter")
    table.add_column("Value")
    for i, f in enumerate(fields, start=1):
        disabled = f in PICKLIST_FIELDS and builder.is_disabled(PICKLIST_FIELDS[f][1])
        label = f"{LABELS[f]} [dim](no options)[/]" if disabled else LABELS[f]
        table.add_row(str(i), label, escape(_safe_str(builder.filters.get(f))))
    console.print(table)


async def _pick_field(builder: RegistrationUrlBuilder, action: str) -> Optional[FilterField]:
    fields = editable_fields(builder)
    _print_filters(builder, fields)
    pick = (await _prompt(f"Filter number to {action} [blank = back]: ")).strip()
    if not pick:
        return None
    if not pick.isdigit() or not (1 <= int(pick) <= len(fields)):
        console.print("Out of range.")
        return None
    return fields[int(pick) - 1]


async def _ask_option(builder: RegistrationUrlBuilder, f: FilterField) -> Optional[str]:
    channel, control = PICKLIST_FIELDS[f]
    if builder.is_disabled(control):
        console.print("No options available.")
        return None

    options = builder.options(channel) or []
    for i, opt in enumerate(options, start=1):
        console.print(f"{i}) {escape(opt.label)}")
    pick = (await _prompt("Option number: ")).strip()
    if not pick.isdigit() or not (1 <= int(pick) <= len(options)):
        console.print("Out of range.")
        return None
    return options[int(pick) - 1].value


async def _ask_days() -> Optional[list[str]]:
    for i, day in enumerate(DAYS_OF_WEEK, start=1):
        console.print(f"{i}) {day}")
    picks = (await _prompt("Day numbers, comma separated (order is kept): ")).strip()
    days: list[str] = []
    for p in picks.split(","):
        p = p.strip()
        if not p:
            continue
        if not p.isdigit() or not (1 <= int(p) <= len(DAYS_OF_WEEK)):
            console.print(f"Ignoring {p!r}.")
            continue
        day = DAYS_OF_WEEK[int(p) - 1]
        if day not in days:
            days.append(day)
    return days


async def _ask_value(builder: RegistrationUrlBuilder, f: FilterField) -> Any:
    if f in PICKLIST_FIELDS:
        return await _ask_option(builder, f)
    if f is FilterField.DAY_OF_WEEK:
        return await _ask_days()
    if f is FilterField.SHOW_UNAVAILABLE_COURSE_OPTIONS:
        return not builder.filters.show_unavailable_course_options

    raw = (await _prompt(f"{LABELS[f]}: ")).strip()
    if not raw:
        return None
    try:
        if f in (FilterField.START_DATE, FilterField.END_DATE):
            return date.fromisoformat(raw)
        if f in (FilterField.START_TIME, FilterField.END_TIME):
            return time.fromisoformat(raw)
        if f is FilterField.AGE:
            return int(raw)
    except ValueError:
        console.print(f"Invalid value: {raw!r}")
        return None
    return raw


async def _flow_set_filter(builder: RegistrationUrlBuilder) -> None:
    f = await _pick_field(builder, "set")
    if f is None:
        return
    value = await _ask_value(builder, f)
    if value is None:
        return
    try:
        await builder.set_filter(f, value)
    except UnknownFilterError as e:
        console.print(str(e))


async def _flow_clear_filter(builder: RegistrationUrlBuilder) -> None:
    f = await _pick_field(builder, "clear")
    if f is None:
        return
    if f is FilterField.DAY_OF_WEEK:
        empty: Any = []
    elif f is FilterField.SHOW_UNAVAILABLE_COURSE_OPTIONS:
        empty = False
    else:
        empty = None
    await builder.set_filter(f, empty)


def _flow_show_options(builder: RegistrationUrlBuilder) -> None:
    channels = [LOCATIONS, SESSIONS, INSTRUCTORS, GRADES]
    if builder.is_course_session:
        channels = [COURSE_OPTIONS]
    for channel in channels:
        state = builder.loader.state(channel)
        table = Table(title=f"{channel} ({state.status.value})", box=box.SIMPLE)
        table.add_column("Label")
        table.add_column("Value")
        for opt in builder.options(channel) or []:
            table.add_row(escape(opt.label), escape(opt.value))
        console.print(table)


async def _flow_copy(builder: RegistrationUrlBuilder) -> None:
    if not builder.base_url:
        console.print("Base URL is not available yet.")
        return
    await builder.copy_url()


def _flow_open(builder: RegistrationUrlBuilder) -> None:
    if not builder.base_url:
        console.print("Base URL is not available yet.")
        return
    builder.open_url()


async def run_interactive(builder: RegistrationUrlBuilder) -> None:
    """
    Interactive menu loop over one builder session.

    Data loads in the background while the menu is up; pick lists stay
    disabled until their data has arrived.
    """
    loading = asyncio.create_task(builder.start())
    try:
        await _menu_loop(builder, loading)
    finally:
        if not loading.done():
            loading.cancel()
        await asyncio.gather(loading, return_exceptions=True)


async def _menu_loop(builder: RegistrationUrlBuilder, loading: asyncio.Task) -> None:
    while True:
        _print_header(builder, still_loading=not loading.done())

        choice = (
            await _prompt(
                "\n[1] Set a filter\n"
                "[2] Clear a filter\n"
                "[3] Show options\n"
                "[4] Copy URL\n"
                "[5] Open URL in browser\n"
                "[6] Refresh (clear filters + reload data)\n"
                "[0] Exit\n"
                "Select: "
            )
        ).strip()

        if choice == "0":
            console.print("Bye.")
            return

        if choice == "1":
            await _flow_set_filter(builder)
        elif choice == "2":
            await _flow_clear_filter(builder)
        elif choice == "3":
            _flow_show_options(builder)
        elif choice == "4":
            await _flow_copy(builder)
        elif choice == "5":
            _flow_open(builder)
        elif choice == "6":
            await builder.refresh()
            console.print("Filters cleared, data reloaded.")
        else:
            console.print("Invalid choice.")
