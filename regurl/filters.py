"""
Filter state: the narrowing criteria a user picks before copying a URL.

Design rules:
- the set of fields is closed; `set()` rejects anything else
- checkbox fields are coerced to bool, everything else is stored as supplied
- resetting never mutates: it hands back a brand-new empty record, so whoever
  holds the old one can tell that the state changed
- each group of fields belongs to a facet that configuration can switch off
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time
from enum import Enum
from typing import Any, Iterable, List, Optional, Union

from regurl.errors import UnknownFilterError


DAYS_OF_WEEK = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


class FilterField(str, Enum):
    LOCATION = "location"
    SESSION = "session"
    START_DATE = "start_date"
    END_DATE = "end_date"
    START_TIME = "start_time"
    END_TIME = "end_time"
    DAY_OF_WEEK = "day_of_week"
    AGE = "age"
    COURSE_OPTION_ID = "course_option_id"
    SHOW_UNAVAILABLE_COURSE_OPTIONS = "show_unavailable_course_options"
    INSTRUCTOR = "instructor"
    GRADE = "grade"


class Facet(str, Enum):
    LOCATION = "location"
    SESSION = "session"
    DATE_RANGE = "dateRange"
    TIME_RANGE = "timeRange"
    DAY_OF_WEEK = "dayOfWeek"
    AGE = "age"
    INSTRUCTOR = "instructor"
    GRADE = "grade"


ALL_FACETS: frozenset[Facet] = frozenset(Facet)

FIELD_FACETS: dict[FilterField, Facet] = {
    FilterField.LOCATION: Facet.LOCATION,
    FilterField.SESSION: Facet.SESSION,
    FilterField.START_DATE: Facet.DATE_RANGE,
    FilterField.END_DATE: Facet.DATE_RANGE,
    FilterField.START_TIME: Facet.TIME_RANGE,
    FilterField.END_TIME: Facet.TIME_RANGE,
    FilterField.DAY_OF_WEEK: Facet.DAY_OF_WEEK,
    FilterField.AGE: Facet.AGE,
    FilterField.INSTRUCTOR: Facet.INSTRUCTOR,
    FilterField.GRADE: Facet.GRADE,
}

# Control names used by the registration site's filter form
CONTROL_NAMES: dict[str, FilterField] = {
    "Location": FilterField.LOCATION,
    "session": FilterField.SESSION,
    "startDate": FilterField.START_DATE,
    "endDate": FilterField.END_DATE,
    "startTime": FilterField.START_TIME,
    "endTime": FilterField.END_TIME,
    "dayOfWeek": FilterField.DAY_OF_WEEK,
    "age": FilterField.AGE,
    "courseOptionId": FilterField.COURSE_OPTION_ID,
    "showUnavailableCourseOptions": FilterField.SHOW_UNAVAILABLE_COURSE_OPTIONS,
    "instructor": FilterField.INSTRUCTOR,
    "grade": FilterField.GRADE,
}

CHECKBOX_FIELDS = frozenset({FilterField.SHOW_UNAVAILABLE_COURSE_OPTIONS})

_TRUE_STRINGS = {"true", "1", "yes", "y", "on"}


def parse_field(name: Union[str, FilterField]) -> FilterField:
    """
    Accept a FilterField, its attribute name, or its form control name.
    """
    if isinstance(name, FilterField):
        return name
    key = str(name).strip()
    if key in CONTROL_NAMES:
        return CONTROL_NAMES[key]
    try:
        return FilterField(key)
    except ValueError:
        raise UnknownFilterError(f"Unknown filter field: {name!r}") from None


def parse_facets(names: Iterable[Union[str, Facet]]) -> frozenset[Facet]:
    out: set[Facet] = set()
    for name in names:
        if isinstance(name, Facet):
            out.add(name)
            continue
        key = str(name).strip()
        match = [f for f in Facet if key in (f.value, f.name, f.name.lower())]
        if not match:
            raise UnknownFilterError(f"Unknown filter facet: {name!r}")
        out.add(match[0])
    return frozenset(out)


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def _day_list(value: Any) -> List[str]:
    # a single day name is one day, not a sequence of letters
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value else []
    if not isinstance(value, (list, tuple)):
        raise TypeError(f"day_of_week expects a list of day names, got {type(value).__name__}")
    return list(value)


@dataclass
class FilterState:
    """
    Current user selection.

    Empty means: every optional field None, no weekdays, and unavailable
    course options hidden.
    """

    location: Optional[str] = None
    session: Optional[str] = None
    start_date: Optional[Union[date, str]] = None
    end_date: Optional[Union[date, str]] = None
    start_time: Optional[Union[time, str]] = None
    end_time: Optional[Union[time, str]] = None
    # insertion order of the multi-select is kept for stable URLs
    day_of_week: List[str] = field(default_factory=list)
    age: Optional[int] = None
    course_option_id: Optional[str] = None
    show_unavailable_course_options: bool = False
    instructor: Optional[str] = None
    grade: Optional[str] = None

    @classmethod
    def empty(cls) -> FilterState:
        return cls()

    def reset(self) -> FilterState:
        """
        Return a fresh empty record. `self` is left untouched; callers rebind.
        """
        return FilterState.empty()

    def get(self, name: Union[str, FilterField]) -> Any:
        return getattr(self, parse_field(name).value)

    def set(
        self,
        name: Union[str, FilterField],
        value: Any,
        facets: frozenset[Facet] = ALL_FACETS,
    ) -> FilterField:
        """
        Set one field and return which one was changed.

        Raises UnknownFilterError for names outside the filter model and for
        fields whose facet is switched off.
        """
        f = parse_field(name)
        facet = FIELD_FACETS.get(f)
        if facet is not None and facet not in facets:
            raise UnknownFilterError(f"Filter {f.value!r} is disabled ({facet.value})")

        if f in CHECKBOX_FIELDS:
            value = _to_bool(value)
        elif f is FilterField.DAY_OF_WEEK:
            value = _day_list(value)

        setattr(self, f.value, value)
        return f

    def is_empty(self) -> bool:
        return self == FilterState.empty()

    def has_filters(self, facets: frozenset[Facet] = ALL_FACETS) -> bool:
        """
        True if any secondary filter (everything except location and the
        course option fields) is set. Truthiness rule: age 0 counts as unset.
        """
        checks = (
            (Facet.SESSION, self.session),
            (Facet.DATE_RANGE, self.start_date or self.end_date),
            (Facet.TIME_RANGE, self.start_time or self.end_time),
            (Facet.DAY_OF_WEEK, len(self.day_of_week) > 0),
            (Facet.AGE, self.age),
            (Facet.INSTRUCTOR, self.instructor),
            (Facet.GRADE, self.grade),
        )
        return any(bool(v) for facet, v in checks if facet in facets)
