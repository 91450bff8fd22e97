"""
Record types the URL builder knows about.

Each type maps to:
- the qualified field holding the record's display name
- the query parameter used to select records of that type by name

Unknown types resolve to an empty config instead of failing, which simply
disables the name lookup and the name filter.
"""

from __future__ import annotations

from typing import Optional

from regurl.model import ObjectTypeConfig


PROGRAM = "TREX1__Program__c"
COURSE = "TREX1__Course__c"
COURSE_SESSION = "TREX1__Course_Session__c"

OBJECT_TYPES: dict[str, ObjectTypeConfig] = {
    PROGRAM: ObjectTypeConfig(display_field_path=(f"{PROGRAM}.Name",), filter_param_name="program"),
    COURSE: ObjectTypeConfig(display_field_path=(f"{COURSE}.Name",), filter_param_name="course"),
    COURSE_SESSION: ObjectTypeConfig(
        display_field_path=(f"{COURSE_SESSION}.Name",), filter_param_name="courseSession"
    ),
}

# Short names accepted on the command line
ALIASES: dict[str, str] = {
    "program": PROGRAM,
    "course": COURSE,
    "course_session": COURSE_SESSION,
    "course-session": COURSE_SESSION,
    "session": COURSE_SESSION,
}

EMPTY_CONFIG = ObjectTypeConfig()


def canonical_object_type(name: Optional[str]) -> str:
    """
    Return the canonical record type for `name` (aliases are case-insensitive).
    Unknown names are returned unchanged.
    """
    raw = (name or "").strip()
    return ALIASES.get(raw.lower(), raw)


def resolve_object_type(name: Optional[str]) -> ObjectTypeConfig:
    return OBJECT_TYPES.get(canonical_object_type(name), EMPTY_CONFIG)


def is_course_session(name: Optional[str]) -> bool:
    return canonical_object_type(name) == COURSE_SESSION


def display_field(name: Optional[str]) -> Optional[str]:
    fields = resolve_object_type(name).display_field_path
    return fields[0] if fields else None
