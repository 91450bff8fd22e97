"""
URL composition (filter state -> registration URL).

Two modes, picked by the record type:

    deep link (course session):
        {base}?courseSessionId={recordId}[&courseOptionId={id}]

    filtered query (program / course / unknown):
        {base}?{filterParam}={name}[&Location={location}][&filters={json}]

Everything here is a pure function. Missing inputs (no base URL yet, no
display name yet) produce a degenerate URL instead of an exception; callers
decide whether the URL is usable.
"""

from __future__ import annotations

import json
import re
from datetime import date, time
from typing import Any, Optional
from urllib.parse import quote, unquote

from regurl.filters import ALL_FACETS, Facet, FilterState
from regurl.object_types import is_course_session, resolve_object_type


# Characters encodeURI leaves alone on top of letters, digits and "-_.~"
_URI_SAFE = ";,/?:@&=+$!*'()#"

_ABSOLUTE_URL = re.compile(r"^(?:[a-z+]+:)?//", re.IGNORECASE)

SITE_PREFIX = "/s/"

FILTERS_MARKER = "&filters="


def encode_uri(value: Any) -> str:
    """
    Percent-encode like JavaScript's encodeURI.

    Reserved URL characters are NOT escaped (unlike encodeURIComponent), so
    a name containing "&" or "=" is passed through verbatim.
    """
    if value is None:
        return ""
    return quote(str(value), safe=_URI_SAFE)


def construct_base_url(community_url: Optional[str], registration_path: Optional[str] = None) -> str:
    """
    Join the site URL with the configured registration page path.

    - no path                      -> site URL
    - path with a scheme (or "//") -> path replaces the site URL
    - otherwise the path is made absolute, a leading "/s" site prefix is
      dropped, and the result is appended
    """
    result = community_url or ""
    path = (registration_path or "").strip()
    if not path:
        return result

    if _ABSOLUTE_URL.match(path):
        return path

    if not path.startswith("/"):
        path = "/" + path
    if path.startswith(SITE_PREFIX):
        path = path[2:]
    return result + path


def _json_value(value: Any) -> Any:
    if isinstance(value, (date, time)):
        return value.isoformat()
    return value


def filter_object(filters: FilterState, facets: frozenset[Facet] = ALL_FACETS) -> dict[str, Any]:
    """
    Build the object embedded in the `filters` parameter.

    Keys appear only when set, always in this order:
    session, dateRange, timeRange, dayOfWeek, age, instructor, grade.
    """
    out: dict[str, Any] = {}
    if Facet.SESSION in facets and filters.session:
        out["session"] = filters.session
    if Facet.DATE_RANGE in facets and (filters.start_date or filters.end_date):
        out["dateRange"] = [_json_value(filters.start_date), _json_value(filters.end_date)]
    if Facet.TIME_RANGE in facets and (filters.start_time or filters.end_time):
        out["timeRange"] = [_json_value(filters.start_time), _json_value(filters.end_time)]
    if Facet.DAY_OF_WEEK in facets and len(filters.day_of_week) > 0:
        out["dayOfWeek"] = list(filters.day_of_week)
    if Facet.AGE in facets and filters.age:
        out["age"] = filters.age
    if Facet.INSTRUCTOR in facets and filters.instructor:
        out["instructor"] = encode_uri(filters.instructor)
    if Facet.GRADE in facets and filters.grade:
        out["grade"] = encode_uri(filters.grade)
    return out


def filter_string(filters: FilterState, facets: frozenset[Facet] = ALL_FACETS) -> str:
    # Same output as JSON.stringify: compact, non-ASCII kept as-is
    return json.dumps(filter_object(filters, facets), separators=(",", ":"), ensure_ascii=False)


def deep_link_url(base_url: Optional[str], record_id: Optional[str], filters: FilterState) -> str:
    url = f"{base_url or ''}?courseSessionId={record_id or ''}"
    if filters.course_option_id:
        url += f"&courseOptionId={filters.course_option_id}"
    return url


def filtered_url(
    base_url: Optional[str],
    filter_param_name: str,
    display_name: Optional[str],
    filters: FilterState,
    facets: frozenset[Facet] = ALL_FACETS,
) -> str:
    result = f"{base_url or ''}?{filter_param_name}={encode_uri(display_name)}"
    if Facet.LOCATION in facets and filters.location:
        result += f"&Location={encode_uri(filters.location)}"
    if filters.has_filters(facets):
        result += FILTERS_MARKER + filter_string(filters, facets)
    return result


def compose_url(
    base_url: Optional[str],
    object_type: Optional[str],
    record_id: Optional[str],
    display_name: Optional[str],
    filters: FilterState,
    facets: frozenset[Facet] = ALL_FACETS,
) -> str:
    """
    Compose the registration URL for the current state.
    """
    if is_course_session(object_type):
        return deep_link_url(base_url, record_id, filters)

    config = resolve_object_type(object_type)
    return filtered_url(base_url, config.filter_param_name, display_name, filters, facets)


def _split_filters(url: str) -> tuple[str, Optional[str]]:
    idx = url.rfind(FILTERS_MARKER)
    if idx < 0:
        return url, None
    return url[:idx], url[idx + len(FILTERS_MARKER):]


def decode_filters(url: str) -> dict[str, Any]:
    """
    Return the object embedded in the `filters` parameter of a URL built by
    `filtered_url` ({} if there is none).

    The JSON is appended unescaped and comes last, so the split happens at
    the last "&filters=". Names are encoded like encodeURI, which leaves "&"
    and "=" alone: a filter value that itself contains "&filters=" cannot be
    told apart. This is not meant for URLs produced elsewhere.
    """
    _, raw = _split_filters(url)
    if raw is None:
        return {}
    return json.loads(raw)


def query_params(url: str) -> dict[str, str]:
    """
    Split the query of a composed URL (without the embedded filters JSON).

    Values are percent-decoded only; "+" stays a plus, as encodeURI never
    produces it for a space. A name containing "&" still splits into two
    parameters.
    """
    head, _ = _split_filters(url)
    query = head.partition("?")[2]
    out: dict[str, str] = {}
    for part in query.split("&"):
        if not part:
            continue
        key, _, value = part.partition("=")
        out[unquote(key)] = unquote(value)
    return out
