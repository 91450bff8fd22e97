"""
Backend query contract and its implementations.

The URL builder only needs a handful of read queries. Two backends ship:

- HttpBackend     JSON over HTTP (requests), for a live registration API
- JsonFileBackend a local JSON file, for offline use, demos and tests

Both are synchronous; the loader runs them in worker threads.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional, Protocol, Sequence

import requests

from regurl.errors import BackendError


logger = logging.getLogger(__name__)

Row = dict[str, Any]

DEFAULT_TIMEOUT = 30.0


class Backend(Protocol):
    def get_base_url(self) -> str: ...

    def get_available_sessions(self) -> Sequence[Row]: ...

    def get_available_locations(self) -> Sequence[Row]: ...

    def get_course_options(self, course_session_id: str, show_unavailable: bool) -> Sequence[Row]: ...

    def get_available_instructors(self, record_id: str) -> Sequence[Row]: ...

    def get_available_grades(self) -> Sequence[Row]: ...

    def get_record(self, record_id: str, fields: Sequence[str]) -> dict[str, Any]: ...


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


class HttpBackend:
    """
    Talks to a registration API that answers JSON:

        GET {api}/base-url                  -> "https://..." or {"url": "..."}
        GET {api}/sessions                  -> [{"Name", "Id"}, ...]
        GET {api}/locations                 -> [{"Name"}, ...]
        GET {api}/course-options?courseSessionId=..&showUnavailable=..
        GET {api}/instructors?recordId=..
        GET {api}/grades
        GET {api}/records/{id}?fields=A.Name,B.Name -> {"A.Name": "..."}
    """

    def __init__(
        self,
        api_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()

    def _get(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        url = f"{self.api_url}/{path.lstrip('/')}"
        logger.debug("GET %s params=%s", url, params)
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise BackendError(f"Request to {url} failed: {e}") from e

        if not resp.ok:
            body = _json_or_none(resp)
            raise BackendError(f"{resp.status_code} error for {url}", body=body, status=resp.status_code)

        try:
            return resp.json()
        except ValueError as e:
            raise BackendError(f"Invalid JSON from {url}") from e

    def get_base_url(self) -> str:
        data = self._get("base-url")
        if isinstance(data, dict):
            data = data.get("url")
        return "" if data is None else str(data)

    def get_available_sessions(self) -> Sequence[Row]:
        return _rows(self._get("sessions"))

    def get_available_locations(self) -> Sequence[Row]:
        return _rows(self._get("locations"))

    def get_course_options(self, course_session_id: str, show_unavailable: bool) -> Sequence[Row]:
        params = {"courseSessionId": course_session_id, "showUnavailable": str(bool(show_unavailable)).lower()}
        return _rows(self._get("course-options", params=params))

    def get_available_instructors(self, record_id: str) -> Sequence[Row]:
        return _rows(self._get("instructors", params={"recordId": record_id}))

    def get_available_grades(self) -> Sequence[Row]:
        return _rows(self._get("grades"))

    def get_record(self, record_id: str, fields: Sequence[str]) -> dict[str, Any]:
        data = self._get(f"records/{record_id}", params={"fields": ",".join(fields)})
        if not isinstance(data, dict):
            raise BackendError(f"Record {record_id} is not an object")
        return data


def _json_or_none(resp: requests.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return None


def _rows(data: Any) -> list[Row]:
    if not isinstance(data, list):
        raise BackendError("Expected a list of rows", body={"message": "Expected a list of rows"})
    return [r for r in data if isinstance(r, dict)]


# ---------------------------------------------------------------------------
# JSON file
# ---------------------------------------------------------------------------


class JsonFileBackend:
    """
    Serves every query from one JSON document:

        {
          "baseUrl": "https://example.org",
          "sessions": [{"Name": "Summer 2026", "Id": "s1"}],
          "locations": [{"Name": "Main Pool"}],
          "courseOptions": {"a01": [{"Name": "Member", "Id": "opt1", "unavailable": false}]},
          "instructors": {"a01": [{"Name": "Jo Smith"}]}   (or a flat list),
          "grades": [{"Name": "K"}],
          "records": {"a01": {"TREX1__Course_Session__c.Name": "Swim 101"}}
        }

    The file is re-read on every query so a refresh picks up edits.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _load(self) -> dict[str, Any]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise BackendError(f"Data file not found: {self.path}") from e
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
            raise BackendError(f"Could not read data file {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise BackendError(f"Data file {self.path} must contain a JSON object")
        return data

    def _section(self, key: str) -> Any:
        data = self._load()
        if key not in data:
            raise BackendError(f"No '{key}' in {self.path.name}", body={"message": f"No '{key}' available"})
        return data[key]

    def get_base_url(self) -> str:
        value = self._section("baseUrl")
        return "" if value is None else str(value)

    def get_available_sessions(self) -> Sequence[Row]:
        return _rows(self._section("sessions"))

    def get_available_locations(self) -> Sequence[Row]:
        return _rows(self._section("locations"))

    def get_course_options(self, course_session_id: str, show_unavailable: bool) -> Sequence[Row]:
        by_session = self._section("courseOptions")
        rows = _rows(by_session.get(course_session_id, []) if isinstance(by_session, dict) else by_session)
        if show_unavailable:
            return [{k: v for k, v in r.items() if k != "unavailable"} for r in rows]
        return [{k: v for k, v in r.items() if k != "unavailable"} for r in rows if not r.get("unavailable")]

    def get_available_instructors(self, record_id: str) -> Sequence[Row]:
        section = self._section("instructors")
        if isinstance(section, dict):
            return _rows(section.get(record_id, []))
        return _rows(section)

    def get_available_grades(self) -> Sequence[Row]:
        return _rows(self._section("grades"))

    def get_record(self, record_id: str, fields: Sequence[str]) -> dict[str, Any]:
        records = self._section("records")
        record = records.get(record_id) if isinstance(records, dict) else None
        if not isinstance(record, dict):
            raise BackendError(
                f"Record {record_id} not found", body={"message": f"Record {record_id} not found"}
            )
        return {f: record.get(f) for f in fields}
