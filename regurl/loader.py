"""
Reference data loading.

Six independent channels feed the filter controls:

    base_url, sessions, locations, course_options, instructors, grades

Each channel:
- runs its (blocking) backend query in a worker thread, so all channels
  load concurrently on one event loop
- is keyed by the parameters it depends on and only re-runs when the key
  changes (or on an explicit refresh)
- stamps every run with a token; a result that arrives after a newer run
  started is dropped, so the channel always shows the latest run's outcome
- reports each error exactly once through the shared error callback
"""

from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import Any, Callable, Iterable, Optional

from regurl.backend import Backend
from regurl.compose import construct_base_url
from regurl.model import ChannelStatus, LoadState, ReferenceOption


logger = logging.getLogger(__name__)

BASE_URL = "base_url"
SESSIONS = "sessions"
LOCATIONS = "locations"
COURSE_OPTIONS = "course_options"
INSTRUCTORS = "instructors"
GRADES = "grades"

CHANNEL_NAMES = (BASE_URL, SESSIONS, LOCATIONS, COURSE_OPTIONS, INSTRUCTORS, GRADES)

ErrorReporter = Callable[[str, BaseException], None]
Key = tuple[Any, ...]


def normalize_options(rows: Optional[Iterable[Any]], value_key: str = "Name") -> list[ReferenceOption]:
    """
    Turn backend rows into ReferenceOptions.

    Rows already shaped {label, value} pass through; legacy rows use
    Name as label and `value_key` ("Name" or "Id") as value. Rows without
    a usable label/value are skipped.
    """
    out: list[ReferenceOption] = []
    for row in rows or []:
        if isinstance(row, ReferenceOption):
            out.append(row)
            continue
        if not isinstance(row, dict):
            continue

        if "label" in row and "value" in row:
            label, value = row.get("label"), row.get("value")
        else:
            label, value = row.get("Name"), row.get(value_key)

        if label is None or value is None:
            logger.debug("Skipping row without label/value: %r", row)
            continue
        out.append(ReferenceOption(label=str(label), value=str(value)))
    return out


class Channel:
    """
    One asynchronous query with its LoadState.
    """

    def __init__(
        self,
        name: str,
        fetch: Callable[..., Any],
        normalize: Callable[[Any], Any],
        on_error: Optional[ErrorReporter] = None,
    ) -> None:
        self.name = name
        self._fetch = fetch
        self._normalize = normalize
        self._on_error = on_error
        self._token = 0
        self.key: Optional[Key] = None
        self.runs = 0
        self.state = LoadState.idle()

    @property
    def status(self) -> ChannelStatus:
        return self.state.status

    @property
    def data(self) -> Any:
        return self.state.data

    @property
    def error(self) -> Optional[BaseException]:
        return self.state.error

    async def subscribe(self, key: Key) -> bool:
        """
        Run the query for `key` unless the channel already ran for it.
        Returns True if a run happened.
        """
        if self.key == key and self.state.status is not ChannelStatus.IDLE:
            return False
        await self._run(key)
        return True

    async def refresh(self, key: Optional[Key] = None) -> bool:
        """
        Re-run unconditionally, with `key` or else the last key. A channel
        that was never subscribed and gets no key stays idle.
        """
        key = key if key is not None else self.key
        if key is None:
            return False
        await self._run(key)
        return True

    async def _run(self, key: Key) -> None:
        self._token += 1
        token = self._token
        self.key = key
        self.runs += 1
        self.state = LoadState.loading()

        try:
            raw = await asyncio.to_thread(self._fetch, *key)
            data = self._normalize(raw)
        except Exception as e:
            if token != self._token:
                logger.debug("Dropping stale error on %s (run %d)", self.name, token)
                return
            self.state = LoadState.errored(e)
            logger.warning("Loading %s failed: %s", self.name, e)
            if self._on_error is not None:
                self._on_error(self.name, e)
            return

        if token != self._token:
            logger.debug("Dropping stale result on %s (run %d)", self.name, token)
            return
        self.state = LoadState.ready(data)
        logger.debug("Loaded %s (run %d)", self.name, token)


class ReferenceDataLoader:
    """
    Owns the six reference data channels for one record.

    The course option channel only runs for course sessions; for any other
    record type it stays idle and never surfaces an error.
    """

    def __init__(
        self,
        backend: Backend,
        record_id: Optional[str],
        *,
        course_options_enabled: bool = False,
        registration_path: Optional[str] = None,
        on_error: Optional[ErrorReporter] = None,
    ) -> None:
        self.record_id = record_id
        self.course_options_enabled = course_options_enabled

        self.channels: dict[str, Channel] = {
            BASE_URL: Channel(
                BASE_URL,
                backend.get_base_url,
                partial(construct_base_url, registration_path=registration_path),
                on_error,
            ),
            SESSIONS: Channel(
                SESSIONS, backend.get_available_sessions, partial(normalize_options, value_key="Id"), on_error
            ),
            LOCATIONS: Channel(LOCATIONS, backend.get_available_locations, normalize_options, on_error),
            COURSE_OPTIONS: Channel(
                COURSE_OPTIONS, backend.get_course_options, partial(normalize_options, value_key="Id"), on_error
            ),
            INSTRUCTORS: Channel(INSTRUCTORS, backend.get_available_instructors, normalize_options, on_error),
            GRADES: Channel(GRADES, backend.get_available_grades, normalize_options, on_error),
        }

    def channel(self, name: str) -> Channel:
        try:
            return self.channels[name]
        except KeyError:
            raise KeyError(f"Unknown channel: {name!r}") from None

    def state(self, name: str) -> LoadState:
        return self.channel(name).state

    def options(self, name: str) -> Optional[list[ReferenceOption]]:
        if name == BASE_URL:
            raise KeyError("base_url is not an option list")
        return self.channel(name).data

    @property
    def base_url(self) -> Optional[str]:
        return self.channels[BASE_URL].data

    def relevant_channels(self) -> list[Channel]:
        return [
            ch for name, ch in self.channels.items() if name != COURSE_OPTIONS or self.course_options_enabled
        ]

    def _keys(self, show_unavailable: bool) -> dict[str, Key]:
        return {
            BASE_URL: (),
            SESSIONS: (),
            LOCATIONS: (),
            COURSE_OPTIONS: (self.record_id, bool(show_unavailable)),
            INSTRUCTORS: (self.record_id,),
            GRADES: (),
        }

    async def load_all(self, show_unavailable: bool = False) -> None:
        """
        Subscribe every channel with its current key; all run concurrently.
        """
        keys = self._keys(show_unavailable)
        await asyncio.gather(*(ch.subscribe(keys[ch.name]) for ch in self.relevant_channels()))

    async def sync_course_options(self, record_id: Optional[str], show_unavailable: bool) -> bool:
        """
        Re-run the course option query if (record_id, show_unavailable)
        changed since the last run. Returns True if it ran.
        """
        self.record_id = record_id
        if not self.course_options_enabled:
            return False
        return await self.channels[COURSE_OPTIONS].subscribe((record_id, bool(show_unavailable)))

    async def refresh_all(self, show_unavailable: bool = False) -> None:
        """
        Re-run every channel from scratch, parameterless ones included.
        """
        keys = self._keys(show_unavailable)
        await asyncio.gather(*(ch.refresh(keys[ch.name]) for ch in self.relevant_channels()))
