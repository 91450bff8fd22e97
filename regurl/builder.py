"""
RegistrationUrlBuilder: one URL-building session for one record.

It ties the pieces together:

    record id + type -> display name lookup
                     -> ReferenceDataLoader (six channels)
    FilterState      -> compose_url()      -> ActionDispatcher

The URL is never cached; every read of `url` composes it from the current
filters and whatever data has loaded so far.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional, Union

from regurl.actions import ActionDispatcher, Clipboard
from regurl.backend import Backend
from regurl.compose import compose_url
from regurl.errors import error_message
from regurl.filters import FilterField, FilterState
from regurl.loader import BASE_URL, ReferenceDataLoader
from regurl.loading_state import LoadingStateAggregator
from regurl.model import LoadState, ReferenceOption
from regurl.notify import ERROR, Notifier
from regurl.object_types import canonical_object_type, is_course_session, resolve_object_type
from regurl.settings import BuilderSettings


logger = logging.getLogger(__name__)


class RegistrationUrlBuilder:
    def __init__(
        self,
        backend: Backend,
        record_id: Optional[str],
        object_type: Optional[str],
        notifier: Notifier,
        *,
        settings: Optional[BuilderSettings] = None,
        clipboard: Optional[Clipboard] = None,
        opener: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.backend = backend
        self.record_id = record_id
        self.object_type = canonical_object_type(object_type)
        self.notifier = notifier
        self.settings = settings if settings is not None else BuilderSettings()
        self.config = resolve_object_type(self.object_type)

        self.filters = FilterState.empty()
        self.display_name: Optional[str] = None
        self.record_state = LoadState.idle()

        self.loader = ReferenceDataLoader(
            backend,
            record_id,
            course_options_enabled=self.is_course_session,
            registration_path=self.settings.registration_url_path,
            on_error=self._report_error,
        )
        self.loading = LoadingStateAggregator(self.loader)
        self.actions = ActionDispatcher(
            notifier,
            clipboard=clipboard,
            opener=opener,
            refresh=self._refresh,
            ack_delay=self.settings.copy_ack_seconds,
        )

    # ---------------------------------------------------------------------
    # State
    # ---------------------------------------------------------------------

    @property
    def is_course_session(self) -> bool:
        return is_course_session(self.object_type)

    @property
    def has_access(self) -> bool:
        return self.settings.can_get_public_url

    @property
    def busy(self) -> bool:
        return self.record_state.is_loading or self.loading.busy

    def is_disabled(self, control: str) -> bool:
        # the record lookup counts as loading too, same as `busy`
        return self.record_state.is_loading or self.loading.is_disabled(control)

    def options(self, channel: str) -> Optional[list[ReferenceOption]]:
        return self.loader.options(channel)

    @property
    def base_url(self) -> Optional[str]:
        return self.loader.base_url

    @property
    def url(self) -> str:
        return compose_url(
            self.base_url,
            self.object_type,
            self.record_id,
            self.display_name,
            self.filters,
            self.settings.facets,
        )

    # ---------------------------------------------------------------------
    # Loading
    # ---------------------------------------------------------------------

    def _report_error(self, source: str, error: BaseException) -> None:
        self.notifier.show_toast("Error", error_message(error), ERROR)

    async def _load_record(self) -> None:
        fields = self.config.display_field_path
        if not fields or not self.record_id:
            return

        self.record_state = LoadState.loading()
        try:
            record = await asyncio.to_thread(self.backend.get_record, self.record_id, list(fields))
        except Exception as e:
            self.record_state = LoadState.errored(e)
            self.display_name = None
            logger.warning("Loading record %s failed: %s", self.record_id, e)
            self._report_error("record", e)
            return

        self.record_state = LoadState.ready(record)
        value = record.get(fields[0])
        self.display_name = None if value is None else str(value)

    async def start(self) -> None:
        """
        Load the record name and every reference channel concurrently.
        """
        await asyncio.gather(
            self._load_record(),
            self.loader.load_all(self.filters.show_unavailable_course_options),
        )

    async def set_filter(self, name: Union[str, FilterField], value: Any) -> FilterField:
        """
        Change one filter. Only a change of the course option inputs
        triggers a refetch.
        """
        changed = self.filters.set(name, value, self.settings.facets)
        await self.loader.sync_course_options(self.record_id, self.filters.show_unavailable_course_options)
        return changed

    async def _refresh(self) -> None:
        self.filters = self.filters.reset()
        await self.loader.refresh_all(self.filters.show_unavailable_course_options)

    # ---------------------------------------------------------------------
    # Actions
    # ---------------------------------------------------------------------

    async def refresh(self) -> None:
        """
        Clear every filter and reload all reference data from scratch.
        """
        await self.actions.refresh_all()

    async def copy_url(self) -> bool:
        return await self.actions.copy_to_clipboard(self.url)

    def open_url(self) -> bool:
        return self.actions.open_in_new_tab(self.url)

    @property
    def url_is_copied(self) -> bool:
        return self.actions.url_is_copied

    def close(self) -> None:
        self.actions.close()

    def channel_states(self) -> dict[str, LoadState]:
        return {name: ch.state for name, ch in self.loader.channels.items()}

    def base_url_ready(self) -> bool:
        return self.loader.state(BASE_URL).is_ready
