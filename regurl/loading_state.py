"""
Derived loading state.

Nothing here is stored: `busy` and the per-control "disabled" flags are
computed from the channels every time they are read.
"""

from __future__ import annotations

from regurl.loader import COURSE_OPTIONS, GRADES, INSTRUCTORS, LOCATIONS, SESSIONS, ReferenceDataLoader


# filter control -> channel feeding its options
CONTROL_CHANNELS: dict[str, str] = {
    "session": SESSIONS,
    "location": LOCATIONS,
    "course_option": COURSE_OPTIONS,
    "instructor": INSTRUCTORS,
    "grade": GRADES,
}


class LoadingStateAggregator:
    def __init__(self, loader: ReferenceDataLoader) -> None:
        self.loader = loader

    @property
    def busy(self) -> bool:
        """
        True while any channel relevant to the record type is loading.
        """
        return any(ch.state.is_loading for ch in self.loader.relevant_channels())

    def is_disabled(self, control: str) -> bool:
        """
        A control is disabled while anything loads, or when its option list
        is missing or empty.
        """
        try:
            channel_name = CONTROL_CHANNELS[control]
        except KeyError:
            raise KeyError(f"Unknown control: {control!r}") from None

        options = self.loader.channel(channel_name).data
        return self.busy or not options

    def disabled_controls(self) -> dict[str, bool]:
        return {control: self.is_disabled(control) for control in CONTROL_CHANNELS}
