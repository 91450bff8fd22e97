"""
Central data model definitions used across the project.

This module defines the shared structures so that:
- the loader, the composer and the UI layers agree on field names
- every reference dataset is exposed in the same {label, value} shape
- the state of a fetch can never hold data and an error at the same time
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Tuple


@dataclass(frozen=True)
class ReferenceOption:
    """
    One selectable value of a reference dataset (location, session, grade, ...).

    `value` is what ends up in the URL; `label` is only shown to the user.
    """

    label: str
    value: str


@dataclass(frozen=True)
class ObjectTypeConfig:
    """
    How a record type is displayed and filtered.
    """

    display_field_path: Tuple[str, ...] = ()
    filter_param_name: str = ""


class ChannelStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERRORED = "errored"


@dataclass(frozen=True)
class LoadState:
    """
    State of one reference data channel.

    Rules:
    - ready   -> data present, error absent
    - errored -> error present, data absent
    - idle / loading -> neither
    """

    status: ChannelStatus = ChannelStatus.IDLE
    data: Optional[Any] = None
    error: Optional[BaseException] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.status is ChannelStatus.READY:
            if self.data is None or self.error is not None:
                raise ValueError("ready state requires data and no error")
        elif self.status is ChannelStatus.ERRORED:
            if self.error is None or self.data is not None:
                raise ValueError("errored state requires an error and no data")
        elif self.data is not None or self.error is not None:
            raise ValueError(f"{self.status.value} state carries neither data nor error")

    @classmethod
    def idle(cls) -> LoadState:
        return cls(ChannelStatus.IDLE)

    @classmethod
    def loading(cls) -> LoadState:
        return cls(ChannelStatus.LOADING)

    @classmethod
    def ready(cls, data: Any) -> LoadState:
        return cls(ChannelStatus.READY, data=data)

    @classmethod
    def errored(cls, error: BaseException) -> LoadState:
        return cls(ChannelStatus.ERRORED, error=error)

    @property
    def is_loading(self) -> bool:
        return self.status is ChannelStatus.LOADING

    @property
    def is_ready(self) -> bool:
        return self.status is ChannelStatus.READY

    @property
    def is_errored(self) -> bool:
        return self.status is ChannelStatus.ERRORED
