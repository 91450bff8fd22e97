"""
User notifications ("toasts").

The builder never prints directly; it hands a title, a message and a variant
to a Notifier. The console implementation renders them with rich.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from rich.console import Console
from rich.text import Text


logger = logging.getLogger(__name__)

SUCCESS = "success"
ERROR = "error"
INFO = "info"

_STYLES = {SUCCESS: "bold green", ERROR: "bold red", INFO: "cyan"}


class Notifier(Protocol):
    def show_toast(self, title: str, message: str, variant: str = INFO) -> None: ...


class ConsoleNotifier:
    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console if console is not None else Console(stderr=True)

    def show_toast(self, title: str, message: str, variant: str = INFO) -> None:
        style = _STYLES.get(variant, "")
        self.console.print(Text.assemble((f"{title}: ", style), message))
        if variant == ERROR:
            logger.info("Error shown to user: %s", message)
