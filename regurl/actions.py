"""
Actions on the composed URL: copy, open, refresh.

The clipboard and the browser are injected so the dispatcher works the same
in the terminal, in tests, or behind another front end.
"""

from __future__ import annotations

import asyncio
import base64
import logging
import sys
import webbrowser
from typing import Awaitable, Callable, Optional, Protocol, TextIO

import pyperclip

from regurl.errors import ClipboardError
from regurl.notify import ERROR, SUCCESS, Notifier


logger = logging.getLogger(__name__)

ACK_DELAY_SECONDS = 4.0

COPIED_MESSAGE = "URL copied to clipboard"
NOT_COPIED_MESSAGE = "URL could not be copied"


class Clipboard(Protocol):
    def copy(self, text: str) -> None: ...


def _osc52(text: str) -> str:
    payload = base64.b64encode(text.encode("utf-8")).decode("ascii")
    return f"\x1b]52;c;{payload}\x07"


class SystemClipboard:
    """
    Copy via pyperclip. When pyperclip finds no clipboard (headless box, SSH
    session) the text is handed to the terminal with an OSC 52 escape, which
    most terminal emulators forward to the local clipboard.

    The terminal never confirms an OSC 52 copy, so this is a last resort.
    """

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream

    def copy(self, text: str) -> None:
        try:
            pyperclip.copy(text)
            return
        except pyperclip.PyperclipException as e:
            logger.debug("pyperclip failed (%s), falling back to OSC 52", e)

        stream = self._stream if self._stream is not None else sys.stderr
        if not stream.isatty():
            raise ClipboardError("No clipboard available and no terminal to copy through")
        try:
            stream.write(_osc52(text))
            stream.flush()
        except OSError as e:
            raise ClipboardError(f"No clipboard available ({e})") from e


def open_new_tab(url: str) -> None:
    webbrowser.open_new_tab(url)


class ActionDispatcher:
    """
    Runs the user actions and keeps the transient "copied" flag.

    Each copy schedules its own flip-back of `url_is_copied` after
    `ack_delay` seconds; timers are independent, so a second copy inside the
    window may see the flag drop early. close() cancels pending timers.
    """

    def __init__(
        self,
        notifier: Notifier,
        *,
        clipboard: Optional[Clipboard] = None,
        opener: Optional[Callable[[str], None]] = None,
        refresh: Optional[Callable[[], Awaitable[None]]] = None,
        ack_delay: float = ACK_DELAY_SECONDS,
    ) -> None:
        self.notifier = notifier
        self.clipboard = clipboard if clipboard is not None else SystemClipboard()
        self.opener = opener if opener is not None else open_new_tab
        self._refresh = refresh
        self.ack_delay = ack_delay
        self.url_is_copied = False
        self._timers: set[asyncio.TimerHandle] = set()

    async def copy_to_clipboard(self, url: Optional[str]) -> bool:
        """
        Copy `url` and report the outcome. Returns True on success, False on
        failure or when there is nothing to copy.
        """
        if not url:
            return False

        ok = True
        try:
            await asyncio.to_thread(self.clipboard.copy, url)
        except Exception as e:
            ok = False
            logger.warning("Copy to clipboard failed: %s", e)
            self.notifier.show_toast("Error", str(e).strip() or NOT_COPIED_MESSAGE, ERROR)
        else:
            self.notifier.show_toast("Success", COPIED_MESSAGE, SUCCESS)

        self._acknowledge()
        return ok

    def _acknowledge(self) -> None:
        self.url_is_copied = True
        loop = asyncio.get_running_loop()
        handle: Optional[asyncio.TimerHandle] = None

        def _clear() -> None:
            self.url_is_copied = False
            self._timers.discard(handle)

        handle = loop.call_later(self.ack_delay, _clear)
        self._timers.add(handle)

    def open_in_new_tab(self, url: Optional[str]) -> bool:
        if not url:
            return False
        self.opener(url)
        return True

    async def refresh_all(self) -> None:
        if self._refresh is not None:
            await self._refresh()

    @property
    def pending_timers(self) -> int:
        return len(self._timers)

    def close(self) -> None:
        for handle in self._timers:
            handle.cancel()
        self._timers.clear()
