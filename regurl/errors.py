"""
Exception types and error message formatting.

Fetch failures are captured per channel and shown to the user once, so the
main job here is turning an error (and its optional backend body) into one
readable line.
"""

from __future__ import annotations

from typing import Any, Optional


UNKNOWN_ERROR = "Unknown error"


class RegurlError(Exception):
    """Base class for all errors raised by this package."""


class BackendError(RegurlError):
    """
    A backend query failed.

    `body` carries the decoded error payload when the backend sent one:
    either a mapping with a "message" key or a list of such mappings.
    """

    def __init__(self, message: str = "", body: Any = None, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.body = body
        self.status = status


class ClipboardError(RegurlError):
    """Both clipboard strategies failed."""


class UnknownFilterError(RegurlError, KeyError):
    """A filter field name is not part of the filter model (or its facet is disabled)."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


def error_message(error: BaseException) -> str:
    """
    Flatten an error into a single message.

    - list body   -> messages joined with ", "
    - dict body   -> body["message"] if it is a string
    - otherwise   -> str(error), or "Unknown error" if that is empty
    """
    body = getattr(error, "body", None)

    if isinstance(body, list):
        messages = [str(entry.get("message", "")) for entry in body if isinstance(entry, dict)]
        messages = [m for m in messages if m]
        if messages:
            return ", ".join(messages)
    elif isinstance(body, dict) and isinstance(body.get("message"), str):
        return body["message"]

    text = str(error).strip()
    return text if text else UNKNOWN_ERROR
