"""Protocols for the host editor.

The paste handler only needs three things from the application it runs
in: the active document, a way to insert text at its cursor, and a way to
show a notice.  Anything satisfying these protocols will do.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class DocumentView(Protocol):
    """An editable document with a cursor."""

    def insert_at_cursor(self, text: str) -> None:
        """Insert *text* at the current cursor position."""
        ...


@runtime_checkable
class Workspace(Protocol):
    """Gives access to whichever document the user is editing."""

    def active_document(self) -> DocumentView | None:
        """Return the active editable view, or ``None`` when there is none."""
        ...


@runtime_checkable
class Notifier(Protocol):
    """Shows a short user-visible message."""

    def __call__(self, message: str) -> None:
        ...
