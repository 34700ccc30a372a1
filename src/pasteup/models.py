"""Public data models for pasteup.

This module contains the upload request/result types, the clipboard
snapshot types, and the effect records produced by the paste handler.
All types are plain dataclasses with no behaviour beyond what is needed
for structural equality and a few convenience constructors.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from pasteup.errors import PasteUpError, PasteUpUploadError

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class HandlerState(str, Enum):
    """Lifecycle states of the paste handler while it processes one blob."""

    IDLE = "idle"
    """No upload in flight."""

    UPLOADING = "uploading"
    """The POST for the current blob has been issued and not yet answered."""

    INSERTING = "inserting"
    """The upload succeeded; the Markdown link is being inserted."""

    NOTIFYING = "notifying"
    """The upload or insertion failed; the user is being notified."""


# ---------------------------------------------------------------------------
# Upload types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class UploadTarget:
    """Where and how to authenticate an upload.

    Attributes
    ----------
    endpoint_url:
        Full URL of the upload endpoint, e.g.
        ``https://img.example.com/api/1/upload``.
    api_key:
        Value sent in the ``X-API-Key`` header.  Masked in ``repr``.
    """

    endpoint_url: str
    api_key: str = field(repr=False)

    def __repr__(self) -> str:
        masked = f"...{self.api_key[-4:]}" if len(self.api_key) >= 4 else "****"
        return f"UploadTarget(endpoint_url={self.endpoint_url!r}, api_key='{masked}')"


@dataclass(frozen=True)
class ImageBlob:
    """An in-memory image taken from the clipboard."""

    data: bytes = field(repr=False)
    filename: str = "image.png"
    mime_type: str = "image/png"

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class UploadResult:
    """Outcome of a single upload attempt.

    Exactly one of :attr:`url` and :attr:`error` is set.
    """

    url: str | None = None
    error: PasteUpUploadError | None = None

    def __post_init__(self) -> None:
        if (self.url is None) == (self.error is None):
            raise ValueError("UploadResult requires exactly one of url or error")

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, url: str) -> UploadResult:
        return cls(url=url)

    @classmethod
    def failure(cls, error: PasteUpUploadError) -> UploadResult:
        return cls(error=error)


# ---------------------------------------------------------------------------
# Clipboard snapshot
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ClipboardItem:
    """One representation available in a paste event.

    Attributes
    ----------
    type:
        Declared MIME type, e.g. ``"image/png"`` or ``"text/plain"``.
    data:
        Raw bytes of the representation.
    name:
        File name supplied by the host, if any.
    """

    type: str
    data: bytes = field(default=b"", repr=False)
    name: str | None = None


# ---------------------------------------------------------------------------
# Paste effects
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Insertion:
    """Text inserted into the active document for one uploaded image."""

    text: str
    url: str


@dataclass(frozen=True)
class Notification:
    """A user-visible failure message for one image."""

    message: str
    error: PasteUpError


@dataclass
class PasteReport:
    """Everything one call to :meth:`PasteHandler.handle_paste` did.

    Attributes
    ----------
    default_prevented:
        ``True`` when at least one image item was found, meaning the host
        must not perform its own paste.
    uploads_attempted:
        Number of upload calls issued.
    insertions:
        Successful insertions, in clipboard order.
    notifications:
        Failure notifications, in clipboard order.
    """

    default_prevented: bool = False
    uploads_attempted: int = 0
    insertions: list[Insertion] = field(default_factory=list)
    notifications: list[Notification] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.notifications)
