"""pasteup — upload pasted clipboard images and insert their URLs.

Public re-exports
-----------------

* **Uploaders:** :class:`Uploader`, :class:`AsyncUploader`
* **Paste handling:** :class:`PasteHandler`
* **Configuration:** :class:`PasteUpConfig`
* **Errors:** Every :class:`PasteUpError` subclass and :class:`ErrorCode`
* **Models:** Request, result, clipboard and effect types

Usage::

    from pasteup import AsyncUploader, ImageBlob, PasteUpConfig

    config = PasteUpConfig(
        endpoint_url="https://img.example.com/api/1/upload",
        api_key="chv_xxx",
    )
    async with AsyncUploader(config=config) as uploader:
        result = await uploader.upload(
            ImageBlob(data=png_bytes, filename="shot.png", mime_type="image/png"),
        )
        print(result.url if result.ok else result.error)
"""

from __future__ import annotations

# ── Configuration ───────────────────────────────────────────────────────
from pasteup.config import DEFAULT_API_KEY, DEFAULT_ENDPOINT_URL, PasteUpConfig

# ── Errors ──────────────────────────────────────────────────────────────
from pasteup.errors import (
    ErrorCode,
    PasteUpConfigError,
    PasteUpError,
    PasteUpHTTPStatusError,
    PasteUpInsertionTargetMissingError,
    PasteUpResponseParseError,
    PasteUpTransportError,
    PasteUpUploadError,
)

# ── Models ──────────────────────────────────────────────────────────────
from pasteup.models import (
    ClipboardItem,
    HandlerState,
    ImageBlob,
    Insertion,
    Notification,
    PasteReport,
    UploadResult,
    UploadTarget,
)

# ── Paste handling ──────────────────────────────────────────────────────
from pasteup.paste import PasteHandler

# ── Uploaders ───────────────────────────────────────────────────────────
from pasteup.upload import AsyncUploader, Uploader, async_upload, upload

# ── Public surface ──────────────────────────────────────────────────────

__all__ = [
    # Uploaders
    "Uploader",
    "AsyncUploader",
    "upload",
    "async_upload",
    # Paste handling
    "PasteHandler",
    # Configuration
    "PasteUpConfig",
    "DEFAULT_ENDPOINT_URL",
    "DEFAULT_API_KEY",
    # Errors
    "PasteUpError",
    "ErrorCode",
    "PasteUpConfigError",
    "PasteUpUploadError",
    "PasteUpTransportError",
    "PasteUpHTTPStatusError",
    "PasteUpResponseParseError",
    "PasteUpInsertionTargetMissingError",
    # Models
    "UploadTarget",
    "ImageBlob",
    "UploadResult",
    "ClipboardItem",
    "Insertion",
    "Notification",
    "PasteReport",
    "HandlerState",
]
