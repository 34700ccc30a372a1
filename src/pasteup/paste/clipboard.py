"""Clipboard snapshot helpers.

Selects the image entries of a paste event and turns them into
:class:`ImageBlob` instances ready for upload.
"""

from __future__ import annotations

import mimetypes

from pasteup.models import ClipboardItem, ImageBlob

_DEFAULT_EXTENSION = ".png"

# mimetypes returns odd or platform-dependent picks for some image types.
_PREFERRED_EXTENSIONS: dict[str, str] = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "image/svg+xml": ".svg",
    "image/bmp": ".bmp",
    "image/tiff": ".tiff",
}


def is_image_item(item: ClipboardItem) -> bool:
    """Whether the item's declared type begins with ``image``."""
    return item.type.startswith("image")


def mime_to_extension(mime_type: str) -> str:
    """Return a file extension (with dot) for *mime_type*."""
    mime_type = mime_type.split(";", 1)[0].strip().lower()
    ext = _PREFERRED_EXTENSIONS.get(mime_type) or mimetypes.guess_extension(mime_type)
    return ext or _DEFAULT_EXTENSION


def to_image_blob(item: ClipboardItem, index: int = 0) -> ImageBlob:
    """Convert a clipboard image entry into an :class:`ImageBlob`.

    The host-supplied name is kept when present.  Otherwise the name is
    ``image<ext>`` for the first image and ``image-<index><ext>`` after it.
    """
    filename = item.name
    if not filename:
        stem = "image" if index == 0 else f"image-{index}"
        filename = stem + mime_to_extension(item.type)
    return ImageBlob(data=item.data, filename=filename, mime_type=item.type)


def markdown_image(url: str, alt: str = "") -> str:
    return f"![{alt}]({url})"
