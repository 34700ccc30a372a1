"""multipart/form-data encoding for a single image part.

The upload endpoint expects exactly one file field named ``source``::

    --<boundary>\\r\\n
    Content-Disposition: form-data; name="source"; filename="<name>"\\r\\n
    Content-Type: <mime>\\r\\n
    \\r\\n
    <raw image bytes>\\r\\n
    --<boundary>--\\r\\n

The body is built by hand rather than by ``httpx``'s ``files=`` so that the
boundary and ``Content-Length`` are under our control and match the
declared headers byte for byte.
"""

from __future__ import annotations

import secrets

from pasteup.models import ImageBlob

DEFAULT_BOUNDARY = "----WebKitFormBoundary7MA4YWxkTrZu0gW"
"""Fixed boundary used unless it collides with the payload."""

FIELD_NAME = "source"

_CRLF = b"\r\n"

# Browsers percent-encode these in filename parameters.
_FILENAME_ESCAPES = {'"': "%22", "\r": "%0D", "\n": "%0A"}


def _escape_filename(filename: str) -> str:
    return "".join(_FILENAME_ESCAPES.get(ch, ch) for ch in filename)


def _header_value(value: str) -> str:
    # A header value must not start another header line.
    return value.replace("\r", "").replace("\n", "")


def part_header(blob: ImageBlob, boundary: str) -> bytes:
    """Return the bytes preceding the image data."""
    return (
        f"--{boundary}\r\n"
        f'Content-Disposition: form-data; name="{FIELD_NAME}"; '
        f'filename="{_escape_filename(blob.filename)}"\r\n'
        f"Content-Type: {_header_value(blob.mime_type)}\r\n"
        "\r\n"
    ).encode("utf-8")


def closing_delimiter(boundary: str) -> bytes:
    """Return the bytes following the image data."""
    return f"\r\n--{boundary}--\r\n".encode("utf-8")


def multipart_overhead(blob: ImageBlob, boundary: str) -> int:
    """Number of body bytes that are not image data."""
    return len(part_header(blob, boundary)) + len(closing_delimiter(boundary))


def build_multipart_body(blob: ImageBlob, boundary: str = DEFAULT_BOUNDARY) -> bytes:
    """Encode *blob* as a one-part multipart/form-data body.

    Parameters
    ----------
    blob:
        Image to encode.  Its ``filename`` and ``mime_type`` populate the
        part headers.
    boundary:
        Delimiter string; must match the ``Content-Type`` header.

    Returns
    -------
    bytes
        ``len(blob.data) + multipart_overhead(blob, boundary)`` bytes.
    """
    return b"".join((
        part_header(blob, boundary),
        blob.data,
        closing_delimiter(boundary),
    ))


def content_type_header(boundary: str = DEFAULT_BOUNDARY) -> str:
    return f"multipart/form-data; boundary={boundary}"


def generate_boundary() -> str:
    """Return a fresh random boundary."""
    return f"----pasteupFormBoundary{secrets.token_hex(16)}"


def boundary_collides(data: bytes, boundary: str) -> bool:
    """Whether the delimiter line ``--<boundary>`` appears inside *data*."""
    return f"--{boundary}".encode("utf-8") in data


def select_boundary(blob: ImageBlob, *, random_boundary: bool = False) -> str:
    """Pick the boundary for *blob*.

    The fixed :data:`DEFAULT_BOUNDARY` is returned unless *random_boundary*
    is set or the image bytes contain it; otherwise a random boundary that
    does not occur in the data is generated.
    """
    if not random_boundary and not boundary_collides(blob.data, DEFAULT_BOUNDARY):
        return DEFAULT_BOUNDARY
    while True:
        boundary = generate_boundary()
        if not boundary_collides(blob.data, boundary):
            return boundary
