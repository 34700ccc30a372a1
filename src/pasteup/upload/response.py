"""Parsing of the upload endpoint's JSON response.

A successful upload answers HTTP 200 with::

    {"status_code": 200, "image": {"url": "https://host/path.png"}}

Anything else is reported as :class:`PasteUpResponseParseError`, carrying
the raw body so the user can see what the server said.
"""

from __future__ import annotations

import json
from typing import Any

from pasteup.errors import PasteUpResponseParseError

EXPECTED_STATUS = 200


def _as_text(body: bytes | str) -> str:
    if isinstance(body, bytes):
        return body.decode("utf-8", errors="replace")
    return body


def _status_matches(value: Any) -> bool:
    # The server may send the status as a number or a numeric string.
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return value == EXPECTED_STATUS
    if isinstance(value, str):
        return value.strip() == str(EXPECTED_STATUS)
    return False


def parse_upload_response(body: bytes | str) -> str:
    """Extract the hosted image URL from a 200 response body.

    Parameters
    ----------
    body:
        Raw response body.

    Returns
    -------
    str
        The value of ``image.url``.

    Raises
    ------
    PasteUpResponseParseError
        With ``reason`` ``"invalid_json"``, ``"status_mismatch"`` or
        ``"missing_url"``.
    """
    text = _as_text(body)
    try:
        payload = json.loads(text)
    except ValueError as exc:
        raise PasteUpResponseParseError(
            message=f"Error parsing response: {exc}",
            context={"body": text, "reason": "invalid_json"},
            cause=exc,
        ) from exc

    if not isinstance(payload, dict) or not _status_matches(payload.get("status_code")):
        raise PasteUpResponseParseError(
            message=f"Upload failed: {text}",
            context={"body": text, "reason": "status_mismatch"},
        )

    image = payload.get("image")
    url = image.get("url") if isinstance(image, dict) else None
    if not isinstance(url, str) or not url:
        raise PasteUpResponseParseError(
            message=f"Upload response has no image URL: {text}",
            context={"body": text, "reason": "missing_url"},
        )
    return url
