"""Header / payload redaction for safe logging.

Before a request or response summary is written to logs or to the
``debug_dump_payload`` stream, :func:`redact` must be applied:

* Values under **sensitive keys** (``X-API-Key``, ``Authorization``,
  anything containing ``token``/``secret``/...) are masked, keeping only
  the last four characters of a known key.
* **Binary values** (``bytes`` and long non-printable strings) are replaced
  with ``<binary:N_bytes>`` so image payloads never reach a log line.
* The full **API key is never present** in the output, wherever it occurs.
"""

from __future__ import annotations

import copy
from typing import Any

# Substrings: a key containing any of these (case-insensitive) is masked.
_SENSITIVE_KEY_PATTERNS: frozenset[str] = frozenset({
    "token",
    "secret",
    "password",
    "credential",
    "authorization",
    "cookie",
    "api_key",
    "api-key",
})

_BINARY_LENGTH_THRESHOLD = 256


def _mask_key(value: str, api_key: str | None) -> str:
    """Replace occurrences of *api_key* in *value* with a placeholder."""
    if api_key and api_key in value:
        suffix = api_key[-4:] if len(api_key) >= 4 else "****"
        placeholder = f"<redacted:...{suffix}>"
        if api_key in placeholder:
            placeholder = "<redacted>"
        value = value.replace(api_key, placeholder)
    return value


def _looks_binary(value: str) -> bool:
    if len(value) < _BINARY_LENGTH_THRESHOLD:
        return False
    non_printable = sum(
        1
        for ch in value[:512]
        if not ch.isprintable() and ch not in ("\n", "\r", "\t")
    )
    return non_printable > len(value[:512]) * 0.1


def _redact_value(value: Any, api_key: str | None) -> Any:
    if isinstance(value, dict):
        return _redact_dict(value, api_key)
    if isinstance(value, list):
        return [_redact_value(item, api_key) for item in value]
    if isinstance(value, str):
        if _looks_binary(value):
            return f"<binary:{len(value.encode('utf-8'))}_bytes>"
        return _mask_key(value, api_key)
    if isinstance(value, (bytes, bytearray)):
        return f"<binary:{len(value)}_bytes>"
    return value


def _redact_dict(d: dict, api_key: str | None) -> dict:
    result: dict = {}
    for key, value in d.items():
        key_lower = key.lower() if isinstance(key, str) else ""
        if any(pat in key_lower for pat in _SENSITIVE_KEY_PATTERNS):
            if isinstance(value, str) and api_key and api_key in value:
                result[key] = _mask_key(value, api_key)
            else:
                result[key] = "<redacted>"
        else:
            result[key] = _redact_value(value, api_key)
    return result


def redact(payload: dict, api_key: str | None = None) -> dict:
    """Return a deep copy of *payload* with sensitive data redacted.

    Parameters
    ----------
    payload:
        The dictionary to sanitize, typically request headers or a
        request/response summary.
    api_key:
        The configured API key.  Every occurrence is replaced with
        ``<redacted:...XXXX>``.

    Returns
    -------
    dict
        A new dictionary; *payload* is never mutated.

    Examples
    --------
    >>> redact({"X-API-Key": "abcd1234"}, api_key="abcd1234")
    {'X-API-Key': '<redacted:...1234>'}

    >>> redact({"body": b"\\x89PNG..."})
    {'body': '<binary:7_bytes>'}
    """
    safe = copy.deepcopy(payload)
    return _redact_dict(safe, api_key)
