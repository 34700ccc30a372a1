"""Configuration for pasteup.

:class:`PasteUpConfig` is a dataclass that captures every tuneable knob of
the uploader.  Instances are passed to :class:`Uploader` and
:class:`AsyncUploader` at construction time; no module reads configuration
from global state.

Persisting settings is the host application's job.  The host hands its
stored mapping to :meth:`PasteUpConfig.from_settings`, which overlays it on
the defaults, and saves whatever :meth:`PasteUpConfig.to_settings` returns.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

from pasteup.errors import PasteUpConfigError
from pasteup.models import UploadTarget

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_ENDPOINT_URL = "https://xxxxx/api/1/upload"
"""Placeholder endpoint shipped with a fresh install."""

DEFAULT_API_KEY = "your-api-token-here"
"""Placeholder API key shipped with a fresh install."""

# Host settings keys -> dataclass field names.
_SETTINGS_KEYS: dict[str, str] = {
    "apiEndpoint": "endpoint_url",
    "apiToken": "api_key",
}

_LOCAL_HOSTS = ("localhost", "127.0.0.1", "::1")


# ---------------------------------------------------------------------------
# Configuration dataclass
# ---------------------------------------------------------------------------

@dataclass
class PasteUpConfig:
    """Complete configuration for the uploader and paste handler.

    Parameters
    ----------
    endpoint_url:
        Upload endpoint.  Must be ``https``; plain ``http`` is accepted
        only for local hosts.
    api_key:
        Value of the ``X-API-Key`` header.  Never logged.
    timeout_seconds:
        Deadline for the whole upload request, response body included.
        ``None`` waits forever.
    random_boundary:
        Always generate a fresh multipart boundary instead of the fixed
        ``----WebKitFormBoundary7MA4YWxkTrZu0gW`` literal.  A fresh
        boundary is used regardless when the image bytes contain the
        fixed one.
    http_proxy:
        Optional HTTP/HTTPS proxy URL.
    user_agent:
        Value of the ``User-Agent`` header.
    metrics:
        Optional :class:`~pasteup.observability.MetricsHook` backend.
    debug_dump_payload:
        Write a redacted summary of each request/response to *stderr*.
    """

    # ── Endpoint ────────────────────────────────────────────────────────
    endpoint_url: str = DEFAULT_ENDPOINT_URL

    api_key: str = DEFAULT_API_KEY

    # ── HTTP ────────────────────────────────────────────────────────────
    timeout_seconds: float | None = 30.0

    random_boundary: bool = False

    http_proxy: str | None = None

    user_agent: str = "pasteup/0.1"

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    # ── Debug ───────────────────────────────────────────────────────────
    debug_dump_payload: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        parsed = urlparse(self.endpoint_url)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            raise PasteUpConfigError(
                message=f"endpoint_url must be an http(s) URL with a host, got {self.endpoint_url!r}",
                context={"field": "endpoint_url", "value": self.endpoint_url},
            )
        if parsed.scheme == "http" and parsed.hostname not in _LOCAL_HOSTS:
            raise PasteUpConfigError(
                message=(
                    f"endpoint_url uses insecure HTTP for non-local host '{parsed.hostname}'. "
                    "Use HTTPS to protect your API key, or target localhost for testing."
                ),
                context={"field": "endpoint_url", "value": self.endpoint_url},
            )
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise PasteUpConfigError(
                message=f"timeout_seconds must be > 0 or None, got {self.timeout_seconds}",
                context={"field": "timeout_seconds", "value": self.timeout_seconds},
            )

    def target(self) -> UploadTarget:
        """Return the :class:`UploadTarget` for the current settings."""
        return UploadTarget(endpoint_url=self.endpoint_url, api_key=self.api_key)

    @classmethod
    def from_settings(
        cls, settings: Mapping[str, Any] | None = None, **overrides: Any,
    ) -> PasteUpConfig:
        """Build a config from a host settings mapping laid over the defaults.

        Accepts both the host's keys (``apiEndpoint``, ``apiToken``) and the
        dataclass field names.  Unknown keys and ``None`` values are
        ignored, so a partially saved or empty mapping yields defaults for
        the missing entries.  *overrides* win over *settings*.
        """
        field_names = {f.name for f in dataclasses.fields(cls)}
        values: dict[str, Any] = {}
        for key, value in (settings or {}).items():
            name = _SETTINGS_KEYS.get(key, key)
            if name in field_names and value is not None:
                values[name] = value
        values.update(overrides)
        return cls(**values)

    def to_settings(self) -> dict[str, str]:
        """Return the persisted subset in the host's key format."""
        return {
            "apiEndpoint": self.endpoint_url,
            "apiToken": self.api_key,
        }

    def __repr__(self) -> str:
        """Mask the API key to prevent accidental credential leakage."""
        parts: list[str] = []
        for f in dataclasses.fields(self):
            val = getattr(self, f.name)
            if f.name == "api_key":
                masked = f"...{val[-4:]}" if len(val) >= 4 else "****"
                parts.append(f"api_key='{masked}'")
            else:
                parts.append(f"{f.name}={val!r}")
        return f"PasteUpConfig({', '.join(parts)})"
