"""Sync and async image uploaders.

Each uploader handles one upload in a single attempt:

1. Choose a boundary and encode the blob as multipart/form-data.
2. POST it to ``target.endpoint_url`` with ``Content-Type``,
   ``Content-Length`` and ``X-API-Key`` headers.
3. On ``200`` -- parse the JSON body and return the hosted URL.
4. On any other status -- fail with :class:`PasteUpHTTPStatusError`.
5. On a transport error -- fail with :class:`PasteUpTransportError`.

``timeout_seconds`` is a deadline for the whole request, response body
included; overrunning it is a :class:`PasteUpTransportError` with
``error_type`` ``"DeadlineExceeded"``.

Failures are returned inside :class:`UploadResult`, never raised.  Nothing
is retried.
"""

from __future__ import annotations

import asyncio
import json as _json
import sys
import time
from typing import Any

import httpx

from pasteup.config import PasteUpConfig
from pasteup.errors import (
    PasteUpHTTPStatusError,
    PasteUpTransportError,
    PasteUpUploadError,
)
from pasteup.models import ImageBlob, UploadResult, UploadTarget
from pasteup.observability import NoopMetricsHook, get_logger

from .multipart import build_multipart_body, content_type_header, select_boundary
from .response import parse_upload_response

log = get_logger("pasteup.upload")

API_KEY_HEADER = "X-API-Key"

_BODY_PREVIEW_CHARS = 500


# ---------------------------------------------------------------------------
# Helpers shared by both uploaders
# ---------------------------------------------------------------------------

def build_upload_request(
    target: UploadTarget,
    blob: ImageBlob,
    *,
    random_boundary: bool = False,
) -> tuple[dict[str, str], bytes]:
    """Return ``(headers, body)`` for uploading *blob* to *target*."""
    boundary = select_boundary(blob, random_boundary=random_boundary)
    body = build_multipart_body(blob, boundary)
    headers = {
        "Content-Type": content_type_header(boundary),
        "Content-Length": str(len(body)),
        API_KEY_HEADER: target.api_key,
    }
    return headers, body


def _make_timeout(config: PasteUpConfig) -> httpx.Timeout:
    # Per-phase limit; the total deadline is enforced by the uploaders.
    return httpx.Timeout(config.timeout_seconds)


def _deadline(config: PasteUpConfig, start: float) -> float | None:
    if config.timeout_seconds is None:
        return None
    return start + config.timeout_seconds


def _dump_payload(
    url: str,
    headers: dict[str, str],
    body_length: int,
    response_status: int | None,
    response_body: str | None,
    api_key: str | None = None,
) -> None:
    """Write a redacted debug dump of the request/response to stderr."""
    from pasteup.utils.redact import redact

    dump: dict[str, Any] = {
        "method": "POST",
        "url": url,
        "request_headers": headers,
        "request_body_bytes": body_length,
    }
    if response_status is not None:
        dump["response_status"] = response_status
    if response_body is not None:
        dump["response_body"] = response_body
    print(
        _json.dumps(redact(dump, api_key), indent=2, default=str),
        file=sys.stderr,
    )


def _body_text(content: bytes) -> str:
    return content.decode("utf-8", errors="replace")


def _result_from_response(
    status_code: int,
    content: bytes,
    target: UploadTarget,
) -> UploadResult:
    """Map an HTTP status and body onto an :class:`UploadResult`."""
    if status_code != 200:
        return UploadResult.failure(
            PasteUpHTTPStatusError(
                message=f"Upload failed with status: {status_code}",
                context={
                    "url": target.endpoint_url,
                    "status_code": status_code,
                    "body": _body_text(content)[:_BODY_PREVIEW_CHARS],
                },
            )
        )
    try:
        url = parse_upload_response(content)
    except PasteUpUploadError as exc:
        return UploadResult.failure(exc)
    return UploadResult.success(url)


def _transport_failure(exc: httpx.TransportError, target: UploadTarget) -> UploadResult:
    return UploadResult.failure(
        PasteUpTransportError(
            message=f"Request error: {exc}",
            context={"url": target.endpoint_url, "error_type": type(exc).__name__},
            cause=exc,
        )
    )


def _deadline_failure(config: PasteUpConfig, target: UploadTarget) -> UploadResult:
    return UploadResult.failure(
        PasteUpTransportError(
            message=f"Request error: no complete response within {config.timeout_seconds}s",
            context={
                "url": target.endpoint_url,
                "error_type": "DeadlineExceeded",
                "timeout_seconds": config.timeout_seconds,
            },
        )
    )


def _finish(
    uploader: Uploader | AsyncUploader,
    blob: ImageBlob,
    headers: dict[str, str],
    body_length: int,
    status_code: int,
    content: bytes,
    elapsed_ms: float,
) -> UploadResult:
    """Time, dump and classify a received response."""
    uploader._metrics.timing(
        "pasteup.request_duration_ms",
        elapsed_ms,
        tags={"status": str(status_code)},
    )
    if uploader._config.debug_dump_payload:
        _dump_payload(
            uploader._target.endpoint_url, headers, body_length,
            status_code, _body_text(content)[:1000],
            api_key=uploader._target.api_key,
        )

    result = _result_from_response(status_code, content, uploader._target)
    _record_outcome(uploader._metrics, blob, result, elapsed_ms)
    return result


def _code_name(code: str) -> str:
    return getattr(code, "value", code)


def _record_outcome(
    metrics: Any,
    blob: ImageBlob,
    result: UploadResult,
    elapsed_ms: float,
) -> None:
    """Log and count the outcome of one upload."""
    if result.ok:
        metrics.increment("pasteup.upload_success_total")
        log.info(
            "Image uploaded",
            extra={
                "extra_fields": {
                    "op": "upload",
                    "filename": blob.filename,
                    "size_bytes": blob.size,
                    "url": result.url,
                    "elapsed_ms": round(elapsed_ms, 1),
                }
            },
        )
        return

    error = result.error
    metrics.increment(
        "pasteup.upload_failure_total",
        tags={"reason": _code_name(error.code)},
    )
    fields: dict[str, Any] = {
        "op": "upload",
        "filename": blob.filename,
        "size_bytes": blob.size,
        "code": _code_name(error.code),
        "error": error.message,
    }
    if "status_code" in error.context:
        fields["status_code"] = error.context["status_code"]
    log.warning("Upload failed", extra={"extra_fields": fields})


# ---------------------------------------------------------------------------
# Sync uploader
# ---------------------------------------------------------------------------

class Uploader:
    """Synchronous image uploader.

    Parameters
    ----------
    target:
        Endpoint and API key.  Defaults to ``config.target()``.
    config:
        A :class:`PasteUpConfig` controlling timeout, proxy, boundary
        selection and observability.  Defaults to ``PasteUpConfig()``
        built from *target*.
    transport:
        Optional ``httpx.BaseTransport``; tests pass an
        ``httpx.MockTransport`` here.

    Raises
    ------
    PasteUpConfigError
        When *config* is omitted and *target* fails config validation, for
        example a plain ``http`` endpoint on a non-local host.  Raised at
        construction; :meth:`upload` itself reports failures as results.
    """

    def __init__(
        self,
        target: UploadTarget | None = None,
        *,
        config: PasteUpConfig | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if config is None:
            config = (
                PasteUpConfig(endpoint_url=target.endpoint_url, api_key=target.api_key)
                if target is not None
                else PasteUpConfig()
            )
        self._config = config
        self._target = target if target is not None else config.target()
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
        self._client = httpx.Client(
            headers={"User-Agent": config.user_agent},
            timeout=_make_timeout(config),
            proxy=config.http_proxy,
            transport=transport,
        )

    @property
    def target(self) -> UploadTarget:
        return self._target

    def upload(self, blob: ImageBlob) -> UploadResult:
        """Upload *blob* and return the hosted URL or the failure.

        Exactly one request is sent.  Never raises for transport, status
        or response-shape failures.

        The response body is streamed and ``timeout_seconds`` is checked
        as a total deadline after the headers and after every received
        chunk.  A read that stalls completely is cut off by the per-read
        timeout.
        """
        headers, body = build_upload_request(
            self._target, blob, random_boundary=self._config.random_boundary,
        )
        log.debug(
            "Uploading image",
            extra={
                "extra_fields": {
                    "op": "upload",
                    "filename": blob.filename,
                    "mime_type": blob.mime_type,
                    "size_bytes": blob.size,
                }
            },
        )

        t0 = time.monotonic()
        try:
            received = self._send(headers, body, _deadline(self._config, t0))
        except httpx.TransportError as exc:
            result = _transport_failure(exc, self._target)
            _record_outcome(self._metrics, blob, result, (time.monotonic() - t0) * 1000)
            return result
        if received is None:
            result = _deadline_failure(self._config, self._target)
            _record_outcome(self._metrics, blob, result, (time.monotonic() - t0) * 1000)
            return result

        status_code, content = received
        elapsed_ms = (time.monotonic() - t0) * 1000
        return _finish(self, blob, headers, len(body), status_code, content, elapsed_ms)

    def _send(
        self,
        headers: dict[str, str],
        body: bytes,
        deadline: float | None,
    ) -> tuple[int, bytes] | None:
        """POST *body* and read the response, or ``None`` past *deadline*."""
        with self._client.stream(
            "POST", self._target.endpoint_url, content=body, headers=headers,
        ) as response:
            chunks: list[bytes] = []
            if deadline is not None and time.monotonic() > deadline:
                return None
            for chunk in response.iter_bytes():
                chunks.append(chunk)
                if deadline is not None and time.monotonic() > deadline:
                    return None
            return response.status_code, b"".join(chunks)

    def close(self) -> None:
        """Close the underlying HTTP client and release resources."""
        self._client.close()

    def __enter__(self) -> Uploader:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


# ---------------------------------------------------------------------------
# Async uploader
# ---------------------------------------------------------------------------

class AsyncUploader:
    """Asynchronous image uploader.

    Mirrors :class:`Uploader` but uses ``httpx.AsyncClient``.  *transport*
    must be an ``httpx.AsyncBaseTransport`` when given.  Raises
    :class:`PasteUpConfigError` at construction under the same conditions.
    """

    def __init__(
        self,
        target: UploadTarget | None = None,
        *,
        config: PasteUpConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if config is None:
            config = (
                PasteUpConfig(endpoint_url=target.endpoint_url, api_key=target.api_key)
                if target is not None
                else PasteUpConfig()
            )
        self._config = config
        self._target = target if target is not None else config.target()
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
        self._client = httpx.AsyncClient(
            headers={"User-Agent": config.user_agent},
            timeout=_make_timeout(config),
            proxy=config.http_proxy,
            transport=transport,
        )

    @property
    def target(self) -> UploadTarget:
        return self._target

    async def upload(self, blob: ImageBlob) -> UploadResult:
        """Upload *blob* (async).

        See :meth:`Uploader.upload`; the semantics are identical, except
        that ``timeout_seconds`` bounds the whole request including a
        completely stalled read.
        """
        headers, body = build_upload_request(
            self._target, blob, random_boundary=self._config.random_boundary,
        )
        log.debug(
            "Uploading image",
            extra={
                "extra_fields": {
                    "op": "upload",
                    "filename": blob.filename,
                    "mime_type": blob.mime_type,
                    "size_bytes": blob.size,
                }
            },
        )

        t0 = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.post(
                    self._target.endpoint_url, content=body, headers=headers,
                ),
                timeout=self._config.timeout_seconds,
            )
        except asyncio.TimeoutError:
            result = _deadline_failure(self._config, self._target)
            _record_outcome(self._metrics, blob, result, (time.monotonic() - t0) * 1000)
            return result
        except httpx.TransportError as exc:
            result = _transport_failure(exc, self._target)
            _record_outcome(self._metrics, blob, result, (time.monotonic() - t0) * 1000)
            return result

        elapsed_ms = (time.monotonic() - t0) * 1000
        return _finish(
            self, blob, headers, len(body), response.status_code, response.content, elapsed_ms,
        )

    async def close(self) -> None:
        """Close the underlying async HTTP client and release resources."""
        await self._client.aclose()

    async def __aenter__(self) -> AsyncUploader:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()


# ---------------------------------------------------------------------------
# One-shot helpers
# ---------------------------------------------------------------------------

def upload(target: UploadTarget, blob: ImageBlob, **kwargs: Any) -> UploadResult:
    """Upload *blob* with a throwaway :class:`Uploader`.

    Transport, status and response failures come back in the result.
    An invalid *target* (for example plain ``http`` to a remote host)
    raises :class:`PasteUpConfigError` before any request is sent.
    """
    with Uploader(target, **kwargs) as uploader:
        return uploader.upload(blob)


async def async_upload(target: UploadTarget, blob: ImageBlob, **kwargs: Any) -> UploadResult:
    """Upload *blob* with a throwaway :class:`AsyncUploader`.

    Raises :class:`PasteUpConfigError` for an invalid *target*, like
    :func:`upload`.
    """
    async with AsyncUploader(target, **kwargs) as uploader:
        return await uploader.upload(blob)
