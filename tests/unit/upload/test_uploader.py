"""Tests for Uploader / AsyncUploader.

Every test drives a real httpx client through ``httpx.MockTransport`` so
headers and bodies are checked exactly as they would go on the wire.
"""

from __future__ import annotations

import asyncio
import json
import time
from unittest.mock import patch

import httpx
import pytest

from pasteup.config import PasteUpConfig
from pasteup.errors import (
    ErrorCode,
    PasteUpConfigError,
    PasteUpHTTPStatusError,
    PasteUpResponseParseError,
    PasteUpTransportError,
)
from pasteup.models import ImageBlob, UploadTarget
from pasteup.upload.multipart import DEFAULT_BOUNDARY, multipart_overhead
from pasteup.upload.uploader import (
    AsyncUploader,
    Uploader,
    async_upload,
    build_upload_request,
    upload,
)

OK_BODY = {"status_code": 200, "image": {"url": "https://x/y.png"}}

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class _Recorder:
    """Collects requests seen by a MockTransport handler."""

    def __init__(self, status: int = 200, body: object = OK_BODY, raw: bytes | None = None):
        self.requests: list[httpx.Request] = []
        self._status = status
        self._content = raw if raw is not None else json.dumps(body).encode()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self._status, content=self._content)


class _MetricsRecorder:
    def __init__(self):
        self.calls: list[tuple] = []

    def increment(self, name, value=1, tags=None):
        self.calls.append(("increment", name, value, tags))

    def timing(self, name, ms, tags=None):
        self.calls.append(("timing", name, ms, tags))

    def gauge(self, name, value, tags=None):
        self.calls.append(("gauge", name, value, tags))

    def names(self) -> list[str]:
        return [c[1] for c in self.calls]


def _sync_uploader(config: PasteUpConfig, handler) -> Uploader:
    return Uploader(config=config, transport=httpx.MockTransport(handler))


def _async_uploader(config: PasteUpConfig, handler) -> AsyncUploader:
    return AsyncUploader(config=config, transport=httpx.MockTransport(handler))


def _dribble(content: bytes, delay: float):
    """Yield *content* one byte at a time, sleeping before each byte."""
    for i in range(len(content)):
        time.sleep(delay)
        yield content[i:i + 1]


async def _async_dribble(content: bytes, delay: float):
    for i in range(len(content)):
        await asyncio.sleep(delay)
        yield content[i:i + 1]


def _short_timeout_config(seconds: float) -> PasteUpConfig:
    return PasteUpConfig(
        endpoint_url="https://h.example/up", api_key="k", timeout_seconds=seconds,
    )


# =========================================================================
# build_upload_request
# =========================================================================


class TestBuildUploadRequest:
    def test_headers(self, target, png_blob):
        headers, body = build_upload_request(target, png_blob)
        assert headers["Content-Type"] == (
            f"multipart/form-data; boundary={DEFAULT_BOUNDARY}"
        )
        assert headers["Content-Length"] == str(len(body))
        assert headers["X-API-Key"] == "test_key_1234"

    def test_body_length(self, target, png_blob):
        _, body = build_upload_request(target, png_blob)
        assert len(body) == png_blob.size + multipart_overhead(png_blob, DEFAULT_BOUNDARY)

    def test_random_boundary_matches_header(self, target, png_blob):
        headers, body = build_upload_request(target, png_blob, random_boundary=True)
        boundary = headers["Content-Type"].split("boundary=", 1)[1]
        assert boundary != DEFAULT_BOUNDARY
        assert body.startswith(f"--{boundary}\r\n".encode())
        assert body.endswith(f"--{boundary}--\r\n".encode())


# =========================================================================
# Sync uploader
# =========================================================================


class TestUploaderRequest:
    def test_single_post_with_expected_headers(self, config, png_blob):
        rec = _Recorder()
        with _sync_uploader(config, rec) as uploader:
            uploader.upload(png_blob)

        assert len(rec.requests) == 1
        req = rec.requests[0]
        assert req.method == "POST"
        assert str(req.url) == "https://img.example.com/api/1/upload"
        assert req.headers["X-API-Key"] == "test_key_1234"
        assert req.headers["Content-Type"] == (
            f"multipart/form-data; boundary={DEFAULT_BOUNDARY}"
        )
        assert req.headers["Content-Length"] == str(len(req.content))
        assert req.headers["User-Agent"] == config.user_agent

    def test_body_carries_blob(self, config, png_blob):
        rec = _Recorder()
        with _sync_uploader(config, rec) as uploader:
            uploader.upload(png_blob)
        content = rec.requests[0].content
        assert png_blob.data in content
        assert b'name="source"; filename="image.png"' in content

    def test_endpoint_query_string_preserved(self, png_blob):
        cfg = PasteUpConfig(endpoint_url="https://h.example/api/1/upload?format=json", api_key="k")
        rec = _Recorder()
        with _sync_uploader(cfg, rec) as uploader:
            uploader.upload(png_blob)
        assert rec.requests[0].url.params["format"] == "json"

    def test_each_call_is_one_request(self, config, png_blob):
        rec = _Recorder()
        with _sync_uploader(config, rec) as uploader:
            uploader.upload(png_blob)
            uploader.upload(png_blob)
        assert len(rec.requests) == 2


class TestUploaderResults:
    def test_success_returns_url(self, config, png_blob):
        with _sync_uploader(config, _Recorder()) as uploader:
            result = uploader.upload(png_blob)
        assert result.ok
        assert result.url == "https://x/y.png"
        assert result.error is None

    def test_status_field_mismatch_references_raw_body(self, config, png_blob):
        rec = _Recorder(raw=b'{"status_code":500}')
        with _sync_uploader(config, rec) as uploader:
            result = uploader.upload(png_blob)
        assert not result.ok
        assert isinstance(result.error, PasteUpResponseParseError)
        assert result.error.body == '{"status_code":500}'
        assert '{"status_code":500}' in result.error.message

    def test_invalid_json_is_parse_error(self, config, png_blob):
        rec = _Recorder(raw=b"not json at all")
        with _sync_uploader(config, rec) as uploader:
            result = uploader.upload(png_blob)
        assert isinstance(result.error, PasteUpResponseParseError)
        assert result.error.code == ErrorCode.RESPONSE_PARSE_ERROR
        assert result.error.context["reason"] == "invalid_json"

    def test_non_200_status(self, config, png_blob):
        rec = _Recorder(status=403, body={"error": "forbidden"})
        with _sync_uploader(config, rec) as uploader:
            result = uploader.upload(png_blob)
        assert isinstance(result.error, PasteUpHTTPStatusError)
        assert result.error.status_code == 403
        assert "403" in result.error.message
        assert "forbidden" in result.error.context["body"]

    @pytest.mark.parametrize("status", [201, 204, 301, 500, 502])
    def test_any_status_other_than_200_fails(self, config, png_blob, status):
        rec = _Recorder(status=status, raw=b"")
        with _sync_uploader(config, rec) as uploader:
            result = uploader.upload(png_blob)
        assert isinstance(result.error, PasteUpHTTPStatusError)
        assert result.error.status_code == status

    def test_non_200_body_is_truncated(self, config, png_blob):
        rec = _Recorder(status=500, raw=b"E" * 5000)
        with _sync_uploader(config, rec) as uploader:
            result = uploader.upload(png_blob)
        assert len(result.error.context["body"]) == 500

    def test_connect_error_is_transport_error(self, config, png_blob):
        def handler(request):
            raise httpx.ConnectError("Name or service not known", request=request)

        with _sync_uploader(config, handler) as uploader:
            result = uploader.upload(png_blob)
        err = result.error
        assert isinstance(err, PasteUpTransportError)
        assert err.code == ErrorCode.TRANSPORT_ERROR
        assert isinstance(err.cause, httpx.ConnectError)
        assert err.__cause__ is err.cause
        assert err.context["error_type"] == "ConnectError"

    def test_timeout_is_transport_error(self, config, png_blob):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with _sync_uploader(config, handler) as uploader:
            result = uploader.upload(png_blob)
        assert isinstance(result.error, PasteUpTransportError)

    def test_unexpected_exception_propagates(self, config, png_blob):
        def handler(request):
            raise RuntimeError("bug")

        with _sync_uploader(config, handler) as uploader:
            with pytest.raises(RuntimeError, match="bug"):
                uploader.upload(png_blob)


class TestUploaderDeadline:
    def test_slow_body_exceeds_total_deadline(self, png_blob):
        content = json.dumps(OK_BODY).encode()

        def handler(request):
            return httpx.Response(200, content=_dribble(content, 0.05))

        with _sync_uploader(_short_timeout_config(0.2), handler) as uploader:
            t0 = time.monotonic()
            result = uploader.upload(png_blob)
            elapsed = time.monotonic() - t0

        assert not result.ok
        assert isinstance(result.error, PasteUpTransportError)
        assert result.error.context["error_type"] == "DeadlineExceeded"
        assert elapsed < len(content) * 0.05

    def test_slow_body_within_deadline_succeeds(self, png_blob):
        content = json.dumps(OK_BODY).encode()

        def handler(request):
            return httpx.Response(200, content=_dribble(content, 0.001))

        with _sync_uploader(_short_timeout_config(30.0), handler) as uploader:
            result = uploader.upload(png_blob)
        assert result.url == "https://x/y.png"

    def test_deadline_failure_is_counted(self, png_blob):
        metrics = _MetricsRecorder()
        cfg = PasteUpConfig(
            endpoint_url="https://h.example/up", api_key="k",
            timeout_seconds=0.05, metrics=metrics,
        )

        def handler(request):
            return httpx.Response(200, content=_dribble(b"{}" * 10, 0.05))

        with _sync_uploader(cfg, handler) as uploader:
            uploader.upload(png_blob)
        failures = [c for c in metrics.calls if c[1] == "pasteup.upload_failure_total"]
        assert failures == [
            ("increment", "pasteup.upload_failure_total", 1, {"reason": "TRANSPORT_ERROR"})
        ]


class TestUploaderConstruction:
    def test_target_defaults_to_config(self, config):
        uploader = Uploader(config=config)
        assert uploader.target == config.target()
        uploader.close()

    def test_target_only(self):
        target = UploadTarget("https://h.example/up", "k-9999")
        uploader = Uploader(target)
        assert uploader.target is target
        uploader.close()

    def test_explicit_target_wins_over_config(self, config):
        target = UploadTarget("https://other.example/up", "other")
        rec = _Recorder()
        uploader = Uploader(target, config=config, transport=httpx.MockTransport(rec))
        uploader.upload(ImageBlob(data=b"x"))
        uploader.close()
        assert rec.requests[0].url.host == "other.example"
        assert rec.requests[0].headers["X-API-Key"] == "other"

    def test_timeout_applied(self, png_blob):
        cfg = PasteUpConfig(endpoint_url="https://h.example/up", api_key="k", timeout_seconds=5.0)
        uploader = Uploader(config=cfg)
        assert uploader._client.timeout == httpx.Timeout(5.0)
        uploader.close()

    def test_no_timeout(self):
        cfg = PasteUpConfig(endpoint_url="https://h.example/up", api_key="k", timeout_seconds=None)
        uploader = Uploader(config=cfg)
        assert uploader._client.timeout == httpx.Timeout(None)
        uploader.close()

    def test_insecure_remote_target_raises_config_error(self):
        target = UploadTarget("http://remote.example/up", "k")
        with pytest.raises(PasteUpConfigError):
            Uploader(target)

    def test_one_shot_upload_raises_for_insecure_target(self, png_blob):
        target = UploadTarget("http://remote.example/up", "k")
        with pytest.raises(PasteUpConfigError):
            upload(target, png_blob)

    def test_close_closes_client(self, config):
        uploader = Uploader(config=config)
        uploader.close()
        assert uploader._client.is_closed


class TestUploaderObservability:
    def test_success_metrics(self, png_blob):
        metrics = _MetricsRecorder()
        cfg = PasteUpConfig(endpoint_url="https://h.example/up", api_key="k", metrics=metrics)
        with _sync_uploader(cfg, _Recorder()) as uploader:
            uploader.upload(png_blob)
        assert "pasteup.request_duration_ms" in metrics.names()
        assert "pasteup.upload_success_total" in metrics.names()
        assert "pasteup.upload_failure_total" not in metrics.names()

    def test_failure_metrics_tagged_with_reason(self, png_blob):
        metrics = _MetricsRecorder()
        cfg = PasteUpConfig(endpoint_url="https://h.example/up", api_key="k", metrics=metrics)
        with _sync_uploader(cfg, _Recorder(status=403)) as uploader:
            uploader.upload(png_blob)
        failures = [c for c in metrics.calls if c[1] == "pasteup.upload_failure_total"]
        assert failures == [
            ("increment", "pasteup.upload_failure_total", 1, {"reason": "HTTP_STATUS_ERROR"})
        ]

    def test_transport_failure_counts_without_timing(self, png_blob):
        metrics = _MetricsRecorder()
        cfg = PasteUpConfig(endpoint_url="https://h.example/up", api_key="k", metrics=metrics)

        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with _sync_uploader(cfg, handler) as uploader:
            uploader.upload(png_blob)
        assert "pasteup.request_duration_ms" not in metrics.names()
        assert "pasteup.upload_failure_total" in metrics.names()

    def test_debug_dump_redacts_api_key(self, png_blob, capsys):
        cfg = PasteUpConfig(
            endpoint_url="https://h.example/up",
            api_key="super-secret-key-9876",
            debug_dump_payload=True,
        )
        with _sync_uploader(cfg, _Recorder()) as uploader:
            uploader.upload(png_blob)
        err = capsys.readouterr().err
        assert "super-secret-key-9876" not in err
        assert "9876" in err
        assert '"response_status": 200' in err
        assert '"request_body_bytes"' in err

    def test_no_dump_by_default(self, config, png_blob):
        with patch("pasteup.upload.uploader._dump_payload") as dump:
            with _sync_uploader(config, _Recorder()) as uploader:
                uploader.upload(png_blob)
        dump.assert_not_called()


class TestUploadHelper:
    def test_one_shot_upload(self, target, png_blob):
        rec = _Recorder()
        result = upload(target, png_blob, transport=httpx.MockTransport(rec))
        assert result.url == "https://x/y.png"
        assert len(rec.requests) == 1


# =========================================================================
# Async uploader
# =========================================================================


class TestAsyncUploader:
    async def test_success_returns_url(self, config, png_blob):
        rec = _Recorder()
        async with _async_uploader(config, rec) as uploader:
            result = await uploader.upload(png_blob)
        assert result.url == "https://x/y.png"
        req = rec.requests[0]
        assert req.headers["X-API-Key"] == "test_key_1234"
        assert req.headers["Content-Length"] == str(len(req.content))

    async def test_status_mismatch(self, config, png_blob):
        async with _async_uploader(config, _Recorder(raw=b'{"status_code":500}')) as uploader:
            result = await uploader.upload(png_blob)
        assert isinstance(result.error, PasteUpResponseParseError)
        assert result.error.body == '{"status_code":500}'

    async def test_non_200_status(self, config, png_blob):
        async with _async_uploader(config, _Recorder(status=403)) as uploader:
            result = await uploader.upload(png_blob)
        assert isinstance(result.error, PasteUpHTTPStatusError)
        assert result.error.status_code == 403

    async def test_invalid_json(self, config, png_blob):
        async with _async_uploader(config, _Recorder(raw=b"{")) as uploader:
            result = await uploader.upload(png_blob)
        assert isinstance(result.error, PasteUpResponseParseError)

    async def test_transport_error(self, config, png_blob):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        async with _async_uploader(config, handler) as uploader:
            result = await uploader.upload(png_blob)
        assert isinstance(result.error, PasteUpTransportError)

    async def test_stalled_server_hits_deadline(self, png_blob):
        async def handler(request):
            await asyncio.sleep(5)
            return httpx.Response(200, json=OK_BODY)

        async with _async_uploader(_short_timeout_config(0.1), handler) as uploader:
            t0 = time.monotonic()
            result = await uploader.upload(png_blob)
            elapsed = time.monotonic() - t0

        assert isinstance(result.error, PasteUpTransportError)
        assert result.error.context["error_type"] == "DeadlineExceeded"
        assert elapsed < 2

    async def test_slow_body_exceeds_total_deadline(self, png_blob):
        content = json.dumps(OK_BODY).encode()

        async def handler(request):
            return httpx.Response(200, content=_async_dribble(content, 0.05))

        async with _async_uploader(_short_timeout_config(0.2), handler) as uploader:
            result = await uploader.upload(png_blob)

        assert isinstance(result.error, PasteUpTransportError)
        assert result.error.context["error_type"] == "DeadlineExceeded"

    async def test_close(self, config):
        uploader = AsyncUploader(config=config)
        await uploader.close()
        assert uploader._client.is_closed

    async def test_one_shot_async_upload(self, target, png_blob):
        rec = _Recorder()
        result = await async_upload(target, png_blob, transport=httpx.MockTransport(rec))
        assert result.ok
        assert len(rec.requests) == 1
