"""Metrics hook protocol and no-op default implementation.

pasteup emits a handful of counters and timings around uploads and
insertions.  By default a :class:`NoopMetricsHook` is used.  Callers can
pass any object satisfying :class:`MetricsHook` as ``config.metrics`` to
route the data points to StatsD, Prometheus, or a test double.

Emitted metric names:

* ``pasteup.upload_success_total``   -- counter
* ``pasteup.upload_failure_total``   -- counter, tag ``reason``
* ``pasteup.request_duration_ms``    -- timing, tag ``status``
* ``pasteup.paste_images_total``     -- counter
* ``pasteup.insert_failure_total``   -- counter
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol that any metrics backend must satisfy.

    All methods accept an optional *tags* dict of string keys and values.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment a counter metric by *value*."""
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a duration in milliseconds."""
        ...

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Set a gauge metric to an absolute value."""
        ...


class NoopMetricsHook:
    """Default metrics implementation that discards all data points."""

    __slots__ = ()

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass
