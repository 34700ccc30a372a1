"""Full error hierarchy for pasteup.

Every public error class inherits from PasteUpError. Each carries a
machine-readable ``code`` (from :class:`ErrorCode`), a human-readable
``message``, an optional structured ``context`` dict, and an optional
``cause`` (chained exception).

Error codes are defined as a :class:`str` enum so that they serialise
naturally to JSON and can be matched with simple ``==`` comparisons.

Upload errors are never raised out of :meth:`Uploader.upload`; they are
returned inside an :class:`~pasteup.models.UploadResult` so that the paste
handler can report them without unwinding.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error pasteup can produce."""

    CONFIG_ERROR = "CONFIG_ERROR"
    UPLOAD_ERROR = "UPLOAD_ERROR"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    HTTP_STATUS_ERROR = "HTTP_STATUS_ERROR"
    RESPONSE_PARSE_ERROR = "RESPONSE_PARSE_ERROR"
    INSERTION_TARGET_MISSING = "INSERTION_TARGET_MISSING"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class PasteUpError(Exception):
    """Base exception for all pasteup errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error category.
    message:
        A developer-friendly description of what went wrong.
    context:
        Arbitrary structured data providing extra diagnostic detail.
        Keys are documented per subclass.
    cause:
        The underlying exception, if this error wraps another.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------

class PasteUpConfigError(PasteUpError, ValueError):
    """A configuration value failed validation.

    Also a :class:`ValueError` so callers validating user input can catch
    it without importing pasteup types.

    Context keys: ``field``, ``value``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.CONFIG_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Upload errors
# ---------------------------------------------------------------------------

class PasteUpUploadError(PasteUpError):
    """Base class for errors produced by a single upload attempt.

    Context varies by subclass.
    """

    def __init__(
        self,
        code: str = ErrorCode.UPLOAD_ERROR,
        message: str = "Upload error",
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            context=context,
            cause=cause,
        )


class PasteUpTransportError(PasteUpUploadError):
    """The request never produced a response (DNS, connect, timeout, reset).

    Context keys: ``url``, ``error_type``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.TRANSPORT_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class PasteUpHTTPStatusError(PasteUpUploadError):
    """The server answered with a status other than 200.

    Context keys: ``url``, ``status_code``, ``body`` (truncated).
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.HTTP_STATUS_ERROR,
            message=message,
            context=context,
            cause=cause,
        )

    @property
    def status_code(self) -> int | None:
        return self.context.get("status_code")


class PasteUpResponseParseError(PasteUpUploadError):
    """A 200 response body was not the expected JSON shape.

    Raised for invalid JSON, a ``status_code`` field other than 200, and a
    missing ``image.url`` field.

    Context keys: ``body`` (raw response text), ``reason``
    (``"invalid_json"``, ``"status_mismatch"`` or ``"missing_url"``).
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.RESPONSE_PARSE_ERROR,
            message=message,
            context=context,
            cause=cause,
        )

    @property
    def body(self) -> str | None:
        return self.context.get("body")


# ---------------------------------------------------------------------------
# Insertion errors
# ---------------------------------------------------------------------------

class PasteUpInsertionTargetMissingError(PasteUpError):
    """An upload succeeded but there is no active editable document view.

    Context keys: ``url``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.INSERTION_TARGET_MISSING,
            message=message,
            context=context,
            cause=cause,
        )
