"""Paste handling: upload clipboard images and insert Markdown links.

:class:`PasteHandler` is invoked with a captured snapshot of the clipboard
items of one paste event.  Image entries are uploaded one after another;
each successful upload inserts ``![](<url>)`` at the cursor of the active
document, each failure notifies the user.  The effects are also returned
as a :class:`PasteReport` so callers (and tests) can inspect them without
a host editor.

Usage::

    async with AsyncUploader(config=config) as uploader:
        handler = PasteHandler(uploader, workspace, notifier=show_notice)
        report = await handler.handle_paste(items)
        if report.default_prevented:
            event.prevent_default()
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Protocol

from pasteup.errors import PasteUpError, PasteUpInsertionTargetMissingError
from pasteup.models import (
    ClipboardItem,
    HandlerState,
    ImageBlob,
    Insertion,
    Notification,
    PasteReport,
    UploadResult,
)
from pasteup.observability import NoopMetricsHook, get_logger

from .clipboard import is_image_item, markdown_image, to_image_blob
from .host import Notifier, Workspace
from .state import HandlerStateMachine

log = get_logger("pasteup.paste")

UPLOAD_FAILED_MESSAGE = "Failed to upload image"
NO_ACTIVE_VIEW_MESSAGE = "Failed to insert image, no active Markdown view."


class SupportsAsyncUpload(Protocol):
    async def upload(self, blob: ImageBlob) -> UploadResult: ...


def notify_error(
    notifier: Notifier | None,
    message: str,
    error: PasteUpError,
) -> Notification:
    """Log *error* and show *message* to the user.

    Returns the :class:`Notification` that was shown.
    """
    log.error(
        message,
        extra={
            "extra_fields": {
                "op": "notify",
                "code": getattr(error.code, "value", error.code),
                "error": error.message,
                "context": error.context,
            }
        },
    )
    if notifier is not None:
        notifier(message)
    return Notification(message=message, error=error)


class PasteHandler:
    """Uploads pasted images and inserts their URLs.

    Parameters
    ----------
    uploader:
        Any object with ``async upload(blob) -> UploadResult``, normally an
        :class:`~pasteup.upload.AsyncUploader`.
    workspace:
        Host access to the active document.
    notifier:
        Shows failure messages.  When ``None`` failures are only logged
        and reported.
    metrics:
        Optional :class:`~pasteup.observability.MetricsHook`.
    """

    def __init__(
        self,
        uploader: SupportsAsyncUpload,
        workspace: Workspace,
        notifier: Notifier | None = None,
        *,
        metrics: Any | None = None,
    ) -> None:
        self._uploader = uploader
        self._workspace = workspace
        self._notifier = notifier
        self._metrics = metrics if metrics is not None else NoopMetricsHook()

    async def handle_paste(self, items: Iterable[ClipboardItem]) -> PasteReport:
        """Process one paste event's clipboard snapshot.

        Non-image items are ignored.  Uploads run sequentially in clipboard
        order; no two are in flight at once.
        """
        report = PasteReport()
        machine = HandlerStateMachine()
        image_index = 0
        for item in items:
            if not is_image_item(item):
                continue
            report.default_prevented = True
            blob = to_image_blob(item, image_index)
            image_index += 1
            self._metrics.increment("pasteup.paste_images_total")
            await self._process_blob(blob, report, machine)
        return report

    async def _process_blob(
        self,
        blob: ImageBlob,
        report: PasteReport,
        machine: HandlerStateMachine,
    ) -> None:
        machine.transition(HandlerState.UPLOADING)
        report.uploads_attempted += 1
        result = await self._uploader.upload(blob)

        if not result.ok:
            machine.transition(HandlerState.NOTIFYING)
            report.notifications.append(
                notify_error(
                    self._notifier,
                    f"{UPLOAD_FAILED_MESSAGE}: {result.error.message}",
                    result.error,
                )
            )
            machine.transition(HandlerState.IDLE)
            return

        machine.transition(HandlerState.INSERTING)
        try:
            report.insertions.append(self.insert_image(result.url))
        except PasteUpInsertionTargetMissingError as exc:
            self._metrics.increment("pasteup.insert_failure_total")
            machine.transition(HandlerState.NOTIFYING)
            report.notifications.append(
                notify_error(self._notifier, NO_ACTIVE_VIEW_MESSAGE, exc)
            )
        machine.transition(HandlerState.IDLE)

    def insert_image(self, url: str) -> Insertion:
        """Insert ``![](url)`` at the cursor of the active document.

        Raises
        ------
        PasteUpInsertionTargetMissingError
            If there is no active editable document view.
        """
        document = self._workspace.active_document()
        if document is None:
            raise PasteUpInsertionTargetMissingError(
                message="No active Markdown view found",
                context={"url": url},
            )
        text = markdown_image(url)
        document.insert_at_cursor(text)
        log.info(
            "Image link inserted",
            extra={"extra_fields": {"op": "insert", "url": url}},
        )
        return Insertion(text=text, url=url)
