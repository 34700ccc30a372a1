"""Paste handling: clipboard selection, host protocols, and the handler.

Exports
-------
PasteHandler
    Upload the images of one paste event and insert their Markdown links.
notify_error
    Log an error and show a message through the host notifier.
is_image_item / to_image_blob / markdown_image
    Clipboard helpers.
DocumentView / Workspace / Notifier
    Protocols the host editor implements.
HandlerStateMachine
    Enforces the handler's Idle/Uploading/Inserting/Notifying cycle.
"""

from .clipboard import is_image_item, markdown_image, mime_to_extension, to_image_blob
from .handler import PasteHandler, notify_error
from .host import DocumentView, Notifier, Workspace
from .state import HandlerStateMachine

__all__ = [
    "DocumentView",
    "HandlerStateMachine",
    "Notifier",
    "PasteHandler",
    "Workspace",
    "is_image_item",
    "markdown_image",
    "mime_to_extension",
    "notify_error",
    "to_image_blob",
]
