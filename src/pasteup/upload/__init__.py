"""Image upload: multipart encoding, the HTTP exchange, and response parsing.

Exports
-------
Uploader / AsyncUploader
    Single-attempt uploaders returning :class:`UploadResult`.
upload / async_upload
    One-shot helpers that open and close their own client.
build_upload_request
    Headers and body for one upload, without sending it.
build_multipart_body
    Encode an :class:`ImageBlob` as a one-part multipart body.
parse_upload_response
    Extract the hosted URL from a 200 response body.
"""

from .multipart import (
    DEFAULT_BOUNDARY,
    build_multipart_body,
    content_type_header,
    generate_boundary,
    multipart_overhead,
    select_boundary,
)
from .response import parse_upload_response
from .uploader import (
    API_KEY_HEADER,
    AsyncUploader,
    Uploader,
    async_upload,
    build_upload_request,
    upload,
)

__all__ = [
    "API_KEY_HEADER",
    "AsyncUploader",
    "DEFAULT_BOUNDARY",
    "Uploader",
    "async_upload",
    "build_multipart_body",
    "build_upload_request",
    "content_type_header",
    "generate_boundary",
    "multipart_overhead",
    "parse_upload_response",
    "select_boundary",
    "upload",
]
