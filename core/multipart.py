"""Multipart/form-data encoding of rewritten uploads, rendered by httpx.

httpx picks a fresh boundary, escapes the Content-Disposition parameters and
sets Content-Length when every part has a known size. When one does not, it
sends the body with Transfer-Encoding: chunked instead.
"""

from typing import Any

import httpx

from core.request_types import FormPayload

DEFAULT_FILE_CONTENT_TYPE = "application/octet-stream"


def form_arguments(payload: FormPayload) -> dict[str, Any]:
    """httpx ``data``/``files`` arguments for a payload, fields before files."""
    files = [
        (upload.field_name, (upload.filename, upload.content, upload.content_type))
        for upload in payload.files
    ]
    if files:
        return {"data": dict(payload.fields), "files": files}
    # httpx only emits multipart when files are given; a file entry without a
    # filename renders as a plain text field
    return {"files": [(name, (None, value.encode("utf-8"))) for name, value in payload.fields.items()]}


def build_multipart_request(
    client: httpx.AsyncClient,
    method: str,
    path: str,
    headers: dict[str, str],
    payload: FormPayload,
) -> httpx.Request:
    """Build the outbound request; ``headers`` must not carry Content-Type or Content-Length."""
    return client.build_request(method, path, headers=headers, **form_arguments(payload))
