"""Shared request data types."""

from dataclasses import dataclass, field
from typing import IO


@dataclass(frozen=True)
class UploadedFile:
    """A file part of a multipart request.

    Decoded requests hold the content in memory; a readable binary stream
    is forwarded as well, chunked when its size cannot be determined.
    """

    field_name: str
    filename: str
    content_type: str
    content: bytes | IO[bytes]


@dataclass(frozen=True)
class FormPayload:
    """Decoded multipart request: text fields and uploaded files."""

    fields: dict[str, str] = field(default_factory=dict)
    files: tuple[UploadedFile, ...] = ()

    @property
    def size(self) -> int:
        """Bytes of field values and in-memory file contents."""
        total = sum(len(value.encode("utf-8", "surrogatepass")) for value in self.fields.values())
        for upload in self.files:
            if isinstance(upload.content, bytes):
                total += len(upload.content)
        return total


@dataclass(frozen=True)
class PreparedRequest:
    """Prepared data for an upstream request."""

    route_name: str
    method: str
    path: str
    headers: dict[str, str]
    body: FormPayload | bytes
