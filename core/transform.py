"""Metadata rewriting for multipart extraction requests."""

import json
from typing import Any

from core.exceptions import FieldParseError
from core.protocols import RequestLogger
from core.request_types import FormPayload

SCHEMA_KEY = "schemaName"
EXTRACTION_KEY = "extraction"


def set_schema(metadata: dict[str, Any], schema_name: str) -> dict[str, Any]:
    """Return a copy of metadata with schemaName forced to schema_name."""
    result = dict(metadata)
    result[SCHEMA_KEY] = schema_name
    return result


def strip_extraction(metadata: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of metadata without the extraction key."""
    return {key: value for key, value in metadata.items() if key != EXTRACTION_KEY}


class MetadataTransformer:
    """Rewrite the JSON options carried in multipart text fields."""

    def __init__(self, schema_name: str, logger: RequestLogger | None = None) -> None:
        self.schema_name = schema_name
        self._logger = logger

    def transform(self, payload: FormPayload) -> FormPayload:
        """Rewrite every text field; files are passed through untouched.

        Raises FieldParseError on the first field that is not a JSON object,
        so no partially rewritten payload is ever produced.
        """
        fields = {
            name: self.transform_field(name, value)
            for name, value in payload.fields.items()
        }
        return FormPayload(fields=fields, files=payload.files)

    def transform_field(self, name: str, raw: str) -> str:
        """Parse, rewrite and re-serialize a single field value."""
        try:
            metadata = json.loads(raw)
        except json.JSONDecodeError as e:
            raise FieldParseError(name, str(e)) from e
        if not isinstance(metadata, dict):
            raise FieldParseError(name, f"got {type(metadata).__name__}")

        if self._logger:
            self._logger.debug(f"Original field {name}: {_dump(metadata)}")
        metadata = strip_extraction(set_schema(metadata, self.schema_name))
        serialized = _dump(metadata)
        if self._logger:
            self._logger.debug(f"Modified field {name}: {serialized}")
        return serialized


def _dump(value: Any) -> str:
    serialized = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    try:
        serialized.encode("utf-8")
    except UnicodeEncodeError:
        # Lone surrogates (e.g. "\ud800") survive json.loads but not UTF-8
        return json.dumps(value, separators=(",", ":"), ensure_ascii=True)
    return serialized
