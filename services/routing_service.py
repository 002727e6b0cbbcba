"""Request preparation for the extraction service."""

from collections.abc import Iterable

from core.headers import HeaderBuilder
from core.protocols import RequestLogger
from core.request_types import FormPayload, PreparedRequest
from core.router import RouteDecider, RouteDecision
from core.transform import MetadataTransformer


class RoutingService:
    """Prepare inbound requests for forwarding upstream."""

    def __init__(
        self,
        logger: RequestLogger,
        decider: RouteDecider,
        transformer: MetadataTransformer,
        header_builder: HeaderBuilder,
    ) -> None:
        self._logger = logger
        self._decider = decider
        self._transformer = transformer
        self._headers = header_builder

    def decide(self, content_type: str | None) -> RouteDecision:
        return self._decider.decide(content_type)

    def prepare_multipart(
        self,
        method: str,
        path: str,
        headers: Iterable[tuple[str, str]],
        payload: FormPayload,
    ) -> PreparedRequest:
        """Rewrite the metadata fields of a decoded multipart request.

        Every field is transformed before anything is handed to the upstream
        client, so a field that fails to parse leaves nothing to send.
        """
        self._logger.debug("Handling multipart/form-data request ...")
        rewritten = self._transformer.transform(payload)
        self._logger.debug(
            f"Rebuilt multipart body: {len(rewritten.fields)} field(s), {len(rewritten.files)} file(s)"
        )
        upstream_headers = self._headers.build_multipart_headers(headers)
        return PreparedRequest("multipart", method, path, upstream_headers, rewritten)

    def prepare_passthrough(
        self,
        method: str,
        path: str,
        headers: Iterable[tuple[str, str]],
        body: bytes,
    ) -> PreparedRequest:
        """Forward a non-multipart body unchanged."""
        self._logger.debug("No multipart/form-data request, forwarding body unchanged ...")
        upstream_headers = self._headers.build_passthrough_headers(headers)
        return PreparedRequest("passthrough", method, path, upstream_headers, body)
