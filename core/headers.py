"""Header construction for upstream requests and relayed responses."""

from collections.abc import Iterable

HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "proxy-connection",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
    }
)


class HeaderBuilder:
    """Build upstream request headers and client response headers."""

    def build_passthrough_headers(self, headers: Iterable[tuple[str, str]]) -> dict[str, str]:
        """Forward inbound headers; Host and Content-Length are set by the client."""
        return self._filter(headers, drop={"host", "content-length"})

    def build_multipart_headers(self, headers: Iterable[tuple[str, str]]) -> dict[str, str]:
        """Forward inbound headers minus the multipart ones; httpx sets those for the new body."""
        return self._filter(headers, drop={"host", "content-length", "content-type"})

    def build_response_headers(self, headers: Iterable[tuple[str, str]]) -> list[tuple[str, str]]:
        """Relay upstream response headers, keeping repeated ones (Set-Cookie)."""
        return [
            (key, value)
            for key, value in headers
            if key.lower() not in HOP_BY_HOP_HEADERS
        ]

    @staticmethod
    def _filter(headers: Iterable[tuple[str, str]], drop: set[str]) -> dict[str, str]:
        upstream: dict[str, str] = {}
        for key, value in headers:
            key_lower = key.lower()
            if key_lower in HOP_BY_HOP_HEADERS or key_lower in drop:
                continue
            if key in upstream:
                upstream[key] = f"{upstream[key]}, {value}"
            else:
                upstream[key] = value
        return upstream
