"""Request dispatch - multipart rewrite vs. passthrough."""

from dataclasses import dataclass

MULTIPART_MARKER = "multipart/form-data"


@dataclass(frozen=True)
class RouteDecision:
    """Routing decision for a request."""

    route: str

    @property
    def is_multipart(self) -> bool:
        return self.route == "multipart"


class RouteDecider:
    """Decide whether a request body must be rewritten."""

    def __init__(self, marker: str = MULTIPART_MARKER):
        self.marker = marker

    def decide(self, content_type: str | None) -> RouteDecision:
        """Return the route based on the raw Content-Type header.

        The match is a case-sensitive substring check on the header as sent.
        """
        if content_type and self.marker in content_type:
            return RouteDecision(route="multipart")
        return RouteDecision(route="passthrough")
