"""Custom exception hierarchy for the extraction proxy."""


class ProxyError(Exception):
    """Base exception for all proxy errors."""


class ConfigurationError(ProxyError):
    """Raised when configuration is missing or invalid."""


class DecodeError(ProxyError):
    """Inbound body cannot be parsed as multipart/form-data."""


class FieldParseError(ProxyError):
    """A multipart text field is not a JSON object.

    Attributes:
        field_name: Name of the offending form field
    """

    def __init__(self, field_name: str, reason: str) -> None:
        super().__init__(f"Field '{field_name}' is not a JSON object: {reason}")
        self.field_name = field_name


class StreamError(ProxyError):
    """I/O failure while streaming a body.

    Attributes:
        message: Error message
        direction: 'outbound' (request body to upstream), 'relay' (response to
            client) or 'inbound' (client went away)
    """

    def __init__(self, message: str, direction: str) -> None:
        super().__init__(message)
        self.direction = direction


class RequestTooLarge(ProxyError):
    """Request body exceeds size limit."""
