"""Shared protocol definitions."""

from typing import Protocol


class RequestLogger(Protocol):
    """Protocol for request logging (console and log file)."""

    def debug(self, message: str) -> None: ...
    def info(self, message: str) -> None: ...
    def warning(self, message: str) -> None: ...
    def log_request(self, method: str, path: str, route: str) -> None: ...
    def log_error(self, route: str, status: int, message: str) -> None: ...
