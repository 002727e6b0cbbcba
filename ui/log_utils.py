"""Shared logging utilities."""

from datetime import datetime
from pathlib import Path

LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40}


def format_line(level: str, message: str, *, label: str | None = None, now: datetime | None = None) -> str:
    """Render `timestamp label level: message`, millisecond precision."""
    timestamp = (now or datetime.now()).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
    return f"{timestamp} {label or '-'} {level.lower()}: {message}"


def write_log_line(log_file: Path, line: str) -> None:
    """Append a line to the rolling log file."""
    log_file.parent.mkdir(parents=True, exist_ok=True)
    with log_file.open("a", encoding="utf-8") as f:
        f.write(line + "\n")


def redact_headers(headers: dict[str, str]) -> dict[str, str]:
    """Redact sensitive headers."""
    redacted = {}
    for key, value in headers.items():
        lower = key.lower()
        if "key" in lower or "authorization" in lower or lower == "cookie":
            redacted[key] = _mask(value)
        else:
            redacted[key] = value
    return redacted


def _mask(value: str) -> str:
    if len(value) <= 10:
        return "***"
    return value[:6] + "..." + value[-4:]
