"""Console and log-file sink for proxy events."""

from pathlib import Path
from threading import Lock

from rich.console import Console
from rich.markup import escape

from core.config import LoggingSettings
from ui.log_utils import LEVELS, format_line, write_log_line

_STYLES = {
    "DEBUG": "dim",
    "INFO": "cyan",
    "WARNING": "yellow",
    "ERROR": "bold red",
}


class ConsoleLogger:
    """RequestLogger writing to the terminal and, optionally, a log file."""

    def __init__(
        self,
        settings: LoggingSettings,
        console: Console | None = None,
        label: str = "soeproxy",
    ) -> None:
        self._threshold = LEVELS[settings.level.upper()]
        self._log_file: Path | None = settings.file
        self._console = console or Console()
        self._label = label
        self._lock = Lock()

    def debug(self, message: str) -> None:
        self._emit("DEBUG", message)

    def info(self, message: str) -> None:
        self._emit("INFO", message)

    def warning(self, message: str) -> None:
        self._emit("WARNING", message)

    def log_request(self, method: str, path: str, route: str) -> None:
        """Log an inbound request and the route it takes."""
        self._emit("INFO", f"[{method}] {path} ({route})")

    def log_error(self, route: str, status: int, message: str) -> None:
        self._emit("ERROR", f"{route} -> {status}: {message}")

    def _emit(self, level: str, message: str) -> None:
        if LEVELS[level] < self._threshold:
            return
        line = format_line(level, message, label=self._label)
        style = _STYLES[level]
        with self._lock:
            self._console.print(f"[{style}]{escape(line)}[/{style}]", highlight=False)
            if self._log_file is not None:
                write_log_line(self._log_file, line)
