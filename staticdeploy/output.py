"""User-facing output for staticdeploy."""

import threading
from typing import Optional, TextIO

from rich.console import Console


class OutputFormatter:
    """Prints status messages to the terminal.

    Informational output is suppressed in quiet mode; errors are always
    printed to stderr.
    """

    def __init__(self, quiet: bool = False):
        """Initialize output formatter.

        Args:
            quiet: Suppress everything except errors
        """
        self.quiet = quiet
        self.console = Console(highlight=False)
        self.error_console = Console(stderr=True, highlight=False)

    def _print(self, message: str, style: Optional[str] = None) -> None:
        if self.quiet:
            return
        self.console.print(message, style=style, markup=False, soft_wrap=True)

    def print(self, message: str = "") -> None:
        """Print a plain message."""
        self._print(message)

    def info(self, message: str) -> None:
        """Print an informational message."""
        self._print(message)

    def success(self, message: str) -> None:
        """Print a success message."""
        self._print(message, style="bold green")

    def warning(self, message: str) -> None:
        """Print a warning message."""
        self._print(message, style="yellow")

    def error(self, message: str) -> None:
        """Print an error message to stderr, even in quiet mode."""
        self.error_console.print(
            f"Error: {message}", style="bold red", markup=False, soft_wrap=True
        )


class ProgressSink:
    """Append-only progress stream shared by concurrent transfers.

    Every write happens under a lock, so lines from different worker
    threads never interleave. A sink without a stream discards everything.
    """

    def __init__(self, stream: Optional[TextIO] = None):
        """Initialize progress sink.

        Args:
            stream: Text stream to write to, or None to discard output
        """
        self.stream = stream
        self._lock = threading.Lock()

    @property
    def silent(self) -> bool:
        return self.stream is None

    def write(self, text: str) -> None:
        """Write raw text (e.g. a forwarded response body)."""
        if self.stream is None or not text:
            return
        with self._lock:
            self.stream.write(text)
            self.stream.flush()

    def write_line(self, line: str) -> None:
        """Write a single line terminated by a newline."""
        self.write(f"{line}\n")
