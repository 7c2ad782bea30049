"""Console progress indicator shown while an awaited step is pending."""

from typing import TextIO

from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn


class Busy:
    """
    Spinner drawn on a terminal stream while the block runs.

    Nothing is written when the stream is not a TTY. The spinner line is
    removed again when the block exits.

    Example:
        async with Busy(sys.stderr, "Downloading templates"):
            await fetch()
    """

    def __init__(self, stream: TextIO, text: str):
        self.stream = stream
        self.text = text
        self._progress: Progress | None = None

    @property
    def enabled(self) -> bool:
        isatty = getattr(self.stream, "isatty", None)
        return bool(isatty and isatty())

    async def __aenter__(self) -> "Busy":
        if self.enabled:
            self._progress = Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=Console(file=self.stream, force_terminal=True),
                transient=True,
            )
            self._progress.add_task(escape(self.text), total=None)
            self._progress.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._progress is None:
            return
        self._progress.stop()
        self._progress = None
