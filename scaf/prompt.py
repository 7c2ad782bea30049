"""Console prompter used by the scaf CLI for interactive selections."""

import sys
from typing import Any, TextIO

from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt

from scaffolder.plugin.discovery import Choice


class _MenuPrompt(Prompt):
    """Prompt that reads a bare newline from a stream as an empty answer."""

    @classmethod
    def get_input(cls, console, prompt, password, stream=None):
        return super().get_input(console, prompt, password, stream=stream).rstrip("\r\n")


class ConsolePrompter:
    """
    Numbered-menu prompter.

    Pressing enter picks the default. When the input is not interactive the
    default is chosen without asking.
    """

    def __init__(self, stdin: TextIO | None = None, stdout: TextIO | None = None):
        self.stdin = stdin or sys.stdin
        self.console = Console(file=stdout or sys.stdout, highlight=False)

    def notify(self, message: str) -> None:
        self.console.print(escape(message))

    def _interactive(self) -> bool:
        isatty = getattr(self.stdin, "isatty", None)
        return bool(isatty and isatty())

    def select(self, message: str, choices: list[Choice], default: Any = None) -> Any:
        if not choices:
            raise ValueError("Nothing to select")

        values = [choice.value for choice in choices]
        default_index = values.index(default) if default in values else 0

        if not self._interactive():
            return values[default_index]

        self.console.print(escape(message))
        for index, choice in enumerate(choices, start=1):
            marker = ">" if index - 1 == default_index else " "
            self.console.print(f" {marker} {index}) {escape(choice.label)}")

        numbers = [str(index) for index in range(1, len(choices) + 1)]
        answer = _MenuPrompt.ask(
            "Choice",
            console=self.console,
            choices=numbers,
            default=numbers[default_index],
            show_choices=False,
            stream=self.stdin,
        )
        return values[int(answer) - 1]
