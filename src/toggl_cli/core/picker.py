"""Interactive selection among candidate projects or entries."""

import logging
import subprocess
from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

import click
from rich.console import Console
from rich.markup import escape

from toggl_cli.core.errors import PickerError
from toggl_cli.core.models import PickerItem

logger = logging.getLogger(__name__)

DEFAULT_PROMPT = "Select an item"


class Picker(ABC):
    """Selects one item from a list, or nothing if the user cancels."""

    def pick(self, items: Sequence[PickerItem], prompt: Optional[str] = None) -> Optional[Any]:
        """Let the user choose one of ``items``.

        Args:
            items: Candidates in display order
            prompt: What is being chosen, shown by the picker if given

        Returns:
            The chosen item's value, or None if nothing was selected

        Raises:
            PickerError: If the selection mechanism fails
        """
        if not items:
            return None

        labels = [item.label for item in items]
        label = self.choose(labels, prompt)
        if label is None:
            logger.debug("Selection cancelled")
            return None

        # first match wins for duplicated labels
        for item in items:
            if item.label == label:
                return item.value
        raise PickerError(f"Picker returned an unknown item: {label!r}")

    @abstractmethod
    def choose(self, labels: list[str], prompt: Optional[str] = None) -> Optional[str]:
        """Present ``labels`` and return the chosen one, or None on cancel."""


class BuiltinPicker(Picker):
    """Numbered list in the terminal, answered with the item's number."""

    def __init__(self, console: Optional[Console] = None, prompt: str = DEFAULT_PROMPT):
        self.console = console or Console()
        self.prompt = prompt

    def choose(self, labels: list[str], prompt: Optional[str] = None) -> Optional[str]:
        width = len(str(len(labels)))
        for number, label in enumerate(labels, start=1):
            self.console.print(f"[cyan]{number:>{width}}[/cyan]  {escape(label)}", highlight=False)

        while True:
            try:
                answer = click.prompt(
                    f"{prompt or self.prompt} (1-{len(labels)}, empty to cancel)",
                    default="",
                    show_default=False,
                )
            except click.Abort:
                return None

            answer = answer.strip()
            if not answer:
                return None
            if answer.isdigit() and 1 <= int(answer) <= len(labels):
                return labels[int(answer) - 1]
            self.console.print(f"[red]Invalid choice:[/red] {escape(answer)}")


class FzfPicker(Picker):
    """Delegates the selection to an external fuzzy finder such as fzf.

    Labels are written to the process' stdin one per line and the chosen
    line is read back from stdout.
    """

    def __init__(self, command: str = "fzf", prompt: Optional[str] = None):
        self.command = command
        self.prompt = prompt

    def _argv(self, prompt: Optional[str]) -> list[str]:
        argv = [self.command]
        prompt = prompt or self.prompt
        if prompt:
            argv.extend(["--prompt", f"{prompt}> "])
        return argv

    def choose(self, labels: list[str], prompt: Optional[str] = None) -> Optional[str]:
        argv = self._argv(prompt)
        logger.debug(f"Launching picker: {' '.join(argv)}")
        stdin = "".join(f"{label}\n" for label in labels).encode("utf-8")

        try:
            with subprocess.Popen(argv, stdin=subprocess.PIPE, stdout=subprocess.PIPE) as process:
                try:
                    stdout, _ = process.communicate(stdin)
                except KeyboardInterrupt:
                    process.kill()
                    return None
        except FileNotFoundError:
            raise PickerError(f"Picker executable not found: {self.command}")
        except OSError as e:
            raise PickerError(f"Could not run picker {self.command}: {e}")

        lines = stdout.decode("utf-8", errors="replace").splitlines()
        selection = lines[0] if lines else ""

        if process.returncode != 0:
            if not selection:
                return None
            raise PickerError(f"{self.command} exited with status {process.returncode}")
        return selection or None


def get_picker(use_fzf: bool, console: Optional[Console] = None, fzf_command: str = "fzf") -> Picker:
    """Return the picker strategy selected on the command line."""
    if use_fzf:
        return FzfPicker(fzf_command)
    return BuiltinPicker(console)
