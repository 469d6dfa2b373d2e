"""Colorized terminal output that is also recorded for reports."""

import re
from typing import List, Optional

import click


ANSI_ESCAPE = re.compile(r'\x1b\[[0-9;]*m')


def strip_ansi_colors(text: str) -> str:
    """Remove ANSI color codes from text."""
    return ANSI_ESCAPE.sub('', text)


class ReportConsole:
    """Echoes styled lines to the terminal and keeps a plain-text transcript.

    The transcript ends up in the "Raw Terminal Output" section of the
    Markdown report.
    """

    def __init__(self, quiet: bool = False):
        self.quiet = quiet
        self._lines: List[str] = []

    def echo(self, message: str = "", fg: Optional[str] = None, bold: bool = False,
             record: bool = True) -> None:
        if record:
            self._lines.append(strip_ansi_colors(message))
        if not self.quiet:
            click.secho(message, fg=fg, bold=bold)

    def status(self, message: str) -> None:
        """Progress line; shown but not recorded."""
        self.echo(message, fg='bright_black', record=False)

    def success(self, message: str) -> None:
        self.echo(message, fg='green', record=False)

    def warn(self, message: str) -> None:
        self.echo(message, fg='yellow')

    @property
    def transcript(self) -> str:
        return "\n".join(self._lines) + ("\n" if self._lines else "")
