# timekeeper/cli/terminal.py

import logging
from typing import Any, Callable, List, Optional, Protocol, Sequence, TypeVar

# The 'rich' library provides every widget the menus are built from.
from rich.align import Align
from rich.console import Console, Group
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table
from rich.text import Text

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Semantic styles used by the controller, mapped to rich style strings.
STYLES = {
    "title": "bold magenta",
    "accent": "magenta",
    "success": "bold green",
    "error": "bold red",
    "warning": "bold yellow",
    "muted": "grey50",
    "text": "grey85",
}


class TerminalUI(Protocol):
    """
    The primitive widgets the interaction controller needs.

    Prompts return None when the user cancels (Ctrl+C / Ctrl+D) so the
    controller can treat it as plain navigation.
    """

    def clear(self) -> None: ...

    def banner(self, title: str, subtitle: str) -> None: ...

    def heading(self, title: str) -> None: ...

    def say(self, text: str, style: str = "text") -> None: ...

    def panel(self, text: str, style: str = "accent", title: Optional[str] = None) -> None: ...

    def table(self, title: str, columns: Sequence[str], rows: Sequence[Sequence[str]]) -> None: ...

    def choose(self, title: str, options: Sequence[str]) -> Optional[str]: ...

    def ask(self, prompt: str, default: str = "", password: bool = False) -> Optional[str]: ...

    def write(self, prompt: str) -> Optional[str]: ...

    def spin(self, title: str, func: Callable[..., T], *args: Any, **kwargs: Any) -> T: ...

    def page(self, text: str) -> None: ...

    def pause(self) -> None: ...


class RichTerminal:
    """The real terminal, rendered with rich."""

    def __init__(self, console: Optional[Console] = None):
        # A single Console object manages all rich-formatted output.
        self.console = console or Console()

    def clear(self) -> None:
        self.console.clear()

    def banner(self, title: str, subtitle: str) -> None:
        body = Group(
            Align.center(Text(title, style=STYLES["title"])),
            Align.center(Text(subtitle, style=STYLES["muted"])),
        )
        self.console.print(Panel(body, border_style=STYLES["accent"], width=60, padding=(2, 4)))

    def heading(self, title: str) -> None:
        self.console.print(Panel(Text(title, style=STYLES["title"]), border_style=STYLES["accent"], expand=False))
        self.console.print()

    def say(self, text: str, style: str = "text") -> None:
        self.console.print(Text(text, style=STYLES.get(style, style)))

    def panel(self, text: str, style: str = "accent", title: Optional[str] = None) -> None:
        self.console.print(Panel(Text(text), title=Text(title) if title else None, border_style=STYLES.get(style, style), expand=False))

    def table(self, title: str, columns: Sequence[str], rows: Sequence[Sequence[str]]) -> None:
        # Catalog text is shown verbatim, never parsed as rich markup.
        table = Table(title=Text(title, style=STYLES["title"]), style="cyan")
        for column in columns:
            table.add_column(Text(column))
        for row in rows:
            table.add_row(*(Text(str(cell)) for cell in row))
        self.console.print(table)

    def choose(self, title: str, options: Sequence[str]) -> Optional[str]:
        if not options:
            return None
        self.console.print(Text(title, style=STYLES["accent"]))
        for index, option in enumerate(options, start=1):
            self.console.print(Text.assemble("  ", (str(index), "bold"), " → ", option))
        choices = [str(i) for i in range(1, len(options) + 1)]
        try:
            picked = Prompt.ask("Choose", choices=choices, console=self.console, show_choices=False)
        except (KeyboardInterrupt, EOFError):
            self.console.print()
            return None
        return options[int(picked) - 1]

    def ask(self, prompt: str, default: str = "", password: bool = False) -> Optional[str]:
        try:
            if default and not password:
                answer = Prompt.ask(prompt, default=default, console=self.console)
            else:
                answer = Prompt.ask(prompt, password=password, console=self.console)
                # An empty password answer keeps the current secret.
                if password and not answer:
                    answer = default
        except (KeyboardInterrupt, EOFError):
            self.console.print()
            return None
        return answer.strip()

    def write(self, prompt: str) -> Optional[str]:
        self.console.print(Text(f"{prompt} (finish with an empty line)", style=STYLES["accent"]))
        lines: List[str] = []
        try:
            while True:
                line = self.console.input("  ")
                if line == "":
                    break
                lines.append(line)
        except (KeyboardInterrupt, EOFError):
            self.console.print()
            return None
        return "\n".join(lines)

    def spin(self, title: str, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        with self.console.status(title, spinner="dots"):
            return func(*args, **kwargs)

    def page(self, text: str) -> None:
        with self.console.pager(styles=True):
            self.console.print(Text(text))

    def pause(self) -> None:
        try:
            self.console.input(f"[{STYLES['muted']}]Press Enter to continue...[/]")
        except (KeyboardInterrupt, EOFError):
            self.console.print()
