# timekeeper/main.py

import logging
import sys

import click
from rich.console import Console
from rich.markup import escape

from timekeeper.cli.controller import build_controller
from timekeeper.cli.terminal import RichTerminal
from timekeeper.core.errors import StoreInitError
from timekeeper.core.settings import AppPaths
from timekeeper.utils.logger import setup_logging

logger = logging.getLogger(__name__)


def check_prerequisites(console: Console) -> bool:
    """The menus need a real, interactive terminal on both ends."""
    if sys.stdin.isatty() and sys.stdout.isatty():
        return True
    console.print("[bold red]❌ Error: Timekeeper needs an interactive terminal.[/bold red]")
    console.print("Run it directly in a terminal window, without pipes or redirection.")
    return False


@click.command(context_settings=dict(help_option_names=['-h', '--help']))
def main():
    """
    ⏰ Timekeeper: log and review your work hours from the terminal.

    Launches the interactive menu. Projects, user info and settings live
    in ~/.timekeeper as plain JSON files.
    """
    console = Console()
    if not check_prerequisites(console):
        sys.exit(1)

    paths = AppPaths.default()
    ui = RichTerminal(console)
    controller = build_controller(paths, ui)

    try:
        created = controller.tracker.store.initialize()
    except StoreInitError as e:
        console.print(f"[bold red]❌ Error: {escape(str(e))}[/bold red]")
        console.print("Please check permissions or manually create the directory.")
        sys.exit(1)

    # The directory exists from here on, so the log file can live in it.
    setup_logging(paths)
    if created:
        for kind in created:
            console.print(f"[green]✅ Created: {escape(str(controller.tracker.store.path_for(kind)))}[/green]")
        console.print(f"[bold magenta]🎉 Configuration setup complete![/bold magenta] All files are in {escape(str(paths.config_dir))}")
        ui.pause()

    logger.info("Timekeeper session started")
    controller.run()
    logger.info("Timekeeper session ended")


if __name__ == '__main__':
    main()
