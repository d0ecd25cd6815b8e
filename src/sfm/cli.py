import sys
import click
from importlib.metadata import version, PackageNotFoundError

from .context import RuntimeContext
from .errors import UserCancelled
from .rich_help import RichHelpCommand
from .session import SessionController
from .ui import UI_CHOICES, select_ui
from .utils import tail_read_last_n_lines

try:
    __version__ = version("sfm-cli")
except PackageNotFoundError:
    __version__ = "1.0.0"

CONTEXT_SETTINGS = dict(
    help_option_names=["-h", "--help"],
    max_content_width=120
)

LOG_TAIL_LINES = 20


def _handle_failure(ctx: RuntimeContext, ui, error: Exception, interactive: bool):
    """Last stop for anything unexpected: log it, point at the log, exit non-zero."""
    ctx.logger.exception(f"Setup failed: {error}")
    ctx.console.print(f"\n[red]✖ Error occurred:[/red] {error}")
    ctx.console.print(f"  Check [cyan]{ctx.log_file}[/cyan] for details.")

    if interactive and not ctx.batch and ui.confirm("Show the last lines of the log?", default=False):
        for line in tail_read_last_n_lines(ctx.log_file, LOG_TAIL_LINES):
            click.echo(line)


@click.command("sfm", cls=RichHelpCommand, context_settings=CONTEXT_SETTINGS,
               epilog="State lives in ~/.sfm. Startup files are backed up before every change.")
@click.option("-b", "--batch", is_flag=True, help="Assume yes to all prompts and run non-interactively.")
@click.option("-y", "--yes", "assume_yes", is_flag=True, help="Default every confirmation to yes.")
@click.option("--shell", "shell_name", metavar="NAME", help="Override shell detection (bash, zsh, fish).")
@click.option("--uninstall", "--rollback", "uninstall", is_flag=True,
              help="Remove SFM from your shell config (restores the latest backup).")
@click.option("--ui", "ui_mode", type=click.Choice(UI_CHOICES), default="auto",
              help="Force an interface: dialog, whiptail or plain prompts.")
@click.option("-v", "--verbose", is_flag=True, help="Write debug lines to the setup log.")
@click.version_option(version=__version__, prog_name="sfm")
def cli(batch, assume_yes, shell_name, uninstall, ui_mode, verbose):
    """
    SFM: Shell Function Manager

    Detects your shell, writes a set of handy functions and aliases to ~/.sfm
    and wires them into your shell startup file.
    """
    try:
        ctx = RuntimeContext.create(batch=batch, assume_yes=assume_yes,
                                    shell_override=shell_name, verbose=verbose)
    except OSError as e:
        click.echo(f"Error: cannot prepare SFM state directory: {e}", err=True)
        sys.exit(1)

    interactive = sys.stdin.isatty() and sys.stdout.isatty()
    ui = select_ui(ctx.console, ui_mode, batch=batch, assume_yes=ctx.assume_yes, interactive=interactive)
    ctx.logger.info(f"Starting SFM {__version__} (ui={ui.name}, batch={batch})")

    try:
        SessionController(ctx, ui).run(uninstall=uninstall)
    except (UserCancelled, click.Abort, KeyboardInterrupt, EOFError):
        ctx.logger.info("Cancelled by user")
        click.echo("\nCancelled. No further changes made.")
    except Exception as e:
        _handle_failure(ctx, ui, e, interactive)
        sys.exit(1)


if __name__ == "__main__":
    cli()
