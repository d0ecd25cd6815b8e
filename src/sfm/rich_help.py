import click
from rich.console import Console
from rich.table import Table

console = Console()

EXAMPLES = [
    ("sfm", "Run the interactive wizard"),
    ("sfm --shell fish", "Generate fish functions even if $SHELL says otherwise"),
    ("sfm -b", "Install every feature without asking"),
    ("sfm --rollback", "Restore your startup file and remove SFM"),
]


class RichHelpCommand(click.Command):
    """Renders --help with rich: usage, description, options, examples."""

    def format_help(self, ctx, formatter):
        console.print(f"\n[bold]Usage:[/bold] [bold cyan]{ctx.command_path}[/bold cyan] [dim][OPTIONS][/dim]\n")

        if self.help:
            console.print(f"  {self.help.strip()}\n")

        self._print_options(ctx)
        self._print_examples()

        if self.epilog:
            console.print(f"[dim]{self.epilog}[/dim]\n")

    def _print_options(self, ctx):
        options = [p for p in self.get_params(ctx) if p.param_type_name == "option"]
        if not options:
            return

        table = Table(box=None, show_header=False, padding=(0, 2))
        table.add_column("Flag", style="bold cyan", justify="right")
        table.add_column("Description", style="white")

        for param in options:
            names = ", ".join(param.opts + param.secondary_opts)
            if not param.is_flag:
                names += f" [dim]{param.make_metavar(ctx)}[/dim]"
            table.add_row(names, param.help or "")

        console.print("[bold]Options[/bold]")
        console.print(table)
        console.print("")

    def _print_examples(self):
        table = Table(box=None, show_header=False, padding=(0, 2))
        table.add_column("Command", style="bold magenta", justify="right")
        table.add_column("Description", style="white")
        for cmd, desc in EXAMPLES:
            table.add_row(cmd, desc)

        console.print("[bold]Examples[/bold]")
        console.print(table)
        console.print("")
