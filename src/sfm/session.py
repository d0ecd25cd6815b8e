# sfm/session.py
from enum import Enum

from rich.panel import Panel
from rich.table import Table

from . import env_probe
from .config_block import ConfigBlockManager, ReconcileStatus, RollbackStatus, has_block
from .deps import find_missing, install_missing
from .errors import UserCancelled
from .generator import (
    CustomFunction,
    render_functions,
    render_aliases,
    render_custom_function,
    write_artifact,
    validate_syntax,
)
from .install_config import InstallConfig, load_install_config, save_install_config
from .templates import FUNCTIONS, ALIAS_GROUPS, offered

UPDATE = "Update/Reconfigure"
ROLLBACK = "Rollback/Uninstall"
EXIT = "Exit"


class SessionOutcome(str, Enum):
    INSTALLED = "installed"
    ABORTED = "aborted"
    ROLLED_BACK = "rolled-back"
    ROLLED_BACK_WITH_ERRORS = "rolled-back-with-errors"
    ROLLBACK_CANCELLED = "rollback-cancelled"


_ROLLBACK_OUTCOMES = {
    RollbackStatus.CANCELLED: SessionOutcome.ROLLBACK_CANCELLED,
    RollbackStatus.ROLLED_BACK: SessionOutcome.ROLLED_BACK,
    RollbackStatus.ROLLED_BACK_WITH_ERRORS: SessionOutcome.ROLLED_BACK_WITH_ERRORS,
}


class SessionController:
    """Runs the wizard end to end. All questions go through self.ui."""

    def __init__(self, ctx, ui, probe=env_probe):
        self.ctx = ctx
        self.ui = ui
        self.probe = probe
        self.console = ctx.console
        self.logger = ctx.logger

        self.distro = None
        self.pkg_manager = None
        self.shell = None
        self.blocks = None
        self.reconcile_status = None

    # =========================================================
    # ENTRY
    # =========================================================

    def run(self, uninstall: bool = False) -> SessionOutcome:
        self.show_header()
        self.detect()

        existing = load_install_config(self.ctx.config_file)

        if uninstall:
            return self.rollback(existing)

        if existing:
            choice = self.ask_existing_install(existing)
            if choice == ROLLBACK:
                return self.rollback(existing)
            if choice != UPDATE:
                self.console.print("Exiting...")
                self.logger.info("User exited at existing-install menu")
                return SessionOutcome.ABORTED
            self.console.print("[green]Proceeding with update...[/green]\n")

        self.check_dependencies()
        functions, shortcuts, custom = self.select_functions(existing)
        groups = self.select_alias_groups(existing)
        functions_path, aliases_path = self.generate(functions, shortcuts, custom, groups)

        self.console.print("\n[bold]Updating shell configuration...[/bold]")
        self.reconcile_status = self.blocks.reconcile(self.shell.startup_file, functions_path, aliases_path)

        save_install_config(self.ctx.config_file, InstallConfig(
            shell_name=self.shell.name,
            shell_family=self.shell.family,
            shell_config=self.shell.startup_file,
            functions_file=functions_path,
            aliases_file=aliases_path,
            distro=self.distro.id,
            pkg_manager=self.pkg_manager.name,
            functions=list(functions),
            alias_groups=list(groups),
        ))
        self.show_summary(functions, functions_path, aliases_path)
        self.logger.info("Setup completed successfully")
        return SessionOutcome.INSTALLED

    # =========================================================
    # STEPS
    # =========================================================

    def show_header(self):
        self.console.print(Panel(
            "[bold]SFM (Shell Function Manager) Setup[/bold]\n"
            "[yellow]This wizard will configure your shell environment.[/yellow]",
            border_style="cyan",
        ))

    def detect(self):
        self.logger.info("Detecting environment...")
        self.distro = self.probe.detect_distro()
        self.pkg_manager = self.probe.detect_package_manager()
        self.shell = self.probe.detect_shell(self.ctx.shell_override, home=self.ctx.home,
                                             shell_env=self.ctx.shell_env)
        self.blocks = ConfigBlockManager(self.ctx, self.ui, self.shell.family)

        ok, warn = "[green]✔[/green]", "[yellow]![/yellow]"
        if self.distro.id == "unknown":
            self.console.print(f"{warn} Could not detect distribution")
        else:
            self.console.print(f"{ok} Distribution: [bold]{self.distro.pretty_name}[/bold]")
        if self.pkg_manager.available:
            self.console.print(f"{ok} Package manager: [bold]{self.pkg_manager.name}[/bold]")
        else:
            self.console.print(f"{warn} No package manager detected")
        self.console.print(f"{ok} Shell: [bold]{self.shell.name}[/bold]")
        self.console.print(f"{ok} Config: [bold]{self.shell.startup_file}[/bold]\n")

    def ask_existing_install(self, existing: InstallConfig) -> str | None:
        self.console.print("[yellow]! Existing SFM installation detected[/yellow]")
        self.console.print(f"Previous install: [cyan]{existing.install_date}[/cyan] "
                           f"({existing.shell_name}, {existing.shell_config})")
        if not has_block(existing.shell_config):
            self.console.print(f"[yellow]! {existing.shell_config} does not source SFM yet[/yellow]")
            self.logger.info(f"No SFM block in {existing.shell_config}")
        self.console.print("")
        return self.ui.choose("Choose an option:", [UPDATE, ROLLBACK, EXIT], default=UPDATE)

    def rollback(self, existing: InstallConfig | None) -> SessionOutcome:
        startup_file = existing.shell_config if existing else self.shell.startup_file
        blocks = self.blocks
        if existing and existing.shell_family is not self.shell.family:
            blocks = ConfigBlockManager(self.ctx, self.ui, existing.shell_family)
        status = blocks.rollback(startup_file, self.ctx.state_dir)
        return _ROLLBACK_OUTCOMES[status]

    def check_dependencies(self):
        self.console.print("[bold]Checking dependencies...[/bold]")
        missing = find_missing()
        if not missing:
            self.console.print("  [green]✔ All dependencies found[/green]\n")
            return

        self.console.print(f"  [yellow]! Missing:[/yellow] {', '.join(missing)}")
        if not self.pkg_manager.available:
            self.console.print(f"  [yellow]Please install manually: {' '.join(missing)}[/yellow]\n")
            return

        if self.ui.confirm(f"Install missing dependencies ({' '.join(missing)})?", default=False):
            results = install_missing(self.pkg_manager, missing, self.ctx.log_file, self.console)
            if not all(results.values()):
                self.console.print(f"  [yellow]Some installs failed. Details in {self.ctx.log_file}[/yellow]")
        self.console.print("")

    def select_functions(self, existing: InstallConfig | None):
        previous = set(existing.functions) if existing else None
        features = list(FUNCTIONS.values())
        items = [
            (f.key, f"{f.description}. Usage: {f.usage}", previous is None or f.key in previous)
            for f in features
        ]
        picked = self.ui.checklist("Select shell functions to install", items)
        if picked is None:
            raise UserCancelled("function selection")
        for key in picked:
            self.logger.info(f"Added function: {key}")

        shortcuts = []
        for key in picked:
            shortcut = FUNCTIONS[key].shortcut
            if shortcut and self.ui.confirm(f"Add alias '{shortcut}' for {key}?", default=True):
                shortcuts.append(key)
                self.logger.info(f"Added alias: {shortcut}")

        custom = []
        if self.ui.confirm("Would you like to create a custom function?", default=False):
            custom = self.build_custom_functions()
        return picked, shortcuts, custom

    def build_custom_functions(self) -> list:
        self.console.print("\n[bold magenta]Custom Function Builder[/bold magenta]")
        self.console.print("[dim]Leave name blank to finish[/dim]")

        custom = []
        while True:
            name = self.ui.prompt_text("Function name").strip()
            if not name:
                break
            description = self.ui.prompt_text("Description")
            command = self.ui.prompt_text("Command to execute")
            func = CustomFunction(name, description, command)
            try:
                render_custom_function(self.shell.family, func)
            except ValueError as e:
                self.console.print(f"  [red]✖ {e}[/red]")
                continue

            custom.append(func)
            self.console.print(f"  [green]✔ Added custom function:[/green] {name}")
            self.logger.info(f"Added custom function: {name}")
            if not self.ui.confirm("Add another custom function?", default=False):
                break
        return custom

    def select_alias_groups(self, existing: InstallConfig | None) -> list:
        previous = set(existing.alias_groups) if existing else None
        features = offered(ALIAS_GROUPS, self.probe.has_executable)
        items = [
            (f.key, f"{f.description}: {f.usage}", previous is None or f.key in previous)
            for f in features
        ]
        picked = self.ui.checklist("Select alias groups to install", items)
        if picked is None:
            raise UserCancelled("alias selection")
        for key in picked:
            self.logger.info(f"Added alias group: {key}")
        return picked

    def generate(self, functions, shortcuts, custom, groups):
        family = self.shell.family
        artifacts = [
            render_functions(family, functions, self.ctx.state_dir, custom),
            render_aliases(family, groups, self.ctx.state_dir, shortcuts),
        ]
        for artifact in artifacts:
            write_artifact(artifact)
            check = validate_syntax(artifact.path, family, self.shell.name)
            if not check.ok:
                self.console.print(f"[yellow]! Syntax check failed for {artifact.path.name}:[/yellow] {check.detail}")
                self.console.print(f"  [dim]Installation continues. Details in {self.ctx.log_file}[/dim]")
        return artifacts[0].path, artifacts[1].path

    def show_summary(self, functions, functions_path, aliases_path):
        table = Table(show_header=False, box=None, padding=(0, 2))
        table.add_row("Shell", f"[green]{self.shell.name}[/green]")
        table.add_row("Distro", f"[green]{self.distro.id}[/green]")
        table.add_row("Pkg Manager", f"[green]{self.pkg_manager.name}[/green]")
        table.add_row("Functions", f"[green]{functions_path}[/green]")
        table.add_row("Aliases", f"[green]{aliases_path}[/green]")
        table.add_row("Config", f"[green]{self.shell.startup_file}[/green]")
        table.add_row("Log", f"[green]{self.ctx.log_file}[/green]")
        self.console.print(Panel(table, title="[bold]Setup Complete![/bold]", border_style="cyan"))

        if self.reconcile_status is ReconcileStatus.APPLIED:
            self.console.print("[bold]To apply changes:[/bold]")
            self.console.print(f"  [yellow]source {self.shell.startup_file}[/yellow]  [dim]# or restart your terminal[/dim]\n")

        if functions:
            self.console.print("[bold]Quick Reference:[/bold]")
            for key in functions:
                feature = FUNCTIONS[key]
                self.console.print(f"  [cyan]{feature.usage:<24}[/cyan] {feature.description}")
            self.console.print("")

        editor = self.ctx.editor
        self.console.print("[bold]Manage SFM:[/bold]")
        self.console.print(f"  Edit functions: [cyan]{editor} {functions_path}[/cyan]")
        self.console.print(f"  Edit aliases:   [cyan]{editor} {aliases_path}[/cyan]")
        self.console.print("  Re-run wizard:  [cyan]sfm[/cyan]")
        self.console.print("  Uninstall:      [cyan]sfm --rollback[/cyan]")
        self.console.print(f"  View log:       [cyan]cat {self.ctx.log_file}[/cyan]\n")
