# sfm/ui.py
"""
Presentation port for the wizard.

The session only ever calls choose / confirm / prompt_text / show_message /
checklist. Which implementation answers is decided once, at startup, by
probing for dialog and whiptail.
"""
import sys
import shlex
import logging
import subprocess

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.prompt import Prompt, IntPrompt, Confirm

from .env_probe import has_executable
from .errors import UserCancelled

logger = logging.getLogger("sfm")

UI_CHOICES = ("auto", "dialog", "whiptail", "plain")


class BaseUI:
    name = "base"

    def __init__(self, console: Console, assume_yes: bool = False):
        self.console = console
        self.assume_yes = assume_yes

    def choose(self, prompt: str, options: list, default: str | None = None) -> str | None:
        """Returns the picked option, or None when the user cancels."""
        raise NotImplementedError

    def confirm(self, prompt: str, default: bool = False) -> bool:
        raise NotImplementedError

    def prompt_text(self, prompt: str, default: str = "") -> str:
        raise NotImplementedError

    def show_message(self, title: str, text: str):
        raise NotImplementedError

    def checklist(self, prompt: str, items: list) -> list | None:
        """
        items: (key, label, checked) triples.
        Returns the checked keys in item order, or None when cancelled.
        """
        raise NotImplementedError

    def _default_yes(self, default: bool) -> bool:
        return True if self.assume_yes else default


# =========================================================
# PLAIN (rich prompts, always available)
# =========================================================

class PlainUI(BaseUI):
    name = "plain"

    def choose(self, prompt, options, default=None):
        self.console.print(f"\n[bold cyan]?[/bold cyan] [bold]{prompt}[/bold]")
        table = Table(show_header=False, box=None, padding=(0, 2))
        for i, option in enumerate(options):
            table.add_row(f"[cyan]{i + 1})[/cyan]", option)
        self.console.print(table)

        choices = [str(x) for x in range(1, len(options) + 1)]
        kwargs = {"default": options.index(default) + 1} if default in options else {}
        selection = IntPrompt.ask("  [cyan]Choose an option[/cyan]", choices=choices,
                                  show_choices=False, console=self.console, **kwargs)
        return options[selection - 1]

    def confirm(self, prompt, default=False):
        return Confirm.ask(f"[cyan]{prompt}[/cyan]", default=self._default_yes(default), console=self.console)

    def prompt_text(self, prompt, default=""):
        return Prompt.ask(f"  [cyan]{prompt}[/cyan]", default=default, show_default=bool(default),
                          console=self.console)

    def show_message(self, title, text):
        self.console.print(Panel(text, title=f"[bold]{title}[/bold]", border_style="blue"))

    def checklist(self, prompt, items):
        self.console.print(f"\n[bold cyan]?[/bold cyan] [bold]{prompt}[/bold]")
        table = Table(show_header=False, box=None, padding=(0, 2))
        for i, (key, label, checked) in enumerate(items):
            mark = "[green]x[/green]" if checked else " "
            table.add_row(f"[cyan]{i + 1})[/cyan]", f"[{mark}]", f"[bold]{key}[/bold]", f"[dim]{label}[/dim]")
        self.console.print(table)
        self.console.print("  [dim]Numbers separated by commas, 'all', 'none', or Enter to keep the marks.[/dim]")

        while True:
            raw = Prompt.ask("  [cyan]Selection[/cyan]", default="", show_default=False, console=self.console)
            picked = parse_selection(raw, items)
            if picked is not None:
                return picked
            self.console.print("  [red]✖ Invalid selection, try again.[/red]")


def parse_selection(raw: str, items: list) -> list | None:
    """Turns '1,3' / 'all' / 'none' / '' into checked keys. None means unparseable."""
    raw = (raw or "").strip().lower()
    if raw == "":
        return [key for key, _, checked in items if checked]
    if raw == "all":
        return [key for key, _, _ in items]
    if raw == "none":
        return []

    indexes = set()
    for part in raw.replace(" ", ",").split(","):
        if not part:
            continue
        if not part.isdigit() or not 1 <= int(part) <= len(items):
            return None
        indexes.add(int(part) - 1)
    return [items[i][0] for i in sorted(indexes)]


# =========================================================
# DIALOG / WHIPTAIL
# =========================================================

class DialogUI(BaseUI):
    """Drives dialog(1) or whiptail(1). Both print the answer on stderr."""

    TITLE = "SFM - Shell Function Manager"

    def __init__(self, console: Console, binary: str = "dialog", assume_yes: bool = False):
        super().__init__(console, assume_yes)
        self.binary = binary
        self.name = binary

    def _run(self, *args) -> tuple[int, str]:
        cmd = [self.binary, "--title", self.TITLE, *args]
        result = subprocess.run(cmd, stderr=subprocess.PIPE, text=True)
        return result.returncode, (result.stderr or "").strip()

    def choose(self, prompt, options, default=None):
        pairs = []
        for i, option in enumerate(options):
            pairs += [str(i + 1), option]
        extra = ["--default-item", str(options.index(default) + 1)] if default in options else []
        code, out = self._run(*extra, "--menu", prompt, "15", "70", str(len(options)), *pairs)
        if code != 0 or not out.isdigit():
            return None
        return options[int(out) - 1]

    def confirm(self, prompt, default=False):
        extra = [] if self._default_yes(default) else ["--defaultno"]
        code, _ = self._run(*extra, "--yesno", prompt, "10", "70")
        return code == 0

    def prompt_text(self, prompt, default=""):
        code, out = self._run("--inputbox", prompt, "10", "70", default)
        if code != 0:
            raise UserCancelled(prompt)
        return out

    def show_message(self, title, text):
        self._run("--msgbox", f"{title}\n\n{text}", "22", "76")

    def checklist(self, prompt, items):
        args = []
        for key, label, checked in items:
            args += [key, label, "on" if checked else "off"]
        code, out = self._run("--checklist", prompt, "22", "76", str(len(items)), *args)
        if code != 0:
            return None
        chosen = set(shlex.split(out))
        return [key for key, _, _ in items if key in chosen]


# =========================================================
# BATCH (never blocks)
# =========================================================

class BatchUI(BaseUI):
    """Answers yes to everything and keeps every default."""

    name = "batch"

    def __init__(self, console: Console):
        super().__init__(console, assume_yes=True)

    def choose(self, prompt, options, default=None):
        return default if default in options else (options[0] if options else None)

    def confirm(self, prompt, default=False):
        return True

    def prompt_text(self, prompt, default=""):
        return default

    def show_message(self, title, text):
        self.console.print(Panel(text, title=f"[bold]{title}[/bold]", border_style="blue"))

    def checklist(self, prompt, items):
        return [key for key, _, checked in items if checked]


def select_ui(console: Console, preference: str = "auto", batch: bool = False,
              assume_yes: bool = False, interactive: bool | None = None) -> BaseUI:
    """dialog -> whiptail -> plain prompts, unless batch mode or a forced tier."""
    if batch:
        return BatchUI(console)

    if interactive is None:
        interactive = sys.stdin.isatty() and sys.stdout.isatty()

    if preference in ("dialog", "whiptail"):
        if has_executable(preference):
            return DialogUI(console, preference, assume_yes)
        logger.warning(f"{preference} requested but not installed, using plain prompts")
        return PlainUI(console, assume_yes)

    if preference == "auto" and interactive:
        for binary in ("dialog", "whiptail"):
            if has_executable(binary):
                logger.info(f"Using {binary} interface")
                return DialogUI(console, binary, assume_yes)

    return PlainUI(console, assume_yes)
