# sfm/config_block.py
"""
Owns the one region of the user's shell startup file that SFM writes to.

    # >>> SFM - Shell Function Manager >>>
    ...two conditional source lines...
    # <<< SFM - Shell Function Manager <<<

Every mutation is preceded by a timestamped full copy of the file and lands
through a stage-then-rename write. The marker strings are shared by every
SFM version so any of them can roll back any other's block.
"""
import shutil
from enum import Enum
from pathlib import Path

import pyperclip

from .env_probe import ShellFamily
from .errors import ConfigBlockError
from .utils import BACKUP_INFIX, atomic_write_text, atomic_copy, backup_timestamp, read_text_exact

BEGIN_MARKER = "# >>> SFM - Shell Function Manager >>>"
END_MARKER = "# <<< SFM - Shell Function Manager <<<"


class ReconcileStatus(str, Enum):
    APPLIED = "applied"
    SKIPPED = "skipped"


class RollbackStatus(str, Enum):
    CANCELLED = "cancelled"
    ROLLED_BACK = "rolled-back"
    ROLLED_BACK_WITH_ERRORS = "rolled-back-with-errors"


# =========================================================
# PURE HELPERS
# =========================================================

def source_lines(family: ShellFamily, functions_path: Path, aliases_path: Path) -> list[str]:
    if family is ShellFamily.STRUCTURED_SCRIPT:
        return [f'test -f "{p}"; and source "{p}"' for p in (functions_path, aliases_path)]
    return [f'[ -f "{p}" ] && source "{p}"' for p in (functions_path, aliases_path)]


def render_block(family: ShellFamily, functions_path: Path, aliases_path: Path) -> str:
    lines = [BEGIN_MARKER] + source_lines(family, functions_path, aliases_path) + [END_MARKER]
    return "\n".join(lines) + "\n"


def _is_marker(line: str, marker: str) -> bool:
    return line.rstrip() == marker


def find_block(lines: list) -> tuple[int, int] | None:
    """
    (begin, end) line indexes of the first managed block, inclusive.
    A begin marker with no end marker after it raises instead of guessing.
    """
    begin = next((i for i, line in enumerate(lines) if _is_marker(line, BEGIN_MARKER)), None)
    if begin is None:
        return None
    end = next((i for i in range(begin + 1, len(lines)) if _is_marker(lines[i], END_MARKER)), None)
    if end is None:
        raise ConfigBlockError(
            f"Found '{BEGIN_MARKER}' on line {begin + 1} without a matching end marker. "
            "Fix the file by hand before re-running."
        )
    return begin, end


def strip_block(text: str) -> tuple[str, bool]:
    """Removes every managed block from text. Returns (new_text, removed_any)."""
    lines = text.splitlines(keepends=True)
    removed = False
    while True:
        span = find_block(lines)
        if span is None:
            break
        begin, end = span
        del lines[begin:end + 1]
        removed = True
    return "".join(lines), removed


def list_backups(startup_file: Path) -> list[Path]:
    """Snapshots of startup_file, oldest first."""
    prefix = startup_file.name + BACKUP_INFIX
    if not startup_file.parent.exists():
        return []
    found = [p for p in startup_file.parent.iterdir() if p.name.startswith(prefix) and p.is_file()]
    return sorted(found, key=lambda p: p.name[len(prefix):])


def latest_backup(startup_file: Path) -> Path | None:
    backups = list_backups(startup_file)
    return backups[-1] if backups else None


def has_block(startup_file: Path) -> bool:
    if not startup_file.exists():
        return False
    lines = startup_file.read_text(encoding="utf-8", errors="ignore").splitlines()
    return any(_is_marker(line, BEGIN_MARKER) for line in lines)


# =========================================================
# MANAGER
# =========================================================

class ConfigBlockManager:
    def __init__(self, ctx, ui, family: ShellFamily):
        self.ctx = ctx
        self.ui = ui
        self.family = family
        self.console = ctx.console
        self.logger = ctx.logger

    def take_snapshot(self, startup_file: Path) -> Path:
        target = startup_file.with_name(f"{startup_file.name}{BACKUP_INFIX}{backup_timestamp()}")
        shutil.copy2(startup_file, target)
        self.logger.info(f"Backed up {startup_file} to {target}")
        return target

    def apply(self, startup_file: Path, functions_path: Path, aliases_path: Path) -> Path:
        """
        Backup, drop any old block, append the fresh one. Returns the snapshot path.
        """
        if not startup_file.exists():
            startup_file.parent.mkdir(parents=True, exist_ok=True)
            startup_file.touch()
            self.logger.info(f"Created {startup_file}")

        snapshot = self.take_snapshot(startup_file)

        text = read_text_exact(startup_file)
        text, replaced = strip_block(text)
        if text and not text.endswith("\n"):
            text += "\n"
        text += render_block(self.family, functions_path, aliases_path)

        atomic_write_text(startup_file, text)
        self.logger.info(f"{'Replaced' if replaced else 'Added'} SFM block in {startup_file}")
        return snapshot

    def reconcile(self, startup_file: Path, functions_path: Path, aliases_path: Path) -> ReconcileStatus:
        if not self.ui.confirm(f"Automatically source SFM in your {startup_file}?", default=True):
            self._show_manual_lines(startup_file, functions_path, aliases_path)
            self.logger.info("Skipped shell configuration update")
            return ReconcileStatus.SKIPPED

        self.apply(startup_file, functions_path, aliases_path)
        self.console.print(f"  [green]✔ Backed up and updated[/green] {startup_file}")
        return ReconcileStatus.APPLIED

    def _show_manual_lines(self, startup_file: Path, functions_path: Path, aliases_path: Path):
        lines = "\n".join(source_lines(self.family, functions_path, aliases_path))
        self.ui.show_message(
            "Manual setup",
            f"To enable SFM yourself, add these lines to {startup_file}:\n\n{lines}",
        )
        if self.ctx.batch or not self.ui.confirm("Copy these lines to the clipboard?", default=False):
            return
        try:
            pyperclip.copy(lines)
            self.console.print("  [green]✔ Copied to clipboard.[/green]")
        except pyperclip.PyperclipException as e:
            self.logger.warning(f"Clipboard unavailable: {e}")
            self.console.print("  [yellow]! Clipboard unavailable, copy the lines above by hand.[/yellow]")

    # --- ROLLBACK ---

    def rollback(self, startup_file: Path, state_dir: Path) -> RollbackStatus:
        self.console.print("\n[bold yellow]SFM Rollback[/bold yellow]")
        if not self.ui.confirm("This will remove SFM configuration. Continue?", default=False):
            self.console.print("Rollback cancelled.")
            self.logger.info("Rollback cancelled")
            return RollbackStatus.CANCELLED

        failed = False
        snapshot = latest_backup(startup_file)

        # Current content, copied before the restore or strip below rewrites it.
        if startup_file.exists():
            try:
                self.take_snapshot(startup_file)
            except OSError as e:
                self.logger.error(f"Could not back up {startup_file}, leaving it untouched: {e}")
                self.console.print(f"  [red]✖ Could not back up {startup_file}:[/red] {e}")
                return self._remove_state_dir(state_dir, failed=True)

        if snapshot and self.ui.confirm(f"Restore shell config from backup ({snapshot.name})?", default=True):
            try:
                atomic_copy(snapshot, startup_file)
                self.console.print(f"  [green]✔ Restored[/green] {startup_file}")
                self.logger.info(f"Restored {startup_file} from {snapshot}")
            except OSError as e:
                failed = True
                self.logger.error(f"Could not restore {startup_file} from {snapshot}: {e}")
                self.console.print(f"  [red]✖ Restore failed:[/red] {e}")

        if startup_file.exists():
            try:
                text = read_text_exact(startup_file)
                stripped, removed = strip_block(text)
                if removed:
                    atomic_write_text(startup_file, stripped)
                    self.console.print(f"  [green]✔ Removed SFM block from[/green] {startup_file}")
                    self.logger.info(f"Removed SFM block from {startup_file}")
            except (OSError, ConfigBlockError) as e:
                failed = True
                self.logger.error(f"Could not remove SFM block from {startup_file}: {e}")
                self.console.print(f"  [red]✖ Could not remove SFM block:[/red] {e}")

        return self._remove_state_dir(state_dir, failed)

    def _remove_state_dir(self, state_dir: Path, failed: bool) -> RollbackStatus:
        if state_dir.exists() and self.ui.confirm(f"Remove SFM directory ({state_dir})?", default=False):
            try:
                shutil.rmtree(state_dir)
                self.console.print(f"  [green]✔ Removed[/green] {state_dir}")
            except OSError as e:
                failed = True
                self.logger.error(f"Could not remove {state_dir}: {e}")
                self.console.print(f"  [red]✖ Could not remove {state_dir}:[/red] {e}")

        if failed:
            self.console.print("\n[yellow]Rollback finished with errors. See the log for details.[/yellow]")
            return RollbackStatus.ROLLED_BACK_WITH_ERRORS

        self.console.print("\n[green]Rollback complete. Please restart your terminal.[/green]")
        self.logger.info("Rollback complete")
        return RollbackStatus.ROLLED_BACK
