# sfm/deps.py
import time
import logging
import subprocess
from pathlib import Path

from rich.console import Console

from .env_probe import PackageManager, has_executable

logger = logging.getLogger("sfm")

# Tools the generated functions lean on.
DEPENDENCIES = ["curl", "wget", "unzip", "tar", "gzip", "bzip2"]
POLL_INTERVAL = 0.1


def find_missing(names=DEPENDENCIES) -> list:
    missing = [name for name in names if not has_executable(name)]
    for name in missing:
        logger.info(f"Missing dependency: {name}")
    return missing


def install_package(manager: PackageManager, name: str, log_file: Path, console: Console) -> bool:
    """
    Runs the package manager for one package, output appended to the setup log.
    Returns False on failure instead of raising: a failed install never stops the wizard.
    """
    cmd = list(manager.install_command) + [name]
    logger.info(f"Executing: {' '.join(cmd)}")
    try:
        with open(log_file, "a", encoding="utf-8") as log:
            proc = subprocess.Popen(cmd, stdout=log, stderr=subprocess.STDOUT, stdin=subprocess.DEVNULL)
            with console.status(f"Installing {name}...", spinner="dots"):
                while proc.poll() is None:
                    time.sleep(POLL_INTERVAL)
    except OSError as e:
        logger.error(f"Failed to install {name}: {e}")
        return False

    if proc.returncode != 0:
        logger.error(f"Failed to install {name} (exit {proc.returncode})")
        return False

    logger.info(f"Installed: {name}")
    return True


def install_missing(manager: PackageManager, names: list, log_file: Path, console: Console) -> dict:
    """name -> installed? for every name, in order."""
    results = {}
    for name in names:
        ok = install_package(manager, name, log_file, console)
        results[name] = ok
        if ok:
            console.print(f"  [green]✔ Installed:[/green] {name}")
        else:
            console.print(f"  [red]✖ Failed to install:[/red] {name} [dim](see {log_file})[/dim]")
    return results
