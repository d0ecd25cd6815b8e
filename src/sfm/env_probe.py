# sfm/env_probe.py
"""
Read-only questions about the machine SFM is running on:
which shell, which package manager, which distro, is X on PATH.
Nothing in here writes to disk.
"""
import os
import shutil
import logging
import platform
from enum import Enum
from pathlib import Path
from typing import NamedTuple

logger = logging.getLogger("sfm")


class ShellFamily(str, Enum):
    POSIX_LIKE = "posix"
    STRUCTURED_SCRIPT = "fish"

    @property
    def extension(self) -> str:
        return ".fish" if self is ShellFamily.STRUCTURED_SCRIPT else ".sh"


# name -> (family, startup file relative to $HOME)
SUPPORTED_SHELLS = {
    "bash": (ShellFamily.POSIX_LIKE, Path(".bashrc")),
    "zsh": (ShellFamily.POSIX_LIKE, Path(".zshrc")),
    "fish": (ShellFamily.STRUCTURED_SCRIPT, Path(".config") / "fish" / "config.fish"),
}
DEFAULT_SHELL = "bash"


class ShellTarget(NamedTuple):
    name: str
    family: ShellFamily
    startup_file: Path


class PackageManager(NamedTuple):
    name: str
    install_command: tuple

    @property
    def available(self) -> bool:
        return self.name != "none"


class Distro(NamedTuple):
    id: str
    pretty_name: str


NO_PACKAGE_MANAGER = PackageManager("none", ())

# Priority order. The first one present wins, however many are installed.
PACKAGE_MANAGERS = [
    ("apt-get", PackageManager("apt", ("sudo", "apt-get", "install", "-y"))),
    ("dnf", PackageManager("dnf", ("sudo", "dnf", "install", "-y"))),
    ("yum", PackageManager("yum", ("sudo", "yum", "install", "-y"))),
    ("pacman", PackageManager("pacman", ("sudo", "pacman", "-S", "--noconfirm"))),
    ("zypper", PackageManager("zypper", ("sudo", "zypper", "install", "-y"))),
    ("apk", PackageManager("apk", ("sudo", "apk", "add"))),
    ("brew", PackageManager("brew", ("brew", "install"))),
]


def has_executable(name: str) -> bool:
    return shutil.which(name) is not None


def _normalize_shell_name(raw: str | None) -> str:
    if not raw:
        return ""
    return os.path.basename(raw.strip()).lower()


def _resolve_shell_name(override: str | None = None, shell_env: str | None = None) -> str:
    if override is not None:
        name = _normalize_shell_name(override)
        if name in SUPPORTED_SHELLS:
            return name
        logger.warning(f"Unknown shell override '{override}', falling back to {DEFAULT_SHELL}")
        return DEFAULT_SHELL

    if shell_env is None:
        shell_env = os.environ.get("SHELL", "")
    name = _normalize_shell_name(shell_env)
    if name in SUPPORTED_SHELLS:
        return name

    if not name:
        logger.warning(f"$SHELL is not set, falling back to {DEFAULT_SHELL}")
    else:
        logger.warning(f"Unsupported shell '{shell_env}', falling back to {DEFAULT_SHELL}")
    return DEFAULT_SHELL


def detect_shell_family(override: str | None = None, shell_env: str | None = None) -> ShellFamily:
    """
    Unknown names never fail the run: they degrade to POSIX_LIKE with a warning.
    """
    return SUPPORTED_SHELLS[_resolve_shell_name(override, shell_env)][0]


def detect_shell(override: str | None = None, home: Path | None = None,
                 shell_env: str | None = None) -> ShellTarget:
    name = _resolve_shell_name(override, shell_env)
    family, rc_rel = SUPPORTED_SHELLS[name]
    home = home or Path.home()
    target = ShellTarget(name, family, home / rc_rel)
    logger.info(f"Shell: {target.name}, Config: {target.startup_file}")
    return target


def detect_package_manager() -> PackageManager:
    for executable, manager in PACKAGE_MANAGERS:
        if has_executable(executable):
            logger.info(f"Package manager: {manager.name}")
            return manager

    logger.warning("No package manager detected")
    return NO_PACKAGE_MANAGER


def detect_distro() -> Distro:
    try:
        info = platform.freedesktop_os_release()
    except OSError:
        logger.warning("Could not detect distribution")
        return Distro("unknown", "Unknown")

    distro = Distro(info.get("ID", "unknown"), info.get("PRETTY_NAME") or info.get("NAME", "Unknown"))
    logger.info(f"Distribution: {distro.id}")
    return distro
