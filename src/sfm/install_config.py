# sfm/install_config.py
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from .env_probe import ShellFamily
from .utils import atomic_write_text, today

logger = logging.getLogger("sfm")


def _split_keys(raw: str) -> list:
    return [k.strip() for k in raw.split(",") if k.strip()]


@dataclass
class InstallConfig:
    """The record of the last successful install, kept as key=value lines."""

    shell_name: str
    shell_family: ShellFamily
    shell_config: Path
    functions_file: Path
    aliases_file: Path
    distro: str = "unknown"
    pkg_manager: str = "none"
    install_date: str = field(default_factory=today)
    functions: list = field(default_factory=list)
    alias_groups: list = field(default_factory=list)

    def to_text(self) -> str:
        lines = [
            "# SFM Configuration Summary",
            f"# Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
            "",
            f"SHELL_NAME={self.shell_name}",
            f"SHELL_FAMILY={self.shell_family.value}",
            f"SHELL_CONFIG={self.shell_config}",
            f"DISTRO={self.distro}",
            f"PKG_MANAGER={self.pkg_manager}",
            f"FUNCTIONS_FILE={self.functions_file}",
            f"ALIASES_FILE={self.aliases_file}",
            f"SELECTED_FUNCTIONS={','.join(self.functions)}",
            f"SELECTED_ALIASES={','.join(self.alias_groups)}",
            f"INSTALL_DATE={self.install_date}",
        ]
        return "\n".join(lines) + "\n"

    @classmethod
    def from_text(cls, text: str) -> "InstallConfig":
        data = {}
        for line in text.splitlines():
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            data[key.strip()] = value.strip()

        try:
            family = ShellFamily(data.get("SHELL_FAMILY") or (
                "fish" if data.get("SHELL_NAME") == "fish" else "posix"))
            return cls(
                shell_name=data["SHELL_NAME"],
                shell_family=family,
                shell_config=Path(data["SHELL_CONFIG"]),
                functions_file=Path(data["FUNCTIONS_FILE"]),
                aliases_file=Path(data["ALIASES_FILE"]),
                distro=data.get("DISTRO", "unknown"),
                pkg_manager=data.get("PKG_MANAGER", "none"),
                install_date=data.get("INSTALL_DATE", "unknown"),
                functions=_split_keys(data.get("SELECTED_FUNCTIONS", "")),
                alias_groups=_split_keys(data.get("SELECTED_ALIASES", "")),
            )
        except (KeyError, ValueError) as e:
            raise ValueError(f"Incomplete SFM config: {e}") from None


def load_install_config(path: Path) -> InstallConfig | None:
    """None when there is no install record or it cannot be understood."""
    if not path.exists():
        return None
    try:
        return InstallConfig.from_text(path.read_text(encoding="utf-8", errors="ignore"))
    except (OSError, ValueError) as e:
        logger.warning(f"Ignoring unreadable install config {path}: {e}")
        return None


def save_install_config(path: Path, config: InstallConfig):
    atomic_write_text(path, config.to_text())
    logger.info(f"Saved install config to {path}")
