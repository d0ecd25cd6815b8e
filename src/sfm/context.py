# sfm/context.py
import os
import logging
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console

from .utils import SFM_DIR_NAME, CONFIG_FILE_NAME, LOG_FILE_NAME, _ensure_dir

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(log_file: Path, verbose: bool = False) -> logging.Logger:
    """
    Points the 'sfm' logger at the append-only setup log.
    Calling it again swaps the old handler for a new one.
    """
    logger = logging.getLogger("sfm")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    _ensure_dir(log_file.parent)
    handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False
    return logger


@dataclass
class RuntimeContext:
    """Everything a run needs to know about where it lives and how it talks."""

    home: Path
    state_dir: Path
    logger: logging.Logger
    console: Console
    batch: bool = False
    assume_yes: bool = False
    shell_override: str | None = None
    editor: str = "vim"
    shell_env: str = ""

    @property
    def config_file(self) -> Path:
        return self.state_dir / CONFIG_FILE_NAME

    @property
    def log_file(self) -> Path:
        return self.state_dir / LOG_FILE_NAME

    @classmethod
    def create(cls, home: Path | None = None, batch: bool = False, assume_yes: bool = False,
               shell_override: str | None = None, environ=None, console: Console | None = None,
               verbose: bool = False):
        env = os.environ if environ is None else environ
        home = Path(home) if home else Path.home()
        state_dir = home / SFM_DIR_NAME
        _ensure_dir(state_dir)

        if console is None:
            console = Console(no_color=bool(env.get("NO_COLOR")), highlight=False)

        logger = setup_logging(state_dir / LOG_FILE_NAME, verbose=verbose)
        return cls(
            home=home,
            state_dir=state_dir,
            logger=logger,
            console=console,
            batch=batch,
            assume_yes=assume_yes or batch,
            shell_override=shell_override,
            editor=env.get("EDITOR") or "vim",
            shell_env=env.get("SHELL", ""),
        )
