import os
import shutil
from pathlib import Path
from datetime import datetime

SFM_DIR_NAME = ".sfm"
CONFIG_FILE_NAME = "config"
LOG_FILE_NAME = "setup.log"

BACKUP_INFIX = ".sfm-backup-"
BACKUP_TS_FORMAT = "%Y%m%d_%H%M%S_%f"


def _ensure_dir(path: Path):
    if not path.exists():
        path.mkdir(parents=True, exist_ok=True)


def read_text_exact(path: Path) -> str:
    """Reads without newline translation so CRLF and odd bytes survive a rewrite."""
    with open(path, "r", encoding="utf-8", errors="surrogateescape", newline="") as f:
        return f.read()


def atomic_write_text(path: Path, content: str):
    """
    Stages content next to the target and renames it into place.
    The target is either the old file or the complete new one, never half-written.
    A symlinked target is written through: the link stays, the file it points at changes.
    """
    path = Path(os.path.realpath(path))
    _ensure_dir(path.parent)
    tmp = path.with_name(f".{path.name}.sfm-tmp")
    try:
        with open(tmp, "w", encoding="utf-8", errors="surrogateescape", newline="") as f:
            f.write(content)
        if path.exists():
            shutil.copymode(path, tmp)
        os.replace(tmp, path)
    finally:
        if tmp.exists():
            tmp.unlink()


def atomic_copy(src: Path, dst: Path):
    """Byte-for-byte copy of src over dst, staged the same way as atomic_write_text."""
    dst = Path(os.path.realpath(dst))
    _ensure_dir(dst.parent)
    tmp = dst.with_name(f".{dst.name}.sfm-tmp")
    try:
        shutil.copy2(src, tmp)
        os.replace(tmp, dst)
    finally:
        if tmp.exists():
            tmp.unlink()


def backup_timestamp(now: datetime | None = None) -> str:
    return (now or datetime.now()).strftime(BACKUP_TS_FORMAT)


def today() -> str:
    return datetime.now().strftime("%Y-%m-%d")


def tail_read_last_n_lines(path: Path, n: int = 20) -> list[str]:
    """Returns the last n lines of a text file, or [] if it cannot be read."""
    if not path or not path.exists():
        return []
    try:
        lines = path.read_text(encoding="utf-8", errors="ignore").splitlines()
    except OSError:
        return []
    return lines[-n:]
