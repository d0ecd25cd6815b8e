# sfm/generator.py
import logging
import subprocess
from pathlib import Path
from typing import NamedTuple

from .env_probe import ShellFamily, has_executable
from .templates import FUNCTIONS, ALIAS_GROUPS, lookup, alias_line
from .utils import atomic_write_text

logger = logging.getLogger("sfm")

# --- HEADERS ---

HEADERS = {
    ("functions", ShellFamily.POSIX_LIKE): "#!/bin/bash\n# SFM Functions - Auto-generated\n",
    ("aliases", ShellFamily.POSIX_LIKE): "#!/bin/bash\n# SFM Aliases - Auto-generated\n",
    ("functions", ShellFamily.STRUCTURED_SCRIPT): "# SFM Functions - Auto-generated for Fish\n",
    ("aliases", ShellFamily.STRUCTURED_SCRIPT): "# SFM Aliases - Auto-generated for Fish\n",
}
HEADER_FOOTER = "# Edit manually or re-run the wizard\n"


class GeneratedArtifact(NamedTuple):
    path: Path
    content: str


class CustomFunction(NamedTuple):
    name: str
    description: str
    command: str


class SyntaxCheck(NamedTuple):
    ok: bool
    detail: str = ""


def artifact_paths(state_dir: Path, family: ShellFamily) -> tuple[Path, Path]:
    """(functions_path, aliases_path) for a family."""
    ext = family.extension
    return state_dir / f"functions{ext}", state_dir / f"aliases{ext}"


def _assemble(kind: str, family: ShellFamily, blocks: list) -> str:
    header = HEADERS[(kind, family)] + HEADER_FOOTER
    return "\n".join([header] + blocks)


def render_custom_function(family: ShellFamily, func: CustomFunction) -> str:
    name = (func.name or "").strip()
    command = (func.command or "").strip()
    if not name:
        raise ValueError("Custom function needs a name.")
    if not command:
        raise ValueError(f"Custom function '{name}' needs a command.")

    comment = f"# {func.description.strip()}" if func.description and func.description.strip() else f"# {name}"
    if family is ShellFamily.STRUCTURED_SCRIPT:
        return f"{comment}\nfunction {name}\n    {command}\nend\n"
    return f"{comment}\n{name}() {{\n    {command}\n}}\n"


def render_functions(family: ShellFamily, keys, state_dir: Path, custom=()) -> GeneratedArtifact:
    """
    Header + one template per selected key, in selection order, then custom functions.
    Identical inputs always give identical bytes.
    """
    blocks = [lookup(FUNCTIONS, key, family) for key in keys]
    blocks += [render_custom_function(family, func) for func in custom]
    path, _ = artifact_paths(state_dir, family)
    return GeneratedArtifact(path, _assemble("functions", family, blocks))


def render_aliases(family: ShellFamily, group_keys, state_dir: Path, shortcuts=()) -> GeneratedArtifact:
    """
    shortcuts are function keys whose shortcut alias (ex, psg, bak) was accepted.
    """
    blocks = []
    shortcut_lines = []
    for key in shortcuts:
        feature = FUNCTIONS.get(key)
        if feature and feature.shortcut:
            shortcut_lines.append(alias_line(family, feature.shortcut, feature.key))
    if shortcut_lines:
        blocks.append("\n".join(["# Function shortcuts"] + shortcut_lines) + "\n")

    blocks += [lookup(ALIAS_GROUPS, key, family) for key in group_keys]
    _, path = artifact_paths(state_dir, family)
    return GeneratedArtifact(path, _assemble("aliases", family, blocks))


def write_artifact(artifact: GeneratedArtifact):
    atomic_write_text(artifact.path, artifact.content)
    logger.info(f"Wrote {artifact.path}")


# --- VALIDATION (advisory) ---

def validate_syntax(path: Path, family: ShellFamily, shell_name: str | None = None) -> SyntaxCheck:
    """
    Runs '<shell> -n' for POSIX-like artifacts. Fish has no offline checker
    we rely on, so it always passes. A failure never blocks installation.
    """
    if family is ShellFamily.STRUCTURED_SCRIPT:
        return SyntaxCheck(True)

    checker = shell_name if shell_name in ("bash", "zsh") and has_executable(shell_name) else "bash"
    if not has_executable(checker):
        logger.info(f"No syntax checker available for {path.name}")
        return SyntaxCheck(True)

    try:
        result = subprocess.run([checker, "-n", str(path)], capture_output=True, text=True, timeout=10)
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning(f"Syntax check could not run for {path.name}: {e}")
        return SyntaxCheck(True)

    if result.returncode != 0:
        detail = (result.stderr or result.stdout).strip()
        logger.error(f"Syntax check failed for {path}: {detail}")
        return SyntaxCheck(False, detail)

    logger.info(f"Syntax check passed for {path.name}")
    return SyntaxCheck(True)
