"""
Tests for the install record kept in ~/.sfm/config.
"""

from pathlib import Path

from sfm.env_probe import ShellFamily
from sfm.install_config import InstallConfig, load_install_config, save_install_config


def _config(home: Path) -> InstallConfig:
    return InstallConfig(
        shell_name="zsh",
        shell_family=ShellFamily.POSIX_LIKE,
        shell_config=home / ".zshrc",
        functions_file=home / ".sfm" / "functions.sh",
        aliases_file=home / ".sfm" / "aliases.sh",
        distro="arch",
        pkg_manager="pacman",
        install_date="2026-01-31",
        functions=["extract", "mkcd"],
        alias_groups=["git"],
    )


def test_save_and_load(ctx, home):
    config = _config(home)
    save_install_config(ctx.config_file, config)
    assert load_install_config(ctx.config_file) == config


def test_file_layout(ctx, home):
    save_install_config(ctx.config_file, _config(home))
    text = ctx.config_file.read_text()
    assert text.startswith("# SFM Configuration Summary\n")
    assert "SHELL_NAME=zsh\n" in text
    assert "SELECTED_FUNCTIONS=extract,mkcd\n" in text
    assert f"SHELL_CONFIG={home / '.zshrc'}\n" in text


def test_empty_selection_round_trips(ctx, home):
    config = _config(home)
    config.functions = []
    config.alias_groups = []
    save_install_config(ctx.config_file, config)
    loaded = load_install_config(ctx.config_file)
    assert loaded.functions == []
    assert loaded.alias_groups == []


def test_missing_file(tmp_path: Path):
    assert load_install_config(tmp_path / "config") is None


def test_unreadable_content_is_ignored(ctx):
    ctx.config_file.write_text("this is not a config\nSHELL_NAME=bash\n")
    assert load_install_config(ctx.config_file) is None
    assert "Ignoring unreadable install config" in ctx.log_file.read_text()


def test_family_inferred_for_older_records(tmp_path: Path):
    text = (
        "SHELL_NAME=fish\n"
        "SHELL_CONFIG=/home/u/.config/fish/config.fish\n"
        "FUNCTIONS_FILE=/home/u/.sfm/functions.fish\n"
        "ALIASES_FILE=/home/u/.sfm/aliases.fish\n"
    )
    config = InstallConfig.from_text(text)
    assert config.shell_family is ShellFamily.STRUCTURED_SCRIPT
    assert config.functions == []
    assert config.install_date == "unknown"
