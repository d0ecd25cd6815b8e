"""
Tests for the feature registry and artifact generation.
"""

import subprocess
from pathlib import Path

import pytest

from sfm import generator
from sfm.env_probe import ShellFamily
from sfm.errors import TemplateMissingError
from sfm.generator import (
    CustomFunction,
    artifact_paths,
    render_aliases,
    render_custom_function,
    render_functions,
    validate_syntax,
    write_artifact,
)
from sfm.templates import ALIAS_GROUPS, FUNCTIONS, Feature, alias_line, lookup, missing_templates, offered

POSIX = ShellFamily.POSIX_LIKE
FISH = ShellFamily.STRUCTURED_SCRIPT

ALL_FEATURES = [(registry, key) for registry in (FUNCTIONS, ALIAS_GROUPS) for key in registry]


# ── Registry ─────────────────────────────────────────────────────────


class TestRegistry:
    def test_no_gaps(self):
        assert missing_templates() == []

    @pytest.mark.parametrize("registry, key", ALL_FEATURES)
    @pytest.mark.parametrize("family", list(ShellFamily))
    def test_every_feature_covers_every_family(self, registry, key, family):
        assert lookup(registry, key, family).strip()

    def test_expected_keys(self):
        assert list(FUNCTIONS) == ["extract", "mkcd", "psgrep", "backup", "myip", "portcheck"]
        assert list(ALIAS_GROUPS) == [
            "navigation", "safety", "ls-variants", "git", "system-monitoring", "network",
        ]

    def test_unknown_key_fails_closed(self):
        with pytest.raises(TemplateMissingError):
            lookup(FUNCTIONS, "teleport", POSIX)

    def test_missing_family_fails_closed(self):
        half = Feature("half", "Half", "only posix", "half", {POSIX: "half() { :; }\n"})
        with pytest.raises(LookupError):
            half.template(FISH)

    def test_git_group_needs_git(self):
        keys = [f.key for f in offered(ALIAS_GROUPS, lambda name: False)]
        assert "git" not in keys
        keys = [f.key for f in offered(ALIAS_GROUPS, lambda name: name == "git")]
        assert "git" in keys

    def test_alias_syntax(self):
        assert alias_line(POSIX, "ll", "ls -lh") == "alias ll='ls -lh'"
        assert alias_line(FISH, "ll", "ls -lh") == "alias ll 'ls -lh'"


# ── Rendering ────────────────────────────────────────────────────────


class TestRender:
    def test_deterministic(self, tmp_path: Path):
        keys = ["backup", "mkcd", "myip"]
        first = render_functions(POSIX, keys, tmp_path)
        second = render_functions(POSIX, keys, tmp_path)
        assert first == second

    def test_selection_order_kept(self, tmp_path: Path):
        content = render_functions(POSIX, ["mkcd", "extract"], tmp_path).content
        assert content.index("mkcd() {") < content.index("extract() {")

    def test_only_selected_features(self, tmp_path: Path):
        content = render_functions(POSIX, ["mkcd"], tmp_path).content
        assert "mkcd() {" in content
        assert "extract" not in content

    def test_headers(self, tmp_path: Path):
        assert render_functions(POSIX, [], tmp_path).content.startswith("#!/bin/bash\n# SFM Functions")
        fish = render_functions(FISH, [], tmp_path).content
        assert fish.startswith("# SFM Functions - Auto-generated for Fish")
        assert "#!/bin/bash" not in fish

    def test_fish_templates(self, tmp_path: Path):
        content = render_functions(FISH, ["mkcd"], tmp_path).content
        assert "function mkcd" in content
        assert "mkcd() {" not in content

    def test_paths(self, tmp_path: Path):
        assert artifact_paths(tmp_path, POSIX) == (tmp_path / "functions.sh", tmp_path / "aliases.sh")
        assert render_aliases(FISH, [], tmp_path).path == tmp_path / "aliases.fish"

    def test_unknown_key_raises(self, tmp_path: Path):
        with pytest.raises(TemplateMissingError):
            render_aliases(POSIX, ["navigation", "nonsense"], tmp_path)

    def test_aliases_with_shortcuts(self, tmp_path: Path):
        content = render_aliases(POSIX, ["safety"], tmp_path, shortcuts=["extract", "mkcd"]).content
        assert "alias ex='extract'" in content
        assert "alias rm='rm -i'" in content
        assert content.index("# Function shortcuts") < content.index("# Safety")

    def test_fish_aliases(self, tmp_path: Path):
        content = render_aliases(FISH, ["navigation"], tmp_path, shortcuts=["psgrep"]).content
        assert "alias psg 'psgrep'" in content
        assert "alias .. 'cd ..'" in content


class TestCustomFunction:
    def test_posix(self):
        text = render_custom_function(POSIX, CustomFunction("hi", "Say hello", "echo hello"))
        assert text == "# Say hello\nhi() {\n    echo hello\n}\n"

    def test_fish(self):
        text = render_custom_function(FISH, CustomFunction("hi", "Say hello", "echo hello"))
        assert text == "# Say hello\nfunction hi\n    echo hello\nend\n"

    def test_blank_description_uses_name(self):
        assert render_custom_function(POSIX, CustomFunction("hi", "", "echo")).startswith("# hi\n")

    @pytest.mark.parametrize("name, command", [("", "echo"), ("  ", "echo"), ("hi", ""), ("hi", "   ")])
    def test_requires_name_and_command(self, name, command):
        with pytest.raises(ValueError):
            render_custom_function(POSIX, CustomFunction(name, "desc", command))

    def test_appended_after_builtins(self, tmp_path: Path):
        content = render_functions(POSIX, ["mkcd"], tmp_path, custom=[CustomFunction("hi", "", "echo")]).content
        assert content.index("mkcd() {") < content.index("hi() {")


class TestWriteArtifact:
    def test_overwrites_instead_of_appending(self, tmp_path: Path):
        write_artifact(render_functions(POSIX, ["extract", "mkcd"], tmp_path))
        smaller = render_functions(POSIX, ["mkcd"], tmp_path)
        write_artifact(smaller)
        assert smaller.path.read_text() == smaller.content
        assert "extract" not in smaller.path.read_text()

    def test_no_temp_files_left(self, tmp_path: Path):
        write_artifact(render_aliases(POSIX, ["safety"], tmp_path))
        assert sorted(p.name for p in tmp_path.iterdir()) == ["aliases.sh"]


class TestValidateSyntax:
    def test_fish_always_ok(self, tmp_path: Path, monkeypatch):
        def never(*args, **kwargs):
            raise AssertionError("no checker should run for fish")
        monkeypatch.setattr(generator.subprocess, "run", never)
        assert validate_syntax(tmp_path / "functions.fish", FISH).ok

    def test_no_checker_is_ok(self, tmp_path: Path, monkeypatch):
        monkeypatch.setattr(generator, "has_executable", lambda name: False)
        assert validate_syntax(tmp_path / "functions.sh", POSIX).ok

    def test_reports_failure(self, ctx, tmp_path: Path, monkeypatch):
        monkeypatch.setattr(generator, "has_executable", lambda name: True)
        calls = []

        def fake_run(cmd, **kwargs):
            calls.append(cmd)
            return subprocess.CompletedProcess(cmd, 2, "", "line 3: syntax error near `}'")

        monkeypatch.setattr(generator.subprocess, "run", fake_run)
        check = validate_syntax(tmp_path / "functions.sh", POSIX, "zsh")
        assert not check.ok
        assert "syntax error" in check.detail
        assert calls[0][:2] == ["zsh", "-n"]
        assert "[ERROR]" in ctx.log_file.read_text()

    def test_passes(self, tmp_path: Path, monkeypatch):
        monkeypatch.setattr(generator, "has_executable", lambda name: True)
        monkeypatch.setattr(generator.subprocess, "run",
                            lambda cmd, **kwargs: subprocess.CompletedProcess(cmd, 0, "", ""))
        assert validate_syntax(tmp_path / "functions.sh", POSIX, "bash").ok
