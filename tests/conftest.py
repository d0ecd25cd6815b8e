"""
Shared test fixtures: a throwaway home directory, a RuntimeContext rooted in
it, and a scripted stand-in for the interactive UI.
"""

import io
from pathlib import Path

import pytest
from rich.console import Console

from sfm.context import RuntimeContext
from sfm.ui import BaseUI


class FakeUI(BaseUI):
    """
    Answers by matching fragments of the prompt text.

    confirms:   {fragment: bool}, unmatched prompts get default_confirm
    checklists: {fragment: [keys] | None}, unmatched keep the pre-checked items
    texts:      answers for prompt_text, consumed in order, "" once exhausted
    choice:     what choose() returns
    """

    name = "fake"

    def __init__(self, console, confirms=None, checklists=None, texts=None, choice=None,
                 default_confirm=True):
        super().__init__(console)
        self.confirms = confirms or {}
        self.checklists = checklists or {}
        self.texts = list(texts or [])
        self.choice = choice
        self.default_confirm = default_confirm
        self.asked = []
        self.messages = []

    def choose(self, prompt, options, default=None):
        self.asked.append(prompt)
        return self.choice

    def confirm(self, prompt, default=False):
        self.asked.append(prompt)
        for fragment, answer in self.confirms.items():
            if fragment in prompt:
                return answer
        return self.default_confirm

    def prompt_text(self, prompt, default=""):
        self.asked.append(prompt)
        return self.texts.pop(0) if self.texts else default

    def show_message(self, title, text):
        self.messages.append((title, text))

    def checklist(self, prompt, items):
        self.asked.append(prompt)
        for fragment, answer in self.checklists.items():
            if fragment in prompt:
                return answer
        return [key for key, _, checked in items if checked]


@pytest.fixture
def home(tmp_path: Path) -> Path:
    home = tmp_path / "home"
    home.mkdir()
    return home


@pytest.fixture
def console() -> Console:
    return Console(file=io.StringIO(), width=120, no_color=True)


@pytest.fixture
def ctx(home: Path, console: Console) -> RuntimeContext:
    return RuntimeContext.create(home=home, console=console, environ={"SHELL": "/bin/bash"})


@pytest.fixture
def make_ui(console):
    def _make(**kwargs):
        return FakeUI(console, **kwargs)
    return _make
