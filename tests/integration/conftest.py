"""
Pytest fixtures for xcbazel integration tests.

This module provides a fake build host patched in for `subprocess.run`,
a CI checkout directory, a selected Xcode install and a settings file.
"""

import plistlib
from pathlib import Path
from typing import Generator
from unittest.mock import patch

import pytest
import yaml

from tests.fixtures.machine import FakeMachine


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A working directory with a CI checkout at github/repo."""
    repo = tmp_path / "github" / "repo"
    repo.mkdir(parents=True)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def selected_xcode(tmp_path: Path) -> Path:
    """A fake selected Xcode 9.1 install; returns its Developer directory."""
    developer = tmp_path / "Xcode.app" / "Contents" / "Developer"
    developer.mkdir(parents=True)
    with open(developer.parent / "version.plist", "wb") as f:
        plistlib.dump({"CFBundleShortVersionString": "9.1"}, f)
    return developer


@pytest.fixture
def machine(selected_xcode: Path) -> Generator[FakeMachine, None, None]:
    """Patch subprocess.run with a FakeMachine."""
    fake = FakeMachine(selected_xcode)
    with patch("xcbazel.engine.commands.subprocess.run", side_effect=fake.run):
        yield fake


@pytest.fixture
def config_file(workspace: Path) -> Path:
    """A settings file with a fast kill loop."""
    path = workspace / "xcbazel.yaml"
    path.write_text(
        yaml.safe_dump({"xcode": {"kill_timeout": 1.0, "kill_poll_interval": 0.0}})
    )
    return path
