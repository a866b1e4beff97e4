from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from modules.content_loader import InMemoryContentRegistry, LoadReport
from plugins import PluginManager
from tests.stubs import PackageBuilder

REPOSITORY_ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture()
def builder(tmp_path: Path) -> PackageBuilder:
    """Return a builder writing a content package below ``tmp_path``."""

    return PackageBuilder(tmp_path / "pack")


@pytest.fixture()
def registry() -> InMemoryContentRegistry:
    return InMemoryContentRegistry("test")


@pytest.fixture()
def report() -> LoadReport:
    return LoadReport(package="test.pack")


@pytest.fixture()
def isolated_manager():
    """Return a fresh plugin manager for isolated tests."""

    manager = PluginManager()
    yield manager
    manager._plugins.clear()
    manager._exposed.clear()


@pytest.fixture()
def example_pack_root() -> Path:
    return REPOSITORY_ROOT / "mods" / "example_pack"
