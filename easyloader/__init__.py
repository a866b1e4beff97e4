"""Top-level package for the easyloader toolkit.

This package wires the content loader to the entry-point plugin loader so a
host only needs :func:`create_loader` to load ``EasyLoader`` packages.
"""

from __future__ import annotations

from typing import Callable, Optional

from modules.content_loader import ContentPackageLoader, ContentRegistry, LoaderConfig, PluginPackage

from .plugin_manager import EntryPointPluginLoader, PluginContext, PluginDescriptor


def create_loader(
    registry_getter: Callable[[PluginPackage], ContentRegistry],
    config: Optional[LoaderConfig] = None,
) -> ContentPackageLoader:
    """Return a loader that runs package entry points after resolving their data."""

    return ContentPackageLoader(EntryPointPluginLoader(), registry_getter, config)


__all__ = [
    "EntryPointPluginLoader",
    "PluginContext",
    "PluginDescriptor",
    "create_loader",
]
