"""Resolution pipeline and the loader facade that wraps package code.

:func:`resolve_package` runs the data-only part of a load: sprites,
localization, decks and animations.  :class:`ContentPackageLoader` adds the
code phase on top.  It exposes the resolved values through the plugin
manager, lets the wrapped plugin loader run the package's entry point and
always finalizes diagnostics afterwards, whether that phase succeeded or not.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Protocol

from .animations import AnimationSet, assemble_animations
from .config import LoaderConfig
from .decks import resolve_decks
from .diagnostics import DiagnosticKind, LoadReport
from .entities import EntityRegistrar
from .exceptions import ContentLoadError
from .localization import LocalizationSession, load_localization_table
from .metadata import MetadataTable
from .package import PluginPackage, find_child, find_path
from .registry import ContentRegistry, DeckEntry, SpriteEntry
from .sprites import index_sprites
from plugins import PLUGIN_MANAGER, PluginManager

logger = logging.getLogger(__name__)

CHARACTERS_DIRECTORY = "Characters"
PACKAGE_LOGGER_PREFIX = "easyloader"

INJECTED_NAMES = (
    "sprites",
    "decks",
    "animations",
    "localize",
    "metadata",
    "register_cards",
    "register_artifacts",
    "register_character",
    "load_report",
)


class PluginLoader(Protocol):
    """The host mechanism that runs a package's code."""

    def can_load(self, package: PluginPackage) -> bool: ...

    def load(self, package: PluginPackage) -> Any: ...


@dataclass
class ResolvedContent:
    """Everything resolved from a package's data before its code runs."""

    sprites: Dict[str, SpriteEntry]
    localization: LocalizationSession
    decks: Dict[str, DeckEntry]
    animations: AnimationSet
    metadata: MetadataTable = field(default_factory=MetadataTable)

    def build_registrar(
        self,
        registry: ContentRegistry,
        report: LoadReport,
        config: LoaderConfig,
        manager: PluginManager = PLUGIN_MANAGER,
    ) -> EntityRegistrar:
        return EntityRegistrar(
            registry,
            self.sprites,
            self.decks,
            self.animations,
            self.localization.request,
            self.metadata,
            report,
            required_animations=config.required_animations,
            manager=manager,
        )

    def injectable_values(self, registrar: EntityRegistrar) -> Dict[str, Any]:
        return {
            "sprites": self.sprites,
            "decks": self.decks,
            "animations": self.animations,
            "localize": self.localization.request,
            "metadata": self.metadata,
            "register_cards": registrar.register_cards,
            "register_artifacts": registrar.register_artifacts,
            "register_character": registrar.register_character,
            "load_report": registrar.report,
        }


def resolve_package(
    root: Path,
    registry: ContentRegistry,
    config: Optional[LoaderConfig] = None,
    report: Optional[LoadReport] = None,
) -> ResolvedContent:
    """Index, parse and register the data half of the package at ``root``."""

    config = config or LoaderConfig()
    report = report if report is not None else LoadReport(package=root.name)
    logger.debug("Resolving content package at %s", root)

    sprites_root = find_child(root, config.sprites_directory)
    sprites = index_sprites(sprites_root, registry.register_sprite, report, extension=config.image_extension)

    table = load_localization_table(find_path(root, config.data_directory, config.localization_file), report)
    session = LocalizationSession(table)

    decks = resolve_decks(
        find_path(root, config.data_directory, config.decks_directory),
        sprites,
        session.request,
        registry,
        report,
        extensions=config.deck_extensions,
    )

    # Without a sprite root there are no frames; the indexer already warned.
    animations: AnimationSet = {}
    if sprites_root.is_dir():
        animations = assemble_animations(
            find_child(sprites_root, CHARACTERS_DIRECTORY),
            sprites,
            decks,
            registry,
            report,
            extension=config.image_extension,
            numeric_order=config.numeric_frame_order,
        )

    return ResolvedContent(sprites=sprites, localization=session, decks=decks, animations=animations)


@dataclass
class LoadedPackage:
    package: PluginPackage
    plugin: Any
    content: ResolvedContent
    registrar: EntityRegistrar
    report: LoadReport


class ContentPackageLoader:
    """Loads ``EasyLoader`` packages on top of an existing plugin loader."""

    def __init__(
        self,
        plugin_loader: PluginLoader,
        registry_getter: Callable[[PluginPackage], ContentRegistry],
        config: Optional[LoaderConfig] = None,
        *,
        manager: PluginManager = PLUGIN_MANAGER,
        logger_getter: Callable[[str], logging.Logger] = logging.getLogger,
    ) -> None:
        self.plugin_loader = plugin_loader
        self.registry_getter = registry_getter
        self.config = config or LoaderConfig()
        self.manager = manager
        self.logger_getter = logger_getter

    def can_load(self, package: PluginPackage) -> bool:
        if package.manifest.mod_type != self.config.mod_type:
            return False
        return self.plugin_loader.can_load(package)

    def package_logger(self, package: PluginPackage) -> logging.Logger:
        return self.logger_getter(f"{PACKAGE_LOGGER_PREFIX}.{package.unique_name}")

    def load(self, package: PluginPackage) -> LoadedPackage:
        package_logger = self.package_logger(package)
        report = LoadReport(package=package.unique_name, logger=package_logger)
        registry = self.registry_getter(package)
        content: Optional[ResolvedContent] = None
        registrar: Optional[EntityRegistrar] = None
        try:
            content = resolve_package(package.root, registry, self.config, report)
            if self.config.strict and not report.is_valid:
                raise ContentLoadError(
                    f"Package '{package.unique_name}' has errors: {report.format_errors()}"
                )
            registrar = content.build_registrar(registry, report, self.config, self.manager)
            with self.manager.exposure(content.injectable_values(registrar)):
                try:
                    plugin = self.plugin_loader.load(package)
                except Exception as exc:
                    report.error(
                        DiagnosticKind.HOST_FAILURE,
                        f"Loading package code failed: {exc}",
                        subject=package.unique_name,
                    )
                    raise
        finally:
            if registrar is not None:
                registrar.close()
            if content is not None:
                content.localization.finalize(report)
            package_logger.info(
                "Finished loading %s: %d warning(s), %d error(s)",
                package.title,
                len(report.warnings),
                len(report.errors),
            )
        return LoadedPackage(package=package, plugin=plugin, content=content, registrar=registrar, report=report)


PLUGIN_MANAGER.expose("resolve_package", resolve_package)
PLUGIN_MANAGER.expose("ContentPackageLoader", ContentPackageLoader)

__all__ = [
    "CHARACTERS_DIRECTORY",
    "ContentPackageLoader",
    "INJECTED_NAMES",
    "LoadedPackage",
    "PluginLoader",
    "ResolvedContent",
    "resolve_package",
]
