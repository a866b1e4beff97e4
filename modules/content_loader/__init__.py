"""Convention-based content package loading.

The public surface re-exported here is what hosts and package authors need:
the loader facade, the registry protocol with its in-memory implementation,
the metadata decorators and the diagnostics model.
"""
from __future__ import annotations

from plugins import PLUGIN_MANAGER

from .config import DEFAULT_CONFIG_FILE, LoaderConfig
from .diagnostics import Diagnostic, DiagnosticKind, LoadReport, Severity
from .entities import CHARACTER_VALIDATION_HOOK, EntityRegistrar
from .exceptions import (
    ConfigurationError,
    ContentLoadError,
    ContentLoaderError,
    InternalInconsistencyError,
    PackageManifestError,
    RecordParseError,
    RegistrationError,
    UnknownDeckError,
    ValidationHookError,
)
from .loader import INJECTED_NAMES, ContentPackageLoader, LoadedPackage, ResolvedContent, resolve_package
from .localization import LocalizationSession, LocalizationTable, load_localization_table
from .metadata import ArtifactMeta, ArtifactPool, CardMeta, MetadataTable, Rarity, Upgrade, artifact_meta, card_meta
from .package import PackageManifest, PluginPackage, find_child, load_manifest
from .registry import (
    Artifact,
    BuiltinSprite,
    Card,
    ContentRegistry,
    InMemoryContentRegistry,
)

PLUGIN_MANAGER.expose("content_loader", __name__)
PLUGIN_MANAGER.expose("LoaderConfig", LoaderConfig)
PLUGIN_MANAGER.expose("Card", Card)
PLUGIN_MANAGER.expose("Artifact", Artifact)

__all__ = [
    "Artifact",
    "ArtifactMeta",
    "ArtifactPool",
    "BuiltinSprite",
    "CHARACTER_VALIDATION_HOOK",
    "Card",
    "CardMeta",
    "ConfigurationError",
    "ContentLoadError",
    "ContentLoaderError",
    "ContentPackageLoader",
    "ContentRegistry",
    "DEFAULT_CONFIG_FILE",
    "Diagnostic",
    "DiagnosticKind",
    "EntityRegistrar",
    "INJECTED_NAMES",
    "InMemoryContentRegistry",
    "InternalInconsistencyError",
    "LoadReport",
    "LoadedPackage",
    "LoaderConfig",
    "LocalizationSession",
    "LocalizationTable",
    "MetadataTable",
    "PackageManifest",
    "PackageManifestError",
    "PluginPackage",
    "Rarity",
    "RecordParseError",
    "RegistrationError",
    "ResolvedContent",
    "Severity",
    "UnknownDeckError",
    "Upgrade",
    "ValidationHookError",
    "artifact_meta",
    "card_meta",
    "find_child",
    "load_localization_table",
    "load_manifest",
    "resolve_package",
]
