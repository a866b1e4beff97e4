"""Entry-point loading for content packages.

This is the code phase of a load.  A package names a Python file in its
manifest (``entryPoint``, ``entry.py`` by default).  The file is imported
under an isolated module name and its ``activate_plugin(context)`` callable
is invoked with a :class:`PluginContext`.  The context gives package code
access to the values the content loader exposed for this package::

    def activate_plugin(context):
        register_cards = context.require("register_cards")
        register_cards("ember", [Flare, Kindle])

Nothing is injected into the entry point's module globals; everything goes
through :meth:`PluginContext.require`.
"""

from __future__ import annotations

import importlib.util
import logging
import re
import sys
from dataclasses import dataclass, field
from types import ModuleType
from typing import Any, Callable, Dict, Iterator, Mapping, MutableMapping, Optional

from modules.content_loader.metadata import MetadataTable
from modules.content_loader.package import PluginPackage
from plugins import PLUGIN_MANAGER, PluginError, PluginManager

logger = logging.getLogger(__name__)

MODULE_PREFIX = "easyloader_packages"
ACTIVATE_ATTRIBUTE = "activate_plugin"


@dataclass(slots=True)
class PluginContext:
    """Context injected into package code during activation.

    Attributes
    ----------
    package:
        The package being loaded.
    values:
        Snapshot of the values exposed through the plugin manager when the
        entry point was activated.  This holds the resolved sprites, decks,
        animations, the localization request function and the registration
        operations.
    logger:
        Logger dedicated to this package.
    metadata:
        Arbitrary metadata supplied by the host.  This can be used to
        configure packages without relying on global state.
    """

    package: PluginPackage
    values: Mapping[str, Any]
    logger: logging.Logger
    metadata: MutableMapping[str, Any] = field(default_factory=dict)

    def require(self, name: str) -> Any:
        """Return an injected value by name.

        A ``KeyError`` is raised if nothing is exposed under ``name``.
        """

        if name in self.values:
            return self.values[name]
        raise KeyError(f"No exposed object named '{name}'.")

    def get(self, name: str, default: Any = None) -> Any:
        return self.values.get(name, default)


@dataclass(slots=True)
class PluginDescriptor:
    """Lightweight descriptor for an activated package entry point."""

    name: str
    module: ModuleType
    activate: Callable[[PluginContext], Any]
    result: Any = None
    metadata: Dict[str, Any] = field(default_factory=dict)


def module_name_for(package: PluginPackage) -> str:
    """Return the isolated module name used to import ``package``'s entry point."""

    slug = re.sub(r"\W", "_", package.unique_name.lower())
    if slug[:1].isdigit():
        slug = f"_{slug}"
    return f"{MODULE_PREFIX}.{slug}"


class EntryPointPluginLoader:
    """Imports package entry points and activates them."""

    def __init__(
        self,
        manager: PluginManager = PLUGIN_MANAGER,
        *,
        attr: str = ACTIVATE_ATTRIBUTE,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.manager = manager
        self.attr = attr
        self.metadata = dict(metadata or {})
        self._descriptors: Dict[str, PluginDescriptor] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def can_load(self, package: PluginPackage) -> bool:
        return package.entry_point_path().is_file()

    def load(self, package: PluginPackage) -> PluginDescriptor:
        """Import and activate the entry point of ``package``."""

        module = self._import(package)
        activate = getattr(module, self.attr, None)
        if not callable(activate):
            raise PluginError(
                f"Package '{package.unique_name}' must define an '{self.attr}(context)' callable."
            )

        table = self.manager.exposed.get("metadata")
        if isinstance(table, MetadataTable):
            found = table.scan(module)
            logger.debug("Scanned %s: %d type(s) with declared metadata", module.__name__, found)

        descriptor = PluginDescriptor(
            name=package.unique_name,
            module=module,
            activate=activate,
            metadata=dict(self.metadata),
        )
        context = PluginContext(
            package=package,
            values=dict(self.manager.exposed),
            logger=logging.getLogger(f"easyloader.{package.unique_name}"),
            metadata=descriptor.metadata,
        )
        descriptor.result = activate(context)
        self._descriptors[package.unique_name] = descriptor
        return descriptor

    def iter_plugins(self) -> Iterator[PluginDescriptor]:
        """Iterate over all activated package descriptors."""

        return iter(self._descriptors.values())

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _import(self, package: PluginPackage) -> ModuleType:
        path = package.entry_point_path()
        if not path.is_file():
            raise PluginError(f"Entry point {path} of '{package.unique_name}' does not exist.")
        name = module_name_for(package)
        spec = importlib.util.spec_from_file_location(name, path)
        if spec is None or spec.loader is None:
            raise PluginError(f"Cannot import entry point {path}.")
        module = importlib.util.module_from_spec(spec)
        sys.modules[name] = module
        try:
            spec.loader.exec_module(module)
        except BaseException:
            sys.modules.pop(name, None)
            raise
        return module


PLUGIN_MANAGER.expose("EntryPointPluginLoader", EntryPointPluginLoader)

__all__ = [
    "ACTIVATE_ATTRIBUTE",
    "EntryPointPluginLoader",
    "PluginContext",
    "PluginDescriptor",
    "module_name_for",
]
