"""Global plugin infrastructure for the easyloader repository.

This module exposes a single :class:`PluginManager` instance that can be used
by any part of the code base to offer structured extension points.  The
manager keeps named values in one place so package code, loaders and plugins
can look them up without importing each other.

Two kinds of exposure exist side by side:

* repository modules call :meth:`PluginManager.expose` at import time so their
  public API is discoverable by name;
* the content loader exposes the values it resolved for one package through
  :meth:`PluginManager.exposure`, which restores the previous state once the
  package code has finished running.
"""
from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from importlib import import_module
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional


_MISSING = object()


class PluginError(RuntimeError):
    """Raised whenever a plugin cannot be registered or executed."""


@dataclass
class PluginRecord:
    """Simple data container describing a registered plugin."""

    name: str
    module: str
    obj: Any
    exposed: MappingProxyType


class PluginManager:
    """Co-ordinates plugin registration and named value exposure.

    The manager keeps a registry of plugin objects and a dictionary of exposed
    values.  The dictionary is handed to plugins during registration and to
    package code while a content package is being loaded.
    """

    def __init__(self) -> None:
        self._plugins: Dict[str, PluginRecord] = {}
        self._exposed: Dict[str, Any] = {}

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    @property
    def exposed(self) -> MappingProxyType:
        """Immutable view of the currently exposed objects."""

        return MappingProxyType(self._exposed)

    @property
    def plugins(self) -> MappingProxyType:
        """Immutable view of the registered plugins."""

        return MappingProxyType(self._plugins)

    def expose(self, name: str, obj: Any) -> None:
        """Expose an object under ``name``, replacing any previous entry."""

        if not name:
            raise PluginError("Exposed names must be non-empty strings.")
        self._exposed[name] = obj

    def withdraw(self, name: str) -> Any:
        """Remove ``name`` from the exposed values and return its object."""

        try:
            return self._exposed.pop(name)
        except KeyError as exc:
            raise PluginError(f"Nothing is exposed under '{name}'.") from exc

    @contextmanager
    def exposure(self, values: Mapping[str, Any]) -> Iterator[MappingProxyType]:
        """Expose ``values`` for the duration of a ``with`` block.

        Entries that shadowed an earlier value are restored on exit, entries
        that were new are withdrawn.  Cleanup runs whether the block succeeds
        or raises.
        """

        previous: Dict[str, Any] = {}
        for name, obj in values.items():
            previous[name] = self._exposed.get(name, _MISSING)
            self.expose(name, obj)
        try:
            yield self.exposed
        finally:
            for name, old in previous.items():
                if old is _MISSING:
                    self._exposed.pop(name, None)
                else:
                    self._exposed[name] = old

    def expose_module(self, module_name: str, alias: Optional[str] = None) -> None:
        """Expose all public attributes of ``module_name`` under ``alias``.

        ``alias`` defaults to the module name.  Private attributes (prefixed
        with an underscore) are ignored.
        """

        module = import_module(module_name)
        export_name = alias or module_name
        export: Dict[str, Any] = {
            key: getattr(module, key)
            for key in dir(module)
            if not key.startswith("_")
        }
        self.expose(export_name, MappingProxyType(export))

    def register_plugin(self, module_name: str, attr: str = "setup_plugin") -> PluginRecord:
        """Import ``module_name`` and run its setup function.

        The callable is expected to accept two positional arguments: the
        :class:`PluginManager` instance and a mapping of exposed objects.
        """

        if module_name in self._plugins:
            raise PluginError(f"Plugin '{module_name}' is already registered.")

        module = import_module(module_name)
        try:
            factory = getattr(module, attr)
        except AttributeError as exc:
            raise PluginError(
                f"Plugin '{module_name}' does not provide a '{attr}' callable."
            ) from exc

        if not callable(factory):
            raise PluginError(
                f"Plugin '{module_name}.{attr}' must be callable, got {type(factory)!r}."
            )

        instance = factory(self, self.exposed)
        record = PluginRecord(
            name=getattr(instance, "name", module_name),
            module=module_name,
            obj=instance,
            exposed=self.exposed,
        )
        self._plugins[module_name] = record
        return record

    def unregister_plugin(self, module_name: str) -> Optional[PluginRecord]:
        """Forget the plugin registered from ``module_name``."""

        return self._plugins.pop(module_name, None)

    def broadcast(self, hook: str, *args: Any, **kwargs: Any) -> Dict[str, Any]:
        """Invoke ``hook`` on all registered plugins and collect responses."""

        responses: Dict[str, Any] = {}
        for name, record in self._plugins.items():
            target = getattr(record.obj, hook, None)
            if target is None:
                continue
            if not callable(target):
                raise PluginError(
                    f"Hook '{hook}' on plugin '{name}' is not callable (got {type(target)!r})."
                )
            responses[name] = target(*args, **kwargs)
        return responses

    def ensure(self, required: Iterable[str]) -> None:
        """Validate that all ``required`` plugins have been registered."""

        missing = [name for name in required if name not in self._plugins]
        if missing:
            raise PluginError(
                "Missing required plugin(s): " + ", ".join(sorted(missing))
            )


# Expose the global plugin manager instance immediately for general use.
PLUGIN_MANAGER = PluginManager()

# Make sure plugin authors can introspect the plugin infrastructure itself.
PLUGIN_MANAGER.expose_module("plugins")

__all__ = ["PLUGIN_MANAGER", "PluginManager", "PluginError", "PluginRecord"]
