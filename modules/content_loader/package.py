"""Package manifests and directory conventions."""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

from .exceptions import PackageManifestError
from plugins import PLUGIN_MANAGER

MANIFEST_NAME = "manifest.json"


def find_child(parent: Path, name: str) -> Path:
    """Return the child of ``parent`` called ``name``, ignoring case.

    An exact match wins.  Otherwise the first case-insensitive match in sorted
    order is used.  When nothing matches, ``parent / name`` is returned so
    callers can report the conventional location.
    """

    exact = parent / name
    if exact.exists() or not parent.is_dir():
        return exact
    wanted = name.casefold()
    for candidate in sorted(parent.iterdir()):
        if candidate.name.casefold() == wanted:
            return candidate
    return exact


def find_path(parent: Path, *segments: str) -> Path:
    path = parent
    for segment in segments:
        path = find_child(path, segment)
    return path


@dataclass(frozen=True)
class PackageManifest:
    unique_name: str
    mod_type: str
    entry_point: str = "entry.py"
    version: str = "0.1.0"
    display_name: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PackageManifest":
        unique_name = str(data.get("uniqueName") or "").strip()
        if not unique_name:
            raise PackageManifestError("Manifest is missing 'uniqueName'.")
        mod_type = str(data.get("modType") or "").strip()
        if not mod_type:
            raise PackageManifestError(f"Manifest of '{unique_name}' is missing 'modType'.")
        entry_point = str(data.get("entryPoint") or "entry.py").strip()
        display_name = data.get("displayName")
        return cls(
            unique_name=unique_name,
            mod_type=mod_type,
            entry_point=entry_point,
            version=str(data.get("version") or "0.1.0"),
            display_name=str(display_name) if display_name else None,
        )


def load_manifest(root: Path) -> PackageManifest:
    """Read ``manifest.json`` from ``root``."""

    path = find_child(root, MANIFEST_NAME)
    if not path.is_file():
        raise PackageManifestError(f"No {MANIFEST_NAME} found in {root}.")
    try:
        data = json.loads(path.read_text(encoding="utf8"))
    except json.JSONDecodeError as exc:
        raise PackageManifestError(f"{path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise PackageManifestError(f"{path} must contain a JSON object.")
    return PackageManifest.from_mapping(data)


@dataclass(frozen=True)
class PluginPackage:
    """A package directory together with its manifest."""

    root: Path
    manifest: PackageManifest

    @classmethod
    def from_directory(cls, root: Path | str) -> "PluginPackage":
        resolved = Path(root).expanduser().resolve()
        return cls(root=resolved, manifest=load_manifest(resolved))

    @property
    def unique_name(self) -> str:
        return self.manifest.unique_name

    @property
    def title(self) -> str:
        return self.manifest.display_name or self.manifest.unique_name

    def entry_point_path(self) -> Path:
        return find_path(self.root, *Path(self.manifest.entry_point).parts)


PLUGIN_MANAGER.expose("PluginPackage", PluginPackage)
PLUGIN_MANAGER.expose("find_child", find_child)

__all__ = [
    "MANIFEST_NAME",
    "PackageManifest",
    "PluginPackage",
    "find_child",
    "find_path",
    "load_manifest",
]
