"""Sprite discovery for content packages.

Every image below the sprite root becomes one registry entry.  The key is the
path relative to the root with the extension stripped, lowercased and joined
with ``/`` so ``Sprites/Decks/Ember/BorderSprite.png`` turns into
``decks/ember/bordersprite`` on every platform.
"""
from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, Iterator, List, Mapping, Optional

from .diagnostics import DiagnosticKind, LoadReport
from .registry import SpriteEntry
from plugins import PLUGIN_MANAGER

DEFAULT_IMAGE_EXTENSION = ".png"

SpriteRegistrar = Callable[[str, Path], SpriteEntry]


def sprite_key(root: Path, path: Path) -> str:
    """Return the normalized lookup key of ``path`` below ``root``."""

    relative = path.relative_to(root).with_suffix("")
    return "/".join(relative.parts).lower()


def iter_files(root: Path) -> Iterator[Path]:
    """Yield all files below ``root`` in a stable order."""

    files: List[Path] = [path for path in root.rglob("*") if path.is_file()]
    yield from sorted(files, key=lambda path: path.relative_to(root).parts)


def index_sprites(
    root: Path,
    register: SpriteRegistrar,
    report: LoadReport,
    *,
    extension: str = DEFAULT_IMAGE_EXTENSION,
) -> Dict[str, SpriteEntry]:
    """Register every image below ``root`` and return them keyed by sprite key."""

    extension = extension.lower()
    if not root.is_dir():
        report.warn(
            DiagnosticKind.MISSING_OPTIONAL_INPUT,
            "Failed to find Sprites directory",
            subject=str(root),
        )
        return {}

    sprites: Dict[str, SpriteEntry] = {}
    origins: Dict[str, Path] = {}
    for path in iter_files(root):
        if path.suffix.lower() != extension:
            report.warn(
                DiagnosticKind.MALFORMED_RECORD,
                f"Found non {extension} file in Sprites directory",
                subject=str(path),
            )
            continue
        key = sprite_key(root, path)
        if key in sprites:
            report.warn(
                DiagnosticKind.MALFORMED_RECORD,
                f"Sprite key '{key}' is already taken by {origins[key]}; skipping",
                subject=str(path),
            )
            continue
        sprites[key] = register(key, path)
        origins[key] = path

    report.context["sprites"] = len(sprites)
    report.note("Successfully loaded %d sprites", len(sprites))
    return sprites


def lookup_sprite(sprites: Mapping[str, SpriteEntry], key: str) -> Optional[SpriteEntry]:
    """Return the sprite registered under ``key``, if any."""

    return sprites.get(key)


PLUGIN_MANAGER.expose("index_sprites", index_sprites)
PLUGIN_MANAGER.expose("lookup_sprite", lookup_sprite)

__all__ = ["DEFAULT_IMAGE_EXTENSION", "index_sprites", "iter_files", "lookup_sprite", "sprite_key"]
