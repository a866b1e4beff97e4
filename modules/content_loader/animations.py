"""Frame-sequence assembly for character animations.

Layout::

    Sprites/Characters/<deck>/<animation>/<frame>.png

Character folders are matched to resolved decks by name; every animation
folder below a matched character becomes one registered frame sequence.
"""
from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from .diagnostics import DiagnosticKind, LoadReport
from .exceptions import InternalInconsistencyError
from .registry import AnimationConfiguration, AnimationEntry, ContentRegistry, DeckEntry, SpriteEntry
from .sprites import DEFAULT_IMAGE_EXTENSION, lookup_sprite
from plugins import PLUGIN_MANAGER

AnimationSet = Dict[str, Dict[str, AnimationEntry]]

_FRAME_INDEX = re.compile(r"[0-9]+")


def parse_frame_index(stem: str) -> int:
    """Return ``stem`` as a non-negative frame index or raise :class:`ValueError`."""

    if not _FRAME_INDEX.fullmatch(stem):
        raise ValueError(f"'{stem}' is not a frame number")
    return int(stem)


def order_frames(stems: List[str], report: LoadReport, subject: str, *, numeric: bool = False) -> List[str]:
    """Return ``stems`` in playback order, reporting names that are not frame numbers.

    The order is lexical.  With ``numeric`` set, numbered frames come first in
    numeric order and the remaining names follow lexically.
    """

    numbered: List[tuple] = []
    named: List[str] = []
    for stem in sorted(stems):
        try:
            numbered.append((parse_frame_index(stem), stem))
        except ValueError:
            report.warn(
                DiagnosticKind.MALFORMED_RECORD,
                f"Frame '{stem}' is not a number; ordering it by name",
                subject=subject,
            )
            named.append(stem)
    if not numeric:
        return sorted(stems)
    return [stem for _, stem in sorted(numbered)] + named


def _frame_stems(folder: Path, extension: str) -> List[str]:
    stems = (
        path.stem.lower()
        for path in sorted(folder.iterdir())
        if path.is_file() and path.suffix.lower() == extension
    )
    return list(dict.fromkeys(stems))


def assemble_animations(
    root: Path,
    sprites: Mapping[str, SpriteEntry],
    decks: Mapping[str, DeckEntry],
    registry: ContentRegistry,
    report: LoadReport,
    *,
    extension: str = DEFAULT_IMAGE_EXTENSION,
    numeric_order: bool = False,
) -> AnimationSet:
    """Register one animation per ``<character>/<animation>`` folder below ``root``."""

    extension = extension.lower()
    if not root.is_dir():
        report.warn(DiagnosticKind.MISSING_OPTIONAL_INPUT, "Failed to find Characters directory", subject=str(root))
        return {}

    animations: AnimationSet = {}
    characters: Dict[str, Path] = {}
    for character_dir in sorted(child for child in root.iterdir() if child.is_dir()):
        character = character_dir.name.lower()
        if character in characters:
            report.warn(
                DiagnosticKind.MALFORMED_RECORD,
                f"Character folder clashes with {characters[character]}; skipping it",
                subject=str(character_dir),
            )
            continue
        characters[character] = character_dir
        deck: Optional[DeckEntry] = decks.get(character)
        if deck is None:
            report.warn(
                DiagnosticKind.UNRESOLVED_REFERENCE,
                f"No deck named '{character}' exists; skipping its animations",
                subject=str(character_dir),
            )
            continue

        folders: Dict[str, Path] = {}
        for animation_dir in sorted(child for child in character_dir.iterdir() if child.is_dir()):
            animation = animation_dir.name.lower()
            subject = f"{character}/{animation}"
            if animation in folders:
                report.warn(
                    DiagnosticKind.MALFORMED_RECORD,
                    f"Animation folder clashes with {folders[animation]}; skipping it",
                    subject=str(animation_dir),
                )
                continue
            folders[animation] = animation_dir
            stems = _frame_stems(animation_dir, extension)
            if not stems:
                report.warn(
                    DiagnosticKind.MALFORMED_RECORD,
                    "Animation folder has no frames; not registering it",
                    subject=subject,
                )
                continue
            frames = []
            for stem in order_frames(stems, report, subject, numeric=numeric_order):
                key = f"characters/{character}/{animation}/{stem}"
                sprite = lookup_sprite(sprites, key)
                if sprite is None:
                    raise InternalInconsistencyError(
                        f"Frame {animation_dir / stem} was enumerated but sprite '{key}' is not indexed."
                    )
                frames.append(sprite)
            config = AnimationConfiguration(deck=deck, loop_tag=animation, frames=tuple(frames))
            entry = registry.register_character_animation(subject, config)
            animations.setdefault(character, {})[animation] = entry

    total = sum(len(entries) for entries in animations.values())
    report.context["animations"] = total
    report.note("Successfully loaded %d animations for %d characters", total, len(animations))
    return animations


PLUGIN_MANAGER.expose("assemble_animations", assemble_animations)

__all__ = ["AnimationSet", "assemble_animations", "order_frames", "parse_frame_index"]
