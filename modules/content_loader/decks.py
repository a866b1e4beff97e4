"""Deck definition parsing and deck registration."""
from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple

from .diagnostics import DiagnosticKind, LoadReport
from .exceptions import RecordParseError
from .registry import (
    BuiltinSprite,
    Color,
    ContentRegistry,
    DeckConfiguration,
    DeckEntry,
    LocalizationProvider,
    RegistryDeckDefinition,
    Sprite,
    SpriteEntry,
)
from .sprites import lookup_sprite
from plugins import PLUGIN_MANAGER

ColorTuple = Tuple[float, float, float, float]
Localizer = Callable[[str], Optional[LocalizationProvider]]

DEFAULT_COLOR: ColorTuple = (1.0, 1.0, 1.0, 1.0)
DEFAULT_TITLE_COLOR: ColorTuple = (0.0, 0.0, 0.0, 1.0)
MISSING_CHANNEL = 1.0
DECK_EXTENSIONS = (".json", ".toml")


def pad_channels(values: Sequence[float]) -> ColorTuple:
    """Return exactly four channels; absent ones become ``1.0``, extras are dropped."""

    channels = [float(value) for value in list(values)[:4]]
    channels.extend([MISSING_CHANNEL] * (4 - len(channels)))
    return (channels[0], channels[1], channels[2], channels[3])


@dataclass(frozen=True)
class DeckDefinition:
    color: ColorTuple = DEFAULT_COLOR
    title_color: ColorTuple = DEFAULT_TITLE_COLOR

    def to_registry_definition(self) -> RegistryDeckDefinition:
        """Map onto the registry's colour type; every channel is already present."""

        return RegistryDeckDefinition(color=Color(*self.color), title_color=Color(*self.title_color))


def _normalise_field(name: str) -> str:
    return name.replace("_", "").replace("-", "").lower()


def _coerce_channels(value: Any, label: str) -> ColorTuple:
    if not isinstance(value, (list, tuple)):
        raise RecordParseError(f"'{label}' must be an array of numbers, got {type(value).__name__}.")
    for item in value:
        if isinstance(item, bool) or not isinstance(item, (int, float)):
            raise RecordParseError(f"'{label}' must only contain numbers, got {item!r}.")
    return pad_channels(value)


def deck_definition_from_mapping(data: Mapping[str, Any]) -> DeckDefinition:
    fields = {_normalise_field(str(key)): value for key, value in data.items()}
    color = DEFAULT_COLOR
    title_color = DEFAULT_TITLE_COLOR
    if "color" in fields:
        color = _coerce_channels(fields["color"], "color")
    if "titlecolor" in fields:
        title_color = _coerce_channels(fields["titlecolor"], "titleColor")
    return DeckDefinition(color=color, title_color=title_color)


def parse_deck_definition(text: str, extension: str) -> DeckDefinition:
    """Parse ``text`` as the format implied by ``extension``."""

    extension = extension.lower()
    try:
        if extension == ".json":
            data = json.loads(text) if text.strip() else {}
        elif extension == ".toml":
            data = tomllib.loads(text)
        else:
            raise RecordParseError(f"Unsupported deck format '{extension}'.")
    except (json.JSONDecodeError, tomllib.TOMLDecodeError) as exc:
        raise RecordParseError(str(exc)) from exc
    if not isinstance(data, dict):
        raise RecordParseError("Deck definition must be an object at the top level.")
    return deck_definition_from_mapping(data)


def load_deck_definition(path: Path) -> DeckDefinition:
    return parse_deck_definition(path.read_text(encoding="utf8"), path.suffix)


def _sprite_or_builtin(
    sprites: Mapping[str, SpriteEntry],
    key: str,
    fallback: BuiltinSprite,
    report: LoadReport,
    subject: str,
) -> Sprite:
    sprite = lookup_sprite(sprites, key)
    if sprite is None:
        report.warn(
            DiagnosticKind.UNRESOLVED_REFERENCE,
            f"No sprite '{key}'; using built-in {fallback.value}",
            subject=subject,
        )
        return fallback
    return sprite


def resolve_decks(
    directory: Path,
    sprites: Mapping[str, SpriteEntry],
    localize: Localizer,
    registry: ContentRegistry,
    report: LoadReport,
    *,
    extensions: Sequence[str] = DECK_EXTENSIONS,
) -> Dict[str, DeckEntry]:
    """Parse and register every deck file directly inside ``directory``."""

    if not directory.is_dir():
        report.warn(DiagnosticKind.MISSING_OPTIONAL_INPUT, "Failed to find Decks directory", subject=str(directory))
        return {}

    decks: Dict[str, DeckEntry] = {}
    for path in sorted(child for child in directory.iterdir() if child.is_file()):
        if path.suffix.lower() not in extensions:
            report.warn(
                DiagnosticKind.MALFORMED_RECORD,
                "Found a file that is not a deck definition in Decks directory",
                subject=str(path),
            )
            continue
        name = path.stem.lower()
        if name in decks:
            report.warn(
                DiagnosticKind.MALFORMED_RECORD,
                f"Deck '{name}' is already defined by another file; skipping",
                subject=str(path),
            )
            continue
        try:
            definition = load_deck_definition(path)
        except (RecordParseError, UnicodeDecodeError) as exc:
            report.error(DiagnosticKind.MALFORMED_RECORD, f"Could not parse deck '{name}': {exc}", subject=str(path))
            continue

        subject = f"deck {name}"
        config = DeckConfiguration(
            definition=definition.to_registry_definition(),
            border_sprite=_sprite_or_builtin(
                sprites, f"decks/{name}/bordersprite", BuiltinSprite.DECK_BORDER, report, subject
            ),
            default_card_art=_sprite_or_builtin(
                sprites, f"decks/{name}/defaultcardart", BuiltinSprite.CARD_ART, report, subject
            ),
            overborder_sprite=lookup_sprite(sprites, f"decks/{name}/overbordersprite"),
            name=localize(f"{name}/name"),
        )
        decks[name] = registry.register_deck(name, config)

    report.context["decks"] = len(decks)
    report.note("Successfully loaded %d decks", len(decks))
    return decks


PLUGIN_MANAGER.expose("resolve_decks", resolve_decks)
PLUGIN_MANAGER.expose("parse_deck_definition", parse_deck_definition)

__all__ = [
    "DECK_EXTENSIONS",
    "DEFAULT_COLOR",
    "DEFAULT_TITLE_COLOR",
    "DeckDefinition",
    "deck_definition_from_mapping",
    "load_deck_definition",
    "pad_channels",
    "parse_deck_definition",
    "resolve_decks",
]
