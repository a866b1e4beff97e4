"""Host content registry interface and an in-memory implementation.

The loader never stores or renders content itself.  Everything it resolves is
handed to a :class:`ContentRegistry` which returns opaque entry objects.  The
:class:`InMemoryContentRegistry` is used by the CLI and the test-suite and
doubles as the reference for what a host registry has to provide.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Protocol, Tuple, Type, Union

from .exceptions import RegistrationError
from plugins import PLUGIN_MANAGER

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from .metadata import ArtifactMeta, CardMeta

LocalizationProvider = Callable[[str], Optional[str]]


class BuiltinSprite(str, Enum):
    """Fallback sprites every host ships."""

    DECK_BORDER = "cardShared_border_colorless"
    CARD_ART = "cards_colorless"
    ARTIFACT_UNKNOWN = "artifacts_Unknown"
    CHARACTER_PANEL = "panels_enemy_nodeck"


@dataclass(frozen=True)
class Color:
    r: float
    g: float
    b: float
    a: float

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.r, self.g, self.b, self.a)


@dataclass(frozen=True)
class RegistryDeckDefinition:
    color: Color
    title_color: Color


class Card:
    """Capability base for card types registered through the loader."""


class Artifact:
    """Capability base for artifact types registered through the loader."""


@dataclass(frozen=True)
class SpriteEntry:
    unique_name: str
    key: str
    path: Path


Sprite = Union[SpriteEntry, BuiltinSprite]


@dataclass(frozen=True)
class DeckConfiguration:
    definition: RegistryDeckDefinition
    border_sprite: Sprite
    default_card_art: Sprite
    overborder_sprite: Optional[Sprite] = None
    name: Optional[LocalizationProvider] = None


@dataclass(frozen=True)
class DeckEntry:
    unique_name: str
    name: str
    configuration: DeckConfiguration


@dataclass(frozen=True)
class AnimationConfiguration:
    deck: DeckEntry
    loop_tag: str
    frames: Tuple[Sprite, ...]


@dataclass(frozen=True)
class AnimationEntry:
    unique_name: str
    configuration: AnimationConfiguration

    @property
    def frames(self) -> Tuple[Sprite, ...]:
        return self.configuration.frames


@dataclass(frozen=True)
class CardConfiguration:
    card_type: Type[Any]
    meta: "CardMeta"
    art: Optional[Sprite] = None
    name: Optional[LocalizationProvider] = None


@dataclass(frozen=True)
class CardEntry:
    unique_name: str
    configuration: CardConfiguration


@dataclass(frozen=True)
class ArtifactConfiguration:
    artifact_type: Type[Any]
    meta: "ArtifactMeta"
    sprite: Sprite
    name: Optional[LocalizationProvider] = None
    description: Optional[LocalizationProvider] = None


@dataclass(frozen=True)
class ArtifactEntry:
    unique_name: str
    configuration: ArtifactConfiguration


@dataclass(frozen=True)
class CharacterConfiguration:
    deck: DeckEntry
    border_sprite: Sprite
    starter_cards: Tuple[Any, ...] = ()
    starter_artifacts: Tuple[Any, ...] = ()
    start_locked: bool = False
    description: Optional[LocalizationProvider] = None
    neutral_animation: Optional[AnimationEntry] = None
    mini_animation: Optional[AnimationEntry] = None


@dataclass(frozen=True)
class CharacterEntry:
    unique_name: str
    configuration: CharacterConfiguration


class ContentRegistry(Protocol):
    """Registration capabilities the host exposes to one package."""

    def register_sprite(self, key: str, path: Path) -> SpriteEntry: ...

    def register_deck(self, name: str, config: DeckConfiguration) -> DeckEntry: ...

    def register_card(self, name: str, config: CardConfiguration) -> CardEntry: ...

    def register_artifact(self, name: str, config: ArtifactConfiguration) -> ArtifactEntry: ...

    def register_character(self, name: str, config: CharacterConfiguration) -> CharacterEntry: ...

    def register_character_animation(self, name: str, config: AnimationConfiguration) -> AnimationEntry: ...


class InMemoryContentRegistry:
    """Registry tracking registrations in plain dictionaries.

    Unique names are ``<namespace>::<name>``.  Registering the same name twice
    within one category is rejected, mirroring what real hosts do.
    """

    def __init__(self, namespace: str = "local") -> None:
        self.namespace = namespace
        self.sprites: Dict[str, SpriteEntry] = {}
        self.decks: Dict[str, DeckEntry] = {}
        self.cards: Dict[str, CardEntry] = {}
        self.artifacts: Dict[str, ArtifactEntry] = {}
        self.characters: Dict[str, CharacterEntry] = {}
        self.animations: Dict[str, AnimationEntry] = {}

    def _claim(self, bucket: Dict[str, Any], category: str, name: str) -> str:
        if name in bucket:
            raise RegistrationError(f"{category} '{name}' is already registered in '{self.namespace}'.")
        return f"{self.namespace}::{name}"

    def register_sprite(self, key: str, path: Path) -> SpriteEntry:
        entry = SpriteEntry(self._claim(self.sprites, "Sprite", key), key, Path(path))
        self.sprites[key] = entry
        return entry

    def register_deck(self, name: str, config: DeckConfiguration) -> DeckEntry:
        entry = DeckEntry(self._claim(self.decks, "Deck", name), name, config)
        self.decks[name] = entry
        return entry

    def register_card(self, name: str, config: CardConfiguration) -> CardEntry:
        entry = CardEntry(self._claim(self.cards, "Card", name), config)
        self.cards[name] = entry
        return entry

    def register_artifact(self, name: str, config: ArtifactConfiguration) -> ArtifactEntry:
        entry = ArtifactEntry(self._claim(self.artifacts, "Artifact", name), config)
        self.artifacts[name] = entry
        return entry

    def register_character(self, name: str, config: CharacterConfiguration) -> CharacterEntry:
        entry = CharacterEntry(self._claim(self.characters, "Character", name), config)
        self.characters[name] = entry
        return entry

    def register_character_animation(self, name: str, config: AnimationConfiguration) -> AnimationEntry:
        entry = AnimationEntry(self._claim(self.animations, "Animation", name), config)
        self.animations[name] = entry
        return entry

    def counts(self) -> Dict[str, int]:
        return {
            "sprites": len(self.sprites),
            "decks": len(self.decks),
            "cards": len(self.cards),
            "artifacts": len(self.artifacts),
            "characters": len(self.characters),
            "animations": len(self.animations),
        }


PLUGIN_MANAGER.expose("InMemoryContentRegistry", InMemoryContentRegistry)
PLUGIN_MANAGER.expose("BuiltinSprite", BuiltinSprite)

__all__ = [
    "AnimationConfiguration",
    "AnimationEntry",
    "Artifact",
    "ArtifactConfiguration",
    "ArtifactEntry",
    "BuiltinSprite",
    "Card",
    "CardConfiguration",
    "CardEntry",
    "CharacterConfiguration",
    "CharacterEntry",
    "Color",
    "ContentRegistry",
    "DeckConfiguration",
    "DeckEntry",
    "InMemoryContentRegistry",
    "LocalizationProvider",
    "RegistryDeckDefinition",
    "Sprite",
    "SpriteEntry",
]
