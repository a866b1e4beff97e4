"""Registration of cards, artifacts and characters supplied by package code.

The registrar is handed to package code as three bound methods
(``register_cards``, ``register_artifacts``, ``register_character``).  It
resolves every naming convention against the mappings produced earlier in the
same load:

* card art         ``cards/<type name>``
* artifact art     ``artifacts/<type name>``
* character panel  ``characters/<deck>/panel``

Each type is registered at most once per load.  Asking again returns the
handle created the first time.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Type

from .animations import AnimationSet
from .diagnostics import DiagnosticKind, LoadReport
from .exceptions import ContentLoaderError, UnknownDeckError, ValidationHookError
from .metadata import ArtifactMeta, CardMeta, MetadataTable
from .registry import (
    Artifact,
    ArtifactConfiguration,
    ArtifactEntry,
    BuiltinSprite,
    Card,
    CardConfiguration,
    CardEntry,
    CharacterConfiguration,
    CharacterEntry,
    ContentRegistry,
    DeckEntry,
    LocalizationProvider,
    Sprite,
    SpriteEntry,
)
from .sprites import lookup_sprite
from plugins import PLUGIN_MANAGER, PluginManager

Localizer = Callable[[str], Optional[LocalizationProvider]]

CHARACTER_VALIDATION_HOOK = "content_loader_character_validate"
DEFAULT_REQUIRED_ANIMATIONS: Tuple[str, ...] = ("neutral", "mini")


def type_key(cls: type) -> str:
    return cls.__name__.lower()


class EntityRegistrar:
    """Turns package-supplied types into registered content."""

    def __init__(
        self,
        registry: ContentRegistry,
        sprites: Mapping[str, SpriteEntry],
        decks: Mapping[str, DeckEntry],
        animations: AnimationSet,
        localize: Localizer,
        metadata: MetadataTable,
        report: LoadReport,
        *,
        required_animations: Sequence[str] = DEFAULT_REQUIRED_ANIMATIONS,
        manager: PluginManager = PLUGIN_MANAGER,
    ) -> None:
        self.registry = registry
        self.sprites = sprites
        self.decks = decks
        self.animations = animations
        self.localize = localize
        self.metadata = metadata
        self.report = report
        self.required_animations = tuple(required_animations)
        self.manager = manager
        self._cards: Dict[type, CardEntry] = {}
        self._artifacts: Dict[type, ArtifactEntry] = {}
        self._characters: Dict[str, CharacterEntry] = {}
        self._closed = False

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _ensure_open(self) -> None:
        if self._closed:
            raise ContentLoaderError("The content load has finished; registration is closed.")

    def _deck(self, deck_name: str) -> DeckEntry:
        deck = self.decks.get(deck_name.lower())
        if deck is None:
            known = ", ".join(sorted(self.decks)) or "none"
            raise UnknownDeckError(f"Deck '{deck_name}' was not resolved (known decks: {known}).")
        return deck

    def _repeat(self, category: str, cls: type) -> None:
        self.report.warn(
            DiagnosticKind.MALFORMED_RECORD,
            f"{category} type {cls.__qualname__} was already registered; reusing its entry",
            subject=f"{cls.__module__}.{cls.__qualname__}",
        )

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def cards(self) -> Mapping[type, CardEntry]:
        return dict(self._cards)

    @property
    def artifacts(self) -> Mapping[type, ArtifactEntry]:
        return dict(self._artifacts)

    @property
    def characters(self) -> Mapping[str, CharacterEntry]:
        return dict(self._characters)

    def register_cards(self, deck_name: str, card_types: Sequence[Type[Any]]) -> List[CardEntry]:
        """Register ``card_types`` for ``deck_name`` and return handles in input order."""

        self._ensure_open()
        deck = self._deck(deck_name)
        entries: List[CardEntry] = []
        for cls in card_types:
            existing = self._cards.get(cls)
            if existing is not None:
                self._repeat("Card", cls)
                entries.append(existing)
                continue
            meta = replace(self.metadata.card_metadata(cls) or CardMeta(), deck=deck.name)
            path = f"cards/{type_key(cls)}"
            art = lookup_sprite(self.sprites, path)
            if art is None:
                self.report.warn(
                    DiagnosticKind.UNRESOLVED_REFERENCE,
                    f"No sprite '{path}'; the card will use its deck's default art",
                    subject=cls.__qualname__,
                )
            config = CardConfiguration(card_type=cls, meta=meta, art=art, name=self.localize(path))
            entry = self.registry.register_card(cls.__name__, config)
            self._cards[cls] = entry
            entries.append(entry)
        self.report.context["cards"] = len(self._cards)
        return entries

    def register_artifacts(self, deck_name: str, artifact_types: Sequence[Type[Any]]) -> List[ArtifactEntry]:
        """Register ``artifact_types`` for ``deck_name`` and return handles in input order."""

        self._ensure_open()
        deck = self._deck(deck_name)
        entries: List[ArtifactEntry] = []
        for cls in artifact_types:
            existing = self._artifacts.get(cls)
            if existing is not None:
                self._repeat("Artifact", cls)
                entries.append(existing)
                continue
            meta = self.metadata.artifact_metadata(cls) or ArtifactMeta()
            if meta.owner is None:
                meta = replace(meta, owner=deck.name)
            path = f"artifacts/{type_key(cls)}"
            sprite: Sprite
            found = lookup_sprite(self.sprites, path)
            if found is None:
                self.report.warn(
                    DiagnosticKind.UNRESOLVED_REFERENCE,
                    f"No sprite '{path}'; using built-in {BuiltinSprite.ARTIFACT_UNKNOWN.value}",
                    subject=cls.__qualname__,
                )
                sprite = BuiltinSprite.ARTIFACT_UNKNOWN
            else:
                sprite = found
            config = ArtifactConfiguration(
                artifact_type=cls,
                meta=meta,
                sprite=sprite,
                name=self.localize(f"{path}_name"),
                description=self.localize(f"{path}_desc"),
            )
            entry = self.registry.register_artifact(cls.__name__, config)
            self._artifacts[cls] = entry
            entries.append(entry)
        self.report.context["artifacts"] = len(self._artifacts)
        return entries

    def _instantiate(self, types: Sequence[Type[Any]], capability: type, deck_name: str) -> Tuple[Any, ...]:
        instances = []
        for cls in types:
            try:
                instance = cls()
            except Exception as exc:
                self.report.warn(
                    DiagnosticKind.MALFORMED_RECORD,
                    f"Could not construct starter {getattr(cls, '__qualname__', cls)!s}: {exc}",
                    subject=f"character {deck_name}",
                )
                continue
            if not isinstance(instance, capability):
                self.report.warn(
                    DiagnosticKind.MALFORMED_RECORD,
                    f"Starter {type(instance).__qualname__} is not a {capability.__name__}; discarding it",
                    subject=f"character {deck_name}",
                )
                continue
            instances.append(instance)
        return tuple(instances)

    def register_character(
        self,
        deck_name: str,
        starter_card_types: Sequence[Type[Any]] = (),
        starter_artifact_types: Sequence[Type[Any]] = (),
        start_locked: bool = False,
    ) -> CharacterEntry:
        """Register the playable character built around ``deck_name``.

        Starter types are instantiated with no arguments.  Starters that fail
        to construct, or that are not cards/artifacts respectively, are dropped
        with a warning.  Missing required animations are reported as errors
        after registration; the character is returned either way.
        """

        self._ensure_open()
        deck = self._deck(deck_name)
        existing = self._characters.get(deck.name)
        if existing is not None:
            self.report.warn(
                DiagnosticKind.MALFORMED_RECORD,
                "Character was already registered; reusing its entry",
                subject=f"character {deck.name}",
            )
            return existing

        panel_key = f"characters/{deck.name}/panel"
        panel: Sprite
        found = lookup_sprite(self.sprites, panel_key)
        if found is None:
            self.report.warn(
                DiagnosticKind.UNRESOLVED_REFERENCE,
                f"No sprite '{panel_key}'; using built-in {BuiltinSprite.CHARACTER_PANEL.value}",
                subject=f"character {deck.name}",
            )
            panel = BuiltinSprite.CHARACTER_PANEL
        else:
            panel = found

        deck_animations = self.animations.get(deck.name, {})
        config = CharacterConfiguration(
            deck=deck,
            border_sprite=panel,
            starter_cards=self._instantiate(starter_card_types, Card, deck.name),
            starter_artifacts=self._instantiate(starter_artifact_types, Artifact, deck.name),
            start_locked=start_locked,
            description=self.localize(f"{deck.name}/desc"),
            neutral_animation=deck_animations.get("neutral"),
            mini_animation=deck_animations.get("mini"),
        )
        entry = self.registry.register_character(deck.name, config)
        self._characters[deck.name] = entry
        self.report.context["characters"] = len(self._characters)
        self.validate_character(entry)
        return entry

    def validate_character(self, entry: CharacterEntry) -> List[str]:
        """Report required animations missing for ``entry`` and run validation hooks.

        A deck without any animation set gets a deck-level error in addition
        to one error per required animation.
        """

        deck_name = entry.configuration.deck.name
        subject = f"character {deck_name}"
        deck_animations = self.animations.get(deck_name) or {}
        if not deck_animations:
            self.report.error(
                DiagnosticKind.MISSING_REQUIRED_REFERENCE,
                "Deck has no animations; expected " + ", ".join(self.required_animations),
                subject=subject,
            )
        missing: List[str] = []
        for name in self.required_animations:
            if name not in deck_animations:
                missing.append(name)
                self.report.error(
                    DiagnosticKind.MISSING_REQUIRED_REFERENCE,
                    f"Missing required animation '{name}'",
                    subject=subject,
                )
        responses = self.manager.broadcast(
            CHARACTER_VALIDATION_HOOK,
            entry=entry,
            report=self.report,
            animations=deck_animations,
        )
        for plugin_name, result in responses.items():
            self._ingest_validation_response(plugin_name, result, subject)
        return missing

    def _hook_error(self, plugin_name: str, message: str, subject: str) -> None:
        self.report.error(DiagnosticKind.MISSING_REQUIRED_REFERENCE, f"{plugin_name}: {message}", subject=subject)

    def _ingest_validation_response(self, plugin_name: str, result: Any, subject: str) -> None:
        if result is None:
            return
        if isinstance(result, LoadReport):
            self.report.merge(result)
            return
        if isinstance(result, str):
            self._hook_error(plugin_name, result, subject)
            return
        if isinstance(result, Mapping):
            errors = result.get("errors")
            if errors:
                if isinstance(errors, str):
                    errors = [errors]
                for message in errors:
                    self._hook_error(plugin_name, str(message), subject)
            context_payload = {key: value for key, value in result.items() if key != "errors"}
            if context_payload:
                self.report.context.setdefault(plugin_name, {}).update(context_payload)
            return
        if isinstance(result, Iterable) and not isinstance(result, bytes):
            for item in result:
                if item is None:
                    continue
                if isinstance(item, LoadReport):
                    self.report.merge(item)
                elif isinstance(item, str):
                    self._hook_error(plugin_name, item, subject)
                else:
                    raise ValidationHookError(
                        f"Plugin '{plugin_name}' returned unsupported validation entry: {item!r}"
                    )
            return
        raise ValidationHookError(f"Plugin '{plugin_name}' returned unsupported validation response: {result!r}")

    def close(self) -> None:
        """Reject any further registration for this load."""

        self._closed = True


PLUGIN_MANAGER.expose("EntityRegistrar", EntityRegistrar)
PLUGIN_MANAGER.expose("CHARACTER_VALIDATION_HOOK", CHARACTER_VALIDATION_HOOK)

__all__ = [
    "CHARACTER_VALIDATION_HOOK",
    "DEFAULT_REQUIRED_ANIMATIONS",
    "EntityRegistrar",
    "type_key",
]
