from __future__ import annotations

import pytest

from modules.content_loader import (
    BuiltinSprite,
    CardMeta,
    ContentLoaderError,
    DiagnosticKind,
    EntityRegistrar,
    MetadataTable,
    Rarity,
    UnknownDeckError,
    ValidationHookError,
)
from modules.content_loader.animations import assemble_animations
from modules.content_loader.localization import LocalizationSession, load_localization_table
from modules.content_loader.metadata import ArtifactMeta, ArtifactPool
from modules.content_loader.registry import SpriteEntry
from modules.content_loader.sprites import index_sprites
from tests.stubs import Charm, Crown, Exploding, Inferno, NotACard, Strike, make_deck


@pytest.fixture()
def resolved(builder, registry, report):
    builder.sprite("Cards", "Strike")
    builder.sprite("Artifacts", "Charm")
    builder.sprite("Characters", "Ember", "Panel")
    builder.frames("Ember", "Neutral", ["0", "1"])
    builder.localization(
        [
            {"key": "cards/strike", "en": "Strike"},
            {"key": "artifacts/charm_name", "en": "Charm"},
            {"key": "artifacts/charm_desc", "en": "Lucky."},
            {"key": "ember/desc", "en": "Burns."},
        ]
    )
    decks = {"ember": make_deck(registry, "ember"), "frost": make_deck(registry, "frost")}
    sprites = index_sprites(builder.sprites_root, registry.register_sprite, report)
    session = LocalizationSession(load_localization_table(builder.localization_path, report))
    animations = assemble_animations(builder.sprites_root / "Characters", sprites, decks, registry, report)
    return sprites, decks, animations, session


@pytest.fixture()
def registrar(resolved, registry, report, isolated_manager):
    sprites, decks, animations, session = resolved
    return EntityRegistrar(
        registry,
        sprites,
        decks,
        animations,
        session.request,
        MetadataTable(),
        report,
        manager=isolated_manager,
    )


def test_register_cards_applies_conventions_in_input_order(registrar, registry, report):
    entries = registrar.register_cards("ember", [Strike, Inferno])

    assert [entry.configuration.card_type for entry in entries] == [Strike, Inferno]
    strike, inferno = (entry.configuration for entry in entries)
    assert strike.meta == CardMeta(deck="ember")
    assert isinstance(strike.art, SpriteEntry)
    assert strike.name("en") == "Strike"
    assert inferno.meta.rarity is Rarity.RARE
    assert inferno.meta.deck == "ember"
    assert inferno.art is None
    assert inferno.name is None
    missing_art = report.of_kind(DiagnosticKind.UNRESOLVED_REFERENCE)
    assert [entry.subject for entry in missing_art] == ["Inferno"]
    assert set(registry.cards) == {"Strike", "Inferno"}


def test_repeat_registration_returns_existing_entry(registrar, registry, report):
    first = registrar.register_cards("ember", [Strike])
    second = registrar.register_cards("ember", [Strike])

    assert second[0] is first[0]
    assert len(registry.cards) == 1
    assert any("already registered" in entry.message for entry in report.warnings)


def test_register_artifacts_falls_back_to_unknown_sprite(registrar, report):
    charm, crown = registrar.register_artifacts("ember", [Charm, Crown])

    assert isinstance(charm.configuration.sprite, SpriteEntry)
    assert charm.configuration.name("en") == "Charm"
    assert charm.configuration.description("en") == "Lucky."
    assert charm.configuration.meta == ArtifactMeta(owner="ember")
    assert crown.configuration.sprite is BuiltinSprite.ARTIFACT_UNKNOWN
    assert crown.configuration.meta.pools == (ArtifactPool.BOSS,)
    assert crown.configuration.meta.unremovable is True


def test_register_character_discards_bad_starters(registrar, report):
    entry = registrar.register_character("ember", [Strike, Exploding, NotACard], [Charm, Strike])

    config = entry.configuration
    assert [type(card) for card in config.starter_cards] == [Strike]
    assert [type(artifact) for artifact in config.starter_artifacts] == [Charm]
    assert isinstance(config.border_sprite, SpriteEntry)
    assert config.description("en") == "Burns."
    assert config.neutral_animation is not None
    assert config.mini_animation is None
    assert config.start_locked is False
    discarded = [entry for entry in report.warnings if entry.subject == "character ember"]
    assert len(discarded) == 3


def test_missing_required_animation_is_one_error(registrar, report):
    entry = registrar.register_character("ember", [Strike], [])

    assert entry.unique_name == "test::ember"
    errors = report.of_kind(DiagnosticKind.MISSING_REQUIRED_REFERENCE)
    assert len(errors) == 1
    assert "'mini'" in errors[0].message


def test_deck_without_animations_reports_deck_and_each_key(registrar, report):
    entry = registrar.register_character("frost", [], [], start_locked=True)

    assert entry.configuration.border_sprite is BuiltinSprite.CHARACTER_PANEL
    assert entry.configuration.start_locked is True
    messages = [error.message for error in report.of_kind(DiagnosticKind.MISSING_REQUIRED_REFERENCE)]
    assert len(messages) == 3
    assert "no animations" in messages[0]
    assert messages[1:] == ["Missing required animation 'neutral'", "Missing required animation 'mini'"]


def test_unknown_deck_raises(registrar):
    with pytest.raises(UnknownDeckError):
        registrar.register_cards("ghost", [Strike])
    with pytest.raises(UnknownDeckError):
        registrar.register_character("ghost")


def test_registration_is_rejected_after_close(registrar):
    registrar.close()

    assert registrar.closed
    with pytest.raises(ContentLoaderError):
        registrar.register_artifacts("ember", [Charm])


def test_validation_hook_is_broadcast(registrar, isolated_manager):
    record = isolated_manager.register_plugin("tests.sample_plugins.character_auditor")

    entry = registrar.register_character("ember", [Strike], [])

    assert record.obj.seen == [(entry.unique_name, 1)]


def test_validation_hook_messages_become_errors(registrar, isolated_manager, report):
    record = isolated_manager.register_plugin("tests.sample_plugins.character_auditor")
    record.obj.verdict = "panel is too small"

    registrar.register_character("ember", [Strike], [])

    hook_errors = [entry for entry in report.errors if "panel is too small" in entry.message]
    assert len(hook_errors) == 1
    assert hook_errors[0].message.startswith("tests.sample_plugins.character_auditor: ")


def test_validation_hook_mapping_response(registrar, isolated_manager, report):
    record = isolated_manager.register_plugin("tests.sample_plugins.character_auditor")
    record.obj.verdict = {"errors": ["panel too small"], "checked": 3}

    registrar.register_character("ember", [Strike], [])

    hook_errors = [entry.message for entry in report.errors if entry.message.startswith("tests.sample_plugins")]
    assert hook_errors == ["tests.sample_plugins.character_auditor: panel too small"]
    assert report.context["tests.sample_plugins.character_auditor"] == {"checked": 3}


def test_validation_hook_iterable_skips_none(registrar, isolated_manager, report):
    record = isolated_manager.register_plugin("tests.sample_plugins.character_auditor")
    record.obj.verdict = [None, "frames too wide"]

    registrar.register_character("ember", [Strike], [])

    assert any(entry.message.endswith(": frames too wide") for entry in report.errors)


@pytest.mark.parametrize("verdict", [True, [42]])
def test_unsupported_validation_response_raises(registrar, isolated_manager, verdict):
    record = isolated_manager.register_plugin("tests.sample_plugins.character_auditor")
    record.obj.verdict = verdict

    with pytest.raises(ValidationHookError, match="tests.sample_plugins.character_auditor"):
        registrar.register_character("ember", [Strike], [])
