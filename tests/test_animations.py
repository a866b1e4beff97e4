from __future__ import annotations

import pytest

from modules.content_loader import DiagnosticKind, InternalInconsistencyError
from modules.content_loader.animations import assemble_animations, order_frames, parse_frame_index
from modules.content_loader.sprites import index_sprites
from tests.stubs import make_deck


def _assemble(builder, registry, report, *, numeric_order=False, decks=("ember",)):
    deck_entries = {name: make_deck(registry, name) for name in decks}
    sprites = index_sprites(builder.sprites_root, registry.register_sprite, report)
    return assemble_animations(
        builder.sprites_root / "Characters",
        sprites,
        deck_entries,
        registry,
        report,
        numeric_order=numeric_order,
    )


def _stems(entry):
    return [frame.key.rsplit("/", 1)[-1] for frame in entry.frames]


def test_frames_are_ordered(builder, registry, report):
    builder.frames("Ember", "Neutral", ["0", "2", "1"])

    animations = _assemble(builder, registry, report)

    assert _stems(animations["ember"]["neutral"]) == ["0", "1", "2"]
    entry = registry.animations["ember/neutral"]
    assert entry is animations["ember"]["neutral"]
    assert entry.configuration.loop_tag == "neutral"
    assert entry.configuration.deck is registry.decks["ember"]


def test_non_numeric_frame_is_kept_and_reported(builder, registry, report):
    builder.frames("Ember", "Mini", ["0", "x"])

    animations = _assemble(builder, registry, report)

    assert _stems(animations["ember"]["mini"]) == ["0", "x"]
    malformed = report.of_kind(DiagnosticKind.MALFORMED_RECORD)
    assert len(malformed) == 1
    assert "'x'" in malformed[0].message


def test_numeric_frame_order_option(builder, registry, report):
    builder.frames("Ember", "Neutral", ["1", "2", "10"])

    lexical = _assemble(builder, registry, report)
    assert _stems(lexical["ember"]["neutral"]) == ["1", "10", "2"]


def test_numeric_frame_order_sorts_by_number(builder, registry, report):
    builder.frames("Ember", "Neutral", ["1", "2", "10", "end"])

    numeric = _assemble(builder, registry, report, numeric_order=True)

    assert _stems(numeric["ember"]["neutral"]) == ["1", "2", "10", "end"]


def test_unmatched_character_folder_is_skipped(builder, registry, report):
    builder.frames("Ember", "Neutral", ["0"])
    builder.frames("Ghost", "Neutral", ["0"])

    animations = _assemble(builder, registry, report)

    assert list(animations) == ["ember"]
    unresolved = report.of_kind(DiagnosticKind.UNRESOLVED_REFERENCE)
    assert len(unresolved) == 1
    assert "ghost" in unresolved[0].message


def test_empty_animation_folder_is_not_registered(builder, registry, report):
    builder.frames("Ember", "Neutral", ["0"])
    (builder.sprites_root / "Characters" / "Ember" / "Mini").mkdir()
    builder.sprite("Characters", "Ember", "Panel")

    animations = _assemble(builder, registry, report)

    assert list(animations["ember"]) == ["neutral"]
    assert "ember/mini" not in registry.animations
    assert any(entry.subject == "ember/mini" for entry in report.warnings)


def test_animation_folders_differing_by_case_keep_the_first(builder, registry, report):
    builder.frames("Ember", "Neutral", ["0"])
    builder.frames("Ember", "neutral", ["1"])

    animations = _assemble(builder, registry, report)

    assert _stems(animations["ember"]["neutral"]) == ["0"]
    assert list(registry.animations) == ["ember/neutral"]
    clashes = [entry for entry in report.warnings if "clashes" in entry.message]
    assert [entry.subject for entry in clashes] == [str(builder.sprites_root / "Characters" / "Ember" / "neutral")]


def test_character_folders_differing_by_case_keep_the_first(builder, registry, report):
    builder.frames("Ember", "Neutral", ["0"])
    builder.frames("ember", "Mini", ["0"])

    animations = _assemble(builder, registry, report)

    assert list(animations["ember"]) == ["neutral"]
    assert "ember/mini" not in registry.animations
    clashes = [entry for entry in report.warnings if "clashes" in entry.message]
    assert [entry.subject for entry in clashes] == [str(builder.sprites_root / "Characters" / "ember")]


def test_missing_characters_directory_warns(builder, registry, report):
    builder.sprite("Cards", "Flare")

    animations = _assemble(builder, registry, report)

    assert animations == {}
    assert report.of_kind(DiagnosticKind.MISSING_OPTIONAL_INPUT)


def test_frame_missing_from_sprite_map_is_fatal(builder, registry, report):
    builder.frames("Ember", "Neutral", ["0"])
    decks = {"ember": make_deck(registry, "ember")}

    with pytest.raises(InternalInconsistencyError):
        assemble_animations(builder.sprites_root / "Characters", {}, decks, registry, report)


def test_frame_index_parsing():
    assert parse_frame_index("007") == 7
    with pytest.raises(ValueError):
        parse_frame_index("-1")


def test_order_frames_reports_each_unparsable_stem(report):
    assert order_frames(["b", "a", "3"], report, "ember/idle") == ["3", "a", "b"]
    assert len(report.warnings) == 2
