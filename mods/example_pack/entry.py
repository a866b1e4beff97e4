"""Entry point of the Ember example pack.

Sprites, decks, animations and strings are picked up from the folders next to
this file.  The code only declares the types and tells the loader which deck
they belong to.
"""

from __future__ import annotations

from modules.content_loader import Artifact, ArtifactPool, Card, Rarity, Upgrade, artifact_meta, card_meta


@card_meta(rarity=Rarity.COMMON)
class Flare(Card):
    cost = 1
    damage = 6


@card_meta(rarity=Rarity.UNCOMMON, upgrades_to=(Upgrade.A,), extra_glossary=("status.heat",))
class Kindle(Card):
    cost = 0
    heat = 2


class Frostbite(Card):
    cost = 2
    damage = 9


@artifact_meta(pools=(ArtifactPool.BOSS,))
class EmberHeart(Artifact):
    energy = 1


def activate_plugin(context):
    register_cards = context.require("register_cards")
    register_artifacts = context.require("register_artifacts")
    register_character = context.require("register_character")

    register_cards("ember", [Flare, Kindle])
    register_cards("frost", [Frostbite])
    register_artifacts("ember", [EmberHeart])
    character = register_character("ember", [Flare, Flare, Kindle], [EmberHeart])
    context.logger.info("Registered %s", character.unique_name)
    return character
