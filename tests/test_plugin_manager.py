from __future__ import annotations

import logging
import sys
import textwrap

import pytest

from easyloader.plugin_manager import EntryPointPluginLoader, PluginContext, module_name_for
from modules.content_loader import ContentPackageLoader, Rarity
from plugins import PluginError

ENTRY_SOURCE = textwrap.dedent(
    """
    from modules.content_loader import Card, Rarity, card_meta


    @card_meta(rarity=Rarity.UNCOMMON)
    class Spark(Card):
        pass


    def activate_plugin(context):
        metadata = context.require("metadata")
        entries = context.require("register_cards")("ember", [Spark])
        return {"entries": entries, "scanned": metadata.scanned_modules, "extra": context.metadata}
    """
)


def _content_loader(isolated_manager, registry, **kwargs):
    plugin_loader = EntryPointPluginLoader(isolated_manager, **kwargs)
    return ContentPackageLoader(plugin_loader, lambda package: registry, manager=isolated_manager), plugin_loader


def test_entry_point_runs_with_injected_values(builder, registry, isolated_manager):
    builder.deck("ember", {})
    builder.entry_point(ENTRY_SOURCE)
    package = builder.package()
    loader, plugin_loader = _content_loader(isolated_manager, registry, metadata={"host": "tests"})

    loaded = loader.load(package)

    descriptor = loaded.plugin
    assert descriptor.name == "test.pack"
    assert descriptor.module.__name__ == module_name_for(package)
    result = descriptor.result
    assert result["scanned"] == (module_name_for(package),)
    assert result["extra"] == {"host": "tests"}
    card = result["entries"][0].configuration
    assert card.meta.rarity is Rarity.UNCOMMON
    assert card.meta.deck == "ember"
    assert list(plugin_loader.iter_plugins()) == [descriptor]


def test_can_load_requires_entry_point_file(builder, isolated_manager):
    package = builder.package()
    plugin_loader = EntryPointPluginLoader(isolated_manager)

    assert not plugin_loader.can_load(package)
    builder.entry_point("def activate_plugin(context):\n    return None\n")
    assert plugin_loader.can_load(package)


def test_missing_activate_callable_is_rejected(builder, isolated_manager):
    builder.entry_point("VALUE = 1\n")

    with pytest.raises(PluginError):
        EntryPointPluginLoader(isolated_manager).load(builder.package())


def test_failed_import_leaves_no_module_behind(builder, isolated_manager):
    builder.entry_point("raise ImportError('missing dependency')\n")
    package = builder.package()

    with pytest.raises(ImportError):
        EntryPointPluginLoader(isolated_manager).load(package)

    assert module_name_for(package) not in sys.modules


def test_module_names_are_isolated_per_package(builder):
    builder.manifest(unique_name="3rd-party.Pack")

    assert module_name_for(builder.package()) == "easyloader_packages._3rd_party_pack"


def test_context_require_raises_key_error(builder):
    context = PluginContext(
        package=builder.package(),
        values={"sprites": {}},
        logger=logging.getLogger("easyloader.test"),
    )

    assert context.require("sprites") == {}
    assert context.get("decks") is None
    with pytest.raises(KeyError):
        context.require("decks")
