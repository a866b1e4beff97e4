import pytest

from plugins import PLUGIN_MANAGER, PluginError

SAMPLE_PLUGIN = "tests.sample_plugins.character_auditor"


def test_register_plugin_runs_setup_and_exposes(isolated_manager):
    record = isolated_manager.register_plugin(SAMPLE_PLUGIN)

    assert record.name == "character_auditor"
    assert record.module == SAMPLE_PLUGIN
    assert isolated_manager.exposed["character_auditor"] is record.obj
    assert SAMPLE_PLUGIN in isolated_manager.plugins


def test_register_plugin_twice_is_rejected(isolated_manager):
    isolated_manager.register_plugin(SAMPLE_PLUGIN)

    with pytest.raises(PluginError):
        isolated_manager.register_plugin(SAMPLE_PLUGIN)


def test_register_plugin_requires_setup_callable(isolated_manager):
    with pytest.raises(PluginError):
        isolated_manager.register_plugin("tests.stubs")


def test_broadcast_collects_responses(isolated_manager):
    record = isolated_manager.register_plugin(SAMPLE_PLUGIN)

    responses = isolated_manager.broadcast("ping", 1, flag=True)

    assert responses == {SAMPLE_PLUGIN: {"args": (1,), "kwargs": {"flag": True}}}
    assert record.obj.pings == [((1,), {"flag": True})]
    assert isolated_manager.broadcast("missing_hook") == {}


def test_unregister_and_ensure(isolated_manager):
    isolated_manager.register_plugin(SAMPLE_PLUGIN)
    isolated_manager.ensure([SAMPLE_PLUGIN])

    assert isolated_manager.unregister_plugin(SAMPLE_PLUGIN).module == SAMPLE_PLUGIN
    with pytest.raises(PluginError):
        isolated_manager.ensure([SAMPLE_PLUGIN])


def test_exposure_restores_previous_values(isolated_manager):
    isolated_manager.expose("sprites", "global")

    with isolated_manager.exposure({"sprites": "scoped", "decks": {}}) as exposed:
        assert exposed["sprites"] == "scoped"
        assert "decks" in exposed

    assert isolated_manager.exposed["sprites"] == "global"
    assert "decks" not in isolated_manager.exposed


def test_exposure_cleans_up_on_error(isolated_manager):
    with pytest.raises(RuntimeError):
        with isolated_manager.exposure({"register_cards": object()}):
            raise RuntimeError("package failed")

    assert "register_cards" not in isolated_manager.exposed


def test_withdraw_and_empty_names(isolated_manager):
    marker = object()
    isolated_manager.expose("marker", marker)

    assert isolated_manager.withdraw("marker") is marker
    with pytest.raises(PluginError):
        isolated_manager.withdraw("marker")
    with pytest.raises(PluginError):
        isolated_manager.expose("", marker)


def test_library_modules_expose_their_api():
    import modules.content_loader  # noqa: F401

    exposed = PLUGIN_MANAGER.exposed
    for name in ("resolve_package", "ContentPackageLoader", "card_meta", "LoadReport", "plugins"):
        assert name in exposed
    assert "PluginManager" in exposed["plugins"]
