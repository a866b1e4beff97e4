from __future__ import annotations

import pytest

from modules.content_loader import ConfigurationError, LoaderConfig


def test_defaults_describe_the_standard_layout():
    config = LoaderConfig()

    assert config.mod_type == "EasyLoader"
    assert config.image_extension == ".png"
    assert config.deck_extensions == (".json", ".toml")
    assert config.required_animations == ("neutral", "mini")
    assert not config.strict


def test_from_env_reads_prefixed_variables():
    config = LoaderConfig.from_env(
        {
            "EASYLOADER_STRICT": "yes",
            "EASYLOADER_REQUIRED_ANIMATIONS": "Neutral, Idle",
            "EASYLOADER_IMAGE_EXTENSION": "PNG",
            "UNRELATED": "1",
        }
    )

    assert config.strict is True
    assert config.required_animations == ("neutral", "idle")
    assert config.image_extension == ".png"


@pytest.mark.parametrize(
    "data",
    [
        {"colour": "red"},
        {"strict": "maybe"},
        {"deck_extensions": [".yaml"]},
        {"sprites_directory": "  "},
        {"required_animations": 3},
    ],
)
def test_invalid_values_raise(data):
    with pytest.raises(ConfigurationError):
        LoaderConfig.from_mapping(data)


def test_dump_and_load(tmp_path):
    path = tmp_path / "nested" / "config.json"
    config = LoaderConfig(numeric_frame_order=True, deck_extensions=(".toml",))

    config.dump(path)

    assert LoaderConfig.load(path) == config


def test_load_rejects_missing_and_invalid_files(tmp_path):
    with pytest.raises(FileNotFoundError):
        LoaderConfig.load(tmp_path / "absent.json")

    broken = tmp_path / "broken.json"
    broken.write_text("[1, 2]", encoding="utf8")
    with pytest.raises(ConfigurationError):
        LoaderConfig.load(broken)
