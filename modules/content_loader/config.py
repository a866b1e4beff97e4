"""Configuration helpers for the content loader."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping, MutableMapping, Optional, Tuple

from .exceptions import ConfigurationError

DEFAULT_CONFIG_FILE = Path.home() / ".easyloader" / "config.json"
ENV_PREFIX = "EASYLOADER_"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _coerce_bool(value: Any, label: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"'{label}' expects a boolean, got {value!r}.")


def _coerce_names(value: Any, label: str) -> Tuple[str, ...]:
    if isinstance(value, str):
        items: Iterable[Any] = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = value
    else:
        raise ConfigurationError(f"'{label}' expects a list of names, got {value!r}.")
    return tuple(str(item).strip().lower() for item in items if str(item).strip())


def _coerce_extension(value: Any, label: str) -> str:
    text = str(value).strip().lower()
    if not text:
        raise ConfigurationError(f"'{label}' must not be empty.")
    return text if text.startswith(".") else f".{text}"


@dataclass(slots=True)
class LoaderConfig:
    """Describes the package layout and the policies applied while loading."""

    mod_type: str = "EasyLoader"
    sprites_directory: str = "Sprites"
    data_directory: str = "Data"
    decks_directory: str = "Decks"
    localization_file: str = "Localization.csv"
    image_extension: str = ".png"
    deck_extensions: Tuple[str, ...] = (".json", ".toml")
    required_animations: Tuple[str, ...] = ("neutral", "mini")
    numeric_frame_order: bool = False
    strict: bool = False

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "LoaderConfig":
        env = os.environ if env is None else env
        data: dict = {}
        for name in cls.__slots__:  # type: ignore[attr-defined]
            raw = env.get(ENV_PREFIX + name.upper())
            if raw is not None:
                data[name] = raw
        return cls.from_mapping(data)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "LoaderConfig":
        unknown = sorted(set(data) - set(cls.__slots__))  # type: ignore[attr-defined]
        if unknown:
            raise ConfigurationError("Unknown configuration keys: " + ", ".join(unknown))
        config = cls()
        for name in ("mod_type", "sprites_directory", "data_directory",
                     "decks_directory", "localization_file"):
            if name in data:
                value = str(data[name]).strip()
                if not value:
                    raise ConfigurationError(f"'{name}' must not be empty.")
                setattr(config, name, value)
        if "image_extension" in data:
            config.image_extension = _coerce_extension(data["image_extension"], "image_extension")
        if "deck_extensions" in data:
            names = _coerce_names(data["deck_extensions"], "deck_extensions")
            config.deck_extensions = tuple(_coerce_extension(name, "deck_extensions") for name in names)
        if "required_animations" in data:
            config.required_animations = _coerce_names(data["required_animations"], "required_animations")
        if "numeric_frame_order" in data:
            config.numeric_frame_order = _coerce_bool(data["numeric_frame_order"], "numeric_frame_order")
        if "strict" in data:
            config.strict = _coerce_bool(data["strict"], "strict")
        unsupported = sorted(set(config.deck_extensions) - {".json", ".toml"})
        if unsupported:
            raise ConfigurationError("Unsupported deck formats: " + ", ".join(unsupported))
        return config

    def to_mapping(self) -> MutableMapping[str, object]:
        return {
            "mod_type": self.mod_type,
            "sprites_directory": self.sprites_directory,
            "data_directory": self.data_directory,
            "decks_directory": self.decks_directory,
            "localization_file": self.localization_file,
            "image_extension": self.image_extension,
            "deck_extensions": list(self.deck_extensions),
            "required_animations": list(self.required_animations),
            "numeric_frame_order": self.numeric_frame_order,
            "strict": self.strict,
        }

    def dump(self, destination: Path | None = None) -> None:
        destination = destination or DEFAULT_CONFIG_FILE
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(json.dumps(self.to_mapping(), indent=2))

    @classmethod
    def load(cls, source: Path | None = None) -> "LoaderConfig":
        source = source or DEFAULT_CONFIG_FILE
        if not source.exists():
            raise FileNotFoundError(f"Configuration file not found: {source}")
        try:
            data = json.loads(source.read_text(encoding="utf8"))
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Configuration file {source} is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file {source} must contain a JSON object.")
        return cls.from_mapping(data)


__all__ = ["DEFAULT_CONFIG_FILE", "ENV_PREFIX", "LoaderConfig"]
