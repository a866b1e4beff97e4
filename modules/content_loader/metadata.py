"""Declarative per-type metadata for cards and artifacts.

Package code annotates its types with :func:`card_meta` or
:func:`artifact_meta`::

    @card_meta(rarity=Rarity.UNCOMMON, upgrades_to=(Upgrade.A,))
    class Flare(Card):
        ...

The decorators only attach a frozen record to the class.  A
:class:`MetadataTable` collects those records by scanning loaded modules once
and answers ``metadata_of(type)`` from that table afterwards.
"""
from __future__ import annotations

import inspect
import sys
from dataclasses import dataclass
from enum import Enum
from types import ModuleType
from typing import Any, Callable, Dict, Optional, Set, Tuple, Type, TypeVar, Union

from plugins import PLUGIN_MANAGER

META_ATTRIBUTE = "__content_meta__"

T = TypeVar("T", bound=type)


class Rarity(str, Enum):
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"


class Upgrade(str, Enum):
    A = "a"
    B = "b"


class ArtifactPool(str, Enum):
    COMMON = "common"
    BOSS = "boss"
    EVENT_ONLY = "event_only"
    UNRELEASED = "unreleased"


@dataclass(frozen=True)
class CardMeta:
    rarity: Rarity = Rarity.COMMON
    upgrades_to: Tuple[Upgrade, ...] = (Upgrade.A, Upgrade.B)
    extra_glossary: Tuple[str, ...] = ()
    unreleased: bool = False
    dont_offer: bool = False
    weird: bool = False
    deck: Optional[str] = None


@dataclass(frozen=True)
class ArtifactMeta:
    pools: Tuple[ArtifactPool, ...] = (ArtifactPool.COMMON,)
    unremovable: bool = False
    extra_glossary: Tuple[str, ...] = ()
    owner: Optional[str] = None


DeclaredMeta = Union[CardMeta, ArtifactMeta]


def _declare(meta: DeclaredMeta) -> Callable[[T], T]:
    def decorate(cls: T) -> T:
        setattr(cls, META_ATTRIBUTE, meta)
        return cls

    return decorate


def card_meta(**fields: Any) -> Callable[[T], T]:
    """Attach :class:`CardMeta` built from ``fields`` to the decorated class."""

    for name in ("upgrades_to", "extra_glossary"):
        if name in fields:
            fields[name] = tuple(fields[name])
    return _declare(CardMeta(**fields))


def artifact_meta(**fields: Any) -> Callable[[T], T]:
    """Attach :class:`ArtifactMeta` built from ``fields`` to the decorated class."""

    for name in ("pools", "extra_glossary"):
        if name in fields:
            fields[name] = tuple(fields[name])
    return _declare(ArtifactMeta(**fields))


def declared_meta(cls: type) -> Optional[DeclaredMeta]:
    """Return the record declared on ``cls`` itself, ignoring base classes."""

    meta = vars(cls).get(META_ATTRIBUTE)
    if isinstance(meta, (CardMeta, ArtifactMeta)):
        return meta
    return None


class MetadataTable:
    """Capability-keyed table of declared metadata.

    Modules are scanned at most once.  Types that are not reachable as module
    attributes (classes created inside functions, for instance) are looked up
    on first request and cached just the same.
    """

    def __init__(self) -> None:
        self._entries: Dict[type, Optional[DeclaredMeta]] = {}
        self._scanned: Set[str] = set()

    def scan(self, module: ModuleType) -> int:
        """Record metadata for every class defined in ``module``; return how many carried some."""

        if module.__name__ in self._scanned:
            return 0
        self._scanned.add(module.__name__)
        found = 0
        for _, value in inspect.getmembers(module, inspect.isclass):
            if value.__module__ != module.__name__:
                continue
            meta = declared_meta(value)
            self._entries[value] = meta
            if meta is not None:
                found += 1
        return found

    def metadata_of(self, cls: type) -> Optional[DeclaredMeta]:
        if cls not in self._entries:
            module = sys.modules.get(cls.__module__)
            if module is not None:
                self.scan(module)
            if cls not in self._entries:
                self._entries[cls] = declared_meta(cls)
        return self._entries[cls]

    def card_metadata(self, cls: Type[Any]) -> Optional[CardMeta]:
        meta = self.metadata_of(cls)
        return meta if isinstance(meta, CardMeta) else None

    def artifact_metadata(self, cls: Type[Any]) -> Optional[ArtifactMeta]:
        meta = self.metadata_of(cls)
        return meta if isinstance(meta, ArtifactMeta) else None

    @property
    def scanned_modules(self) -> Tuple[str, ...]:
        return tuple(sorted(self._scanned))


PLUGIN_MANAGER.expose("card_meta", card_meta)
PLUGIN_MANAGER.expose("artifact_meta", artifact_meta)
PLUGIN_MANAGER.expose("MetadataTable", MetadataTable)

__all__ = [
    "ArtifactMeta",
    "ArtifactPool",
    "CardMeta",
    "DeclaredMeta",
    "META_ATTRIBUTE",
    "MetadataTable",
    "Rarity",
    "Upgrade",
    "artifact_meta",
    "card_meta",
    "declared_meta",
]
