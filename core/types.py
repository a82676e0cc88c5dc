"""
Holder - Type Definitions

Definitions, packs and lifecycle records shared by the graph sorter, the
adapters and the holder itself.

Usage:
    from core.types import ItemDefinition, ItemPack

    async def build_db(items, definition):
        db = await connect(items["config"].dsn)
        return ItemPack(item=db, destroy=db.close)

    ItemDefinition(name="db", need="config", build=build_db)
"""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Literal,
    Mapping,
    Optional,
    Tuple,
    Union,
)

from core.errors import DefinitionError

# =============================================================================
# TYPE ALIASES
# =============================================================================

ItemName = str
BuildContext = Mapping[ItemName, Any]

# Stop and destroy actions take no arguments and may be coroutine functions.
Action = Callable[[], Union[Awaitable[None], None]]

# build(context, definition) -> ItemPack | mapping | None, possibly awaitable
Builder = Callable[[BuildContext, "ItemDefinition"], Any]

ActionKind = Literal["stop", "destroy"]


def normalize_need(need: Any) -> Tuple[ItemName, ...]:
    """Normalize a need declaration into a tuple of names.

    A bare string means a single dependency.
    """
    if need is None:
        return ()
    if isinstance(need, str):
        return (need,)
    return tuple(need)


# =============================================================================
# DEFINITIONS
# =============================================================================


@dataclass(frozen=True)
class ItemDefinition:
    """Declaration of one item: its name, its needs and how to build it.

    ``type`` marks a custom shape that a registered adapter normalizes into a
    standard definition before it is built. ``options`` carries the custom
    payload for adapters. ``consumer`` is set on definitions produced by
    per-item expansion and only shows up in log events.
    """

    name: ItemName
    need: Tuple[ItemName, ...] = ()
    build: Optional[Builder] = None
    type: Optional[str] = None
    options: Mapping[str, Any] = field(default_factory=dict)
    consumer: Optional[ItemName] = None

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise DefinitionError(f"definition name must be a non-empty string, got {self.name!r}")
        object.__setattr__(self, "need", normalize_need(self.need))
        for dependency in self.need:
            if not isinstance(dependency, str):
                raise DefinitionError(
                    f"definition '{self.name}' has a non-string need {dependency!r}",
                    name=self.name,
                )
        if self.type is None and not callable(self.build):
            raise DefinitionError(
                f"definition '{self.name}' has no callable build",
                name=self.name,
            )

    @property
    def is_standard(self) -> bool:
        return self.type is None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ItemDefinition":
        """Create a definition from a plain mapping with the same keys.

        Custom-typed mappings may carry extra keys; they are folded into
        ``options`` for the adapter to read.
        """
        known = {"name", "need", "build", "type", "options", "consumer"}
        extra = {key: value for key, value in data.items() if key not in known}
        if extra and data.get("type") is None:
            raise DefinitionError(
                f"definition {data.get('name')!r} has unknown keys: {sorted(extra)}",
                name=data.get("name"),
            )
        return cls(
            name=data.get("name"),  # type: ignore[arg-type]
            need=data.get("need"),  # type: ignore[arg-type]
            build=data.get("build"),
            type=data.get("type"),
            options={**extra, **(data.get("options") or {})},
            consumer=data.get("consumer"),
        )


DefinitionLike = Union[ItemDefinition, Mapping[str, Any]]


def coerce_definition(definition: DefinitionLike) -> ItemDefinition:
    """Accept an ItemDefinition or a mapping describing one."""
    if isinstance(definition, ItemDefinition):
        return definition
    if isinstance(definition, Mapping):
        return ItemDefinition.from_mapping(definition)
    raise DefinitionError(f"unsupported definition object: {definition!r}")


# =============================================================================
# BUILD RESULTS
# =============================================================================


@dataclass(frozen=True)
class ItemPack:
    """What a builder returns: the item plus optional stop/destroy actions.

    ``stop`` ends external-facing activity (stop accepting requests);
    ``destroy`` releases resources and always runs after every stop.
    """

    item: Any = None
    stop: Optional[Action] = None
    destroy: Optional[Action] = None

    @classmethod
    def coerce(cls, result: Any, name: ItemName) -> Optional["ItemPack"]:
        """Normalize a builder's return value.

        ``None`` means the definition contributes nothing.
        """
        if result is None or isinstance(result, ItemPack):
            return result
        if isinstance(result, Mapping):
            unknown = set(result) - {"item", "stop", "destroy"}
            if unknown:
                raise DefinitionError(
                    f"builder of '{name}' returned unknown keys: {sorted(unknown)}",
                    name=name,
                )
            return cls(
                item=result.get("item"),
                stop=result.get("stop"),
                destroy=result.get("destroy"),
            )
        raise DefinitionError(
            f"builder of '{name}' must return an ItemPack, a mapping or None, "
            f"got {type(result).__name__}",
            name=name,
        )


@dataclass(frozen=True)
class LifecycleRecord:
    """A stop or destroy action tagged with the item that owns it."""

    name: ItemName
    kind: ActionKind
    action: Action


def snapshot(items: Dict[ItemName, Any]) -> BuildContext:
    """Read-only copy of the items built so far."""
    return MappingProxyType(dict(items))
