"""
Holder - Definition Adapters

Adapters translate custom-typed definitions into standard ones. The holder
checks that every type has an adapter before building anything, then applies
each adapter right before building its definition:

    holder = Holder(adapters={"constant": constant_adapter})
    await holder.load([ItemDefinition(name="answer", type="constant", options={"value": 42})])

Per-consumer multiplicity ("per-item" definitions, built freshly for every
definition that needs them) is a one-to-many rewrite, so it is offered as a
pre-load expansion, expand_per_item(), rather than as an adapter.
"""
from __future__ import annotations

import inspect
from dataclasses import replace
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from core.errors import AdapterError, ErrorContext, UnknownAdapterError
from core.types import (
    BuildContext,
    DefinitionLike,
    ItemDefinition,
    ItemPack,
    coerce_definition,
)

Adapter = Callable[[ItemDefinition], DefinitionLike]

PER_ITEM = "per-item"


def apply_adapter(
    definition: ItemDefinition,
    adapters: Optional[Mapping[str, Adapter]] = None,
) -> ItemDefinition:
    """Return the standard form of a definition.

    The adapter's result is built as a standard definition even if it still
    carries the custom type tag.

    Raises:
        UnknownAdapterError: the definition's type has no registered adapter
        AdapterError: the adapter returned a definition with another name
        DefinitionError: the adapted definition has no callable build
    """
    if definition.type is None:
        return definition

    adapter = (adapters or {}).get(definition.type)
    if adapter is None:
        raise UnknownAdapterError(definition.type, definition.name)

    adapted = coerce_definition(adapter(definition))
    if adapted.type is not None:
        adapted = replace(adapted, type=None)
    if adapted.name != definition.name:
        raise AdapterError(
            f"adapter for type '{definition.type}' renamed "
            f"'{definition.name}' to '{adapted.name}'"
        )
    return adapted


def check_adapters(
    definitions: Iterable[ItemDefinition],
    adapters: Optional[Mapping[str, Adapter]] = None,
) -> None:
    """Raise UnknownAdapterError for the first definition whose type has no adapter."""
    registered = adapters or {}
    for definition in definitions:
        if definition.type is not None and definition.type not in registered:
            raise UnknownAdapterError(
                definition.type,
                definition.name,
                context=ErrorContext.from_current_span("load", item_name=definition.name),
            )


def constant_adapter(definition: ItemDefinition) -> ItemDefinition:
    """Adapter for ``type="constant"``: the item is ``options["value"]``."""
    if "value" not in definition.options:
        raise AdapterError(f"constant definition '{definition.name}' has no 'value' option")
    value = definition.options["value"]

    def build(items: BuildContext, _definition: ItemDefinition) -> ItemPack:
        return ItemPack(item=value)

    return replace(definition, type=None, build=build)


# =============================================================================
# PER-ITEM EXPANSION
# =============================================================================


def per_item_name(name: str, consumer: str) -> str:
    """Name of the instance of per-item definition ``name`` built for ``consumer``."""
    return f"{name}@{consumer}"


def _per_item_builder(source: ItemDefinition, consumer: ItemDefinition):
    async def build(items: BuildContext, _definition: ItemDefinition) -> ItemPack:
        result = source.build(items, consumer)  # type: ignore[misc]
        if inspect.isawaitable(result):
            result = await result
        return ItemPack(item=result)

    return build


def _consumer_builder(consumer: ItemDefinition, aliases: Dict[str, str]):
    async def build(items: BuildContext, definition: ItemDefinition) -> Any:
        view = dict(items)
        for original, instance in aliases.items():
            if instance in view:
                view[original] = view[instance]
        result = consumer.build(view, definition)  # type: ignore[misc]
        if inspect.isawaitable(result):
            result = await result
        return result

    return build


def expand_per_item(definitions: Iterable[DefinitionLike]) -> List[ItemDefinition]:
    """
    Rewrite per-item definitions into one standard definition per consumer.

    A definition with ``type="per-item"`` has a builder called as
    ``build(context, consumer_definition)`` that returns the item itself.
    For every definition C needing per-item definition P, the result holds a
    definition named ``P@C`` (needing what P needs) and C's need on P points
    at ``P@C``; C's builder still sees the value under the name P.

    Per-item definitions nobody needs are dropped. Other custom-typed
    definitions pass through untouched and reach their adapters at build
    time; they cannot consume per-item definitions.
    """
    coerced = [coerce_definition(definition) for definition in definitions]
    per_item = {d.name: d for d in coerced if d.type == PER_ITEM}

    for definition in per_item.values():
        if not callable(definition.build):
            raise AdapterError(f"per-item definition '{definition.name}' has no callable build")
        nested = [dep for dep in definition.need if dep in per_item]
        if nested:
            raise AdapterError(
                f"per-item definition '{definition.name}' needs per-item "
                f"definitions {nested}"
            )

    expanded: List[ItemDefinition] = []
    for definition in coerced:
        if definition.type == PER_ITEM:
            continue
        needed = [dep for dep in definition.need if dep in per_item]
        if not needed:
            expanded.append(definition)
            continue
        if definition.type is not None:
            raise AdapterError(
                f"custom definition '{definition.name}' of type '{definition.type}' "
                f"cannot need per-item definitions"
            )

        aliases = {dep: per_item_name(dep, definition.name) for dep in needed}
        for dep in needed:
            source = per_item[dep]
            expanded.append(
                ItemDefinition(
                    name=aliases[dep],
                    need=source.need,
                    build=_per_item_builder(source, definition),
                    consumer=definition.name,
                )
            )
        expanded.append(
            replace(
                definition,
                need=tuple(aliases.get(dep, dep) for dep in definition.need),
                build=_consumer_builder(definition, aliases),
            )
        )
    return expanded
