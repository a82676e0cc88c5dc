"""
Holder - Build and Teardown Orchestration

The Holder builds a set of named items in dependency order and tears them
down in reverse order.

Usage:
    holder = Holder()
    await holder.load([
        ItemDefinition(name="config", build=load_config),
        ItemDefinition(name="db", need="config", build=open_db),
        ItemDefinition(name="server", need=["config", "db"], build=start_server),
    ])
    server = holder.get_item("server")
    ...
    await holder.close()  # stop server, then destroy db

Or, with guaranteed shutdown:
    async with holding(definitions) as holder:
        ...

Builders are called as ``build(context, definition)`` where ``context`` is a
read-only mapping of every item built so far. They return an ItemPack (or a
mapping with the same keys, or None) and may be coroutine functions.

close() may be called while load() is still running: the build loop notices
it between two items, stops building, and close() then tears down exactly the
items whose build completed.
"""
from __future__ import annotations

import inspect
import time
from contextlib import asynccontextmanager
from types import MappingProxyType
from typing import Any, AsyncIterator, Dict, Iterable, List, Mapping, Optional, Tuple

from core.types import (
    DefinitionLike,
    ItemDefinition,
    ItemName,
    ItemPack,
    LifecycleRecord,
    snapshot,
)
from di.adapters import Adapter, apply_adapter, check_adapters
from di.graph import sort_definitions
from di.lifecycle import CloseState, LifecycleState, LoadState, StateSnapshot
from observability.logging import get_logger


async def _call(action: Any, *args: Any) -> Any:
    result = action(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


class Holder:
    """
    Dependency-ordered component lifecycle manager.

    Lifecycle:
        load() once, from the initial state
        get_item() only between the end of load() and the start of close()
        close() once, any time after load() was called
    """

    def __init__(
        self,
        logger: Optional[Any] = None,
        adapters: Optional[Mapping[str, Adapter]] = None,
    ):
        self._logger = logger if logger is not None else get_logger("holder")
        self._adapters: Dict[str, Adapter] = dict(adapters or {})
        self._state = LifecycleState()
        self._items: Dict[ItemName, Any] = {}
        self._build_order: List[ItemName] = []
        self._stops: List[LifecycleRecord] = []
        self._destroys: List[LifecycleRecord] = []

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def state(self) -> StateSnapshot:
        """Current (load, close) pair."""
        return self._state.snapshot()

    @property
    def build_order(self) -> Tuple[ItemName, ...]:
        """Names of the definitions built so far, in build order."""
        return tuple(self._build_order)

    @property
    def items(self) -> Mapping[ItemName, Any]:
        """Read-only view of the registry."""
        self._state.require_query()
        return MappingProxyType(self._items)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def load(self, definitions: Iterable[DefinitionLike]) -> None:
        """
        Build every definition in dependency order.

        Returns early, with only the items built so far, when close() is
        called in the meantime. Configuration errors, missing adapters
        included, are raised before any builder runs. A failing builder
        propagates; items built before the failure stay registered for
        teardown by a later close().
        """
        self._state.require_load()
        await self._state.set_load(LoadState.LOADING)
        try:
            ordered = sort_definitions(definitions)
            check_adapters(ordered, self._adapters)
            for position, definition in enumerate(ordered, start=1):
                await self._build(definition)
                if self._state.close_requested and position < len(ordered):
                    self._logger.info(
                        "loading interrupted",
                        built=len(self._build_order),
                        skipped=len(ordered) - len(self._build_order),
                    )
                    return
            self._logger.info("all items loaded", count=len(self._build_order))
        finally:
            await self._state.set_load(LoadState.LOADED)

    async def _build(self, definition: ItemDefinition) -> None:
        definition = apply_adapter(definition, self._adapters)
        name = definition.name
        fields: Dict[str, Any] = {"name": name}
        if definition.consumer is not None:
            fields["consumer"] = definition.consumer

        self._logger.info("loading item", **fields)
        start = time.perf_counter()
        result = await _call(definition.build, snapshot(self._items), definition)
        pack = ItemPack.coerce(result, name)
        self._logger.info(
            "item loaded",
            duration_ms=round((time.perf_counter() - start) * 1000, 3),
            **fields,
        )

        self._build_order.append(name)
        if pack is None:
            return
        if pack.stop is not None:
            self._stops.append(LifecycleRecord(name, "stop", pack.stop))
        if pack.destroy is not None:
            self._destroys.append(LifecycleRecord(name, "destroy", pack.destroy))
        if pack.item is not None:
            self._items[name] = pack.item

    async def close(self) -> None:
        """
        Stop, then destroy, every built item in reverse build order.

        Waits for a running load() to reach its next safe point first. The
        first failing stop or destroy action propagates and the remaining
        actions are skipped.
        """
        self._state.require_close()
        await self._state.set_close(CloseState.CLOSING)
        await self._state.wait_loaded()

        for record in reversed(self._stops):
            self._logger.info("stopping item", name=record.name)
            await _call(record.action)
            self._logger.info("item stopped", name=record.name)
        self._logger.info("all items stopped")

        for record in reversed(self._destroys):
            self._logger.info("destroying item", name=record.name)
            await _call(record.action)
            self._logger.info("item destroyed", name=record.name)
        self._logger.info("all items destroyed")

        await self._state.set_close(CloseState.CLOSED)

    # -------------------------------------------------------------------------
    # Registry
    # -------------------------------------------------------------------------

    def get_item(self, name: ItemName) -> Any:
        """Return the item built under ``name``, or None if there is none."""
        self._state.require_query(name)
        return self._items.get(name)

    def teardown_plan(self) -> List[Tuple[str, ItemName]]:
        """The (kind, name) sequence close() would run right now."""
        return [(record.kind, record.name) for record in reversed(self._stops)] + [
            (record.kind, record.name) for record in reversed(self._destroys)
        ]


@asynccontextmanager
async def holding(
    definitions: Iterable[DefinitionLike],
    logger: Optional[Any] = None,
    adapters: Optional[Mapping[str, Adapter]] = None,
) -> AsyncIterator[Holder]:
    """
    Load a holder for the duration of a block and always close it.

    Usage:
        async with holding(definitions) as holder:
            await serve(holder.get_item("server"))
    """
    holder = Holder(logger=logger, adapters=adapters)
    try:
        await holder.load(definitions)
        yield holder
    finally:
        await holder.close()
