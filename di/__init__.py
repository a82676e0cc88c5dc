"""
Holder - Dependency Orchestration

Builds named items in dependency order and tears them down in reverse:

    from di import Holder, holding
    from core import ItemDefinition, ItemPack

    async def open_db(items, definition):
        db = await connect()
        return ItemPack(item=db, destroy=db.close)

    async with holding([ItemDefinition(name="db", build=open_db)]) as holder:
        db = holder.get_item("db")

Components:
    graph      - duplicate/cycle/unresolved checks and build order
    lifecycle  - the load/close state signals
    adapters   - custom definition types and per-item expansion
    holder     - the build and teardown loops, item registry
"""

from di.adapters import (
    PER_ITEM,
    Adapter,
    apply_adapter,
    check_adapters,
    constant_adapter,
    expand_per_item,
    per_item_name,
)
from di.graph import check_unique_definitions, sort_definitions, topological_order
from di.holder import Holder, holding
from di.lifecycle import CloseState, LifecycleState, LoadState, StateSnapshot

__all__ = [
    "Holder",
    "holding",
    "sort_definitions",
    "topological_order",
    "check_unique_definitions",
    "LoadState",
    "CloseState",
    "LifecycleState",
    "StateSnapshot",
    "Adapter",
    "PER_ITEM",
    "apply_adapter",
    "check_adapters",
    "constant_adapter",
    "expand_per_item",
    "per_item_name",
]
