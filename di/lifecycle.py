"""
Holder - Lifecycle State Machine

Two independent signals composed into the holder's lifecycle:

    load:  INIT -> LOADING -> LOADED
    close: INIT -> CLOSING -> CLOSED

Legality of every public operation is a predicate over the pair, which keeps
"close may start while load is still running" an explicit transition rather
than a hidden intermediate state. Neither signal ever moves backwards.

Waiting is done on an asyncio.Condition: close() sleeps until load reaches
LOADED, and the build loop peeks at the close signal between items.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from core.errors import ErrorContext, InvalidStateError


class LoadState(Enum):
    INIT = "init"
    LOADING = "loading"
    LOADED = "loaded"


class CloseState(Enum):
    INIT = "init"
    CLOSING = "closing"
    CLOSED = "closed"


_LOAD_ORDER = list(LoadState)
_CLOSE_ORDER = list(CloseState)


@dataclass(frozen=True)
class StateSnapshot:
    """The (load, close) pair at one instant."""

    load: LoadState
    close: CloseState

    @property
    def name(self) -> str:
        """Collapsed name: init, loading, loaded, closing or closed."""
        if self.close is not CloseState.INIT:
            return self.close.value
        return self.load.value

    def __str__(self) -> str:
        return f"(load={self.load.value}, close={self.close.value})"


class LifecycleState:
    """Owns the load/close signals of one holder."""

    def __init__(self) -> None:
        self._load = LoadState.INIT
        self._close = CloseState.INIT
        self._condition: Optional[asyncio.Condition] = None

    @property
    def load(self) -> LoadState:
        return self._load

    @property
    def close(self) -> CloseState:
        return self._close

    def snapshot(self) -> StateSnapshot:
        return StateSnapshot(self._load, self._close)

    # -------------------------------------------------------------------------
    # Predicates
    # -------------------------------------------------------------------------

    @property
    def can_load(self) -> bool:
        return self._load is LoadState.INIT and self._close is CloseState.INIT

    @property
    def can_close(self) -> bool:
        return self._load is not LoadState.INIT and self._close is CloseState.INIT

    @property
    def can_query(self) -> bool:
        return self._load is LoadState.LOADED and self._close is CloseState.INIT

    @property
    def close_requested(self) -> bool:
        """Whether the build loop should stop before the next item."""
        return self._close is not CloseState.INIT

    # -------------------------------------------------------------------------
    # Guards
    # -------------------------------------------------------------------------

    def _invalid(
        self, operation: str, expected: str, item_name: Optional[str] = None
    ) -> InvalidStateError:
        return InvalidStateError(
            operation,
            expected,
            str(self.snapshot()),
            context=ErrorContext.from_current_span(operation, item_name=item_name),
        )

    def require_load(self) -> None:
        if not self.can_load:
            raise self._invalid("load", "(load=init, close=init)")

    def require_close(self) -> None:
        if not self.can_close:
            raise self._invalid("close", "(load=loading|loaded, close=init)")

    def require_query(self, name: Optional[str] = None) -> None:
        if not self.can_query:
            raise self._invalid("get item", "(load=loaded, close=init)", item_name=name)

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def _get_condition(self) -> asyncio.Condition:
        # Bound to the running loop on first use.
        if self._condition is None:
            self._condition = asyncio.Condition()
        return self._condition

    async def set_load(self, value: LoadState) -> None:
        self._advance_load(value)
        condition = self._get_condition()
        async with condition:
            condition.notify_all()

    async def set_close(self, value: CloseState) -> None:
        if self._load is LoadState.INIT:
            raise self._invalid("close", "load started")
        if _CLOSE_ORDER.index(value) < _CLOSE_ORDER.index(self._close):
            raise self._invalid(f"move close to {value.value}", f"close <= {value.value}")
        self._close = value
        condition = self._get_condition()
        async with condition:
            condition.notify_all()

    def _advance_load(self, value: LoadState) -> None:
        if _LOAD_ORDER.index(value) < _LOAD_ORDER.index(self._load):
            raise self._invalid(f"move load to {value.value}", f"load <= {value.value}")
        self._load = value

    async def wait_loaded(self) -> None:
        condition = self._get_condition()
        async with condition:
            await condition.wait_for(lambda: self._load is LoadState.LOADED)
