"""
Holder - Test Configuration

Pytest fixtures shared by all tests.
"""
from typing import Any, Dict, List, Tuple

import pytest
import structlog

from core.types import ItemDefinition, ItemPack


class RecordingLogger:
    """Logger double with structlog's calling convention."""

    def __init__(self) -> None:
        self.events: List[Tuple[str, Dict[str, Any]]] = []

    def info(self, event: str, **fields: Any) -> None:
        self.events.append((event, fields))

    def names(self) -> List[str]:
        return [event for event, _ in self.events]


@pytest.fixture
def logger() -> RecordingLogger:
    """Recording logger."""
    return RecordingLogger()


@pytest.fixture
def sequence() -> List[str]:
    """Shared list that builders and actions append to."""
    return []


@pytest.fixture
def dependency_chain(sequence) -> List[ItemDefinition]:
    """Definitions d -> c -> (b, a), b -> a given out of order."""

    def recorder(name):
        def build(items, definition):
            sequence.append(name)
            return ItemPack(item=name.upper())
        return build

    return [
        ItemDefinition(name="d", need=["c"], build=recorder("d")),
        ItemDefinition(name="a", build=recorder("a")),
        ItemDefinition(name="c", need=["b", "a"], build=recorder("c")),
        ItemDefinition(name="b", need=["a"], build=recorder("b")),
    ]


@pytest.fixture
def teardown_definitions(sequence) -> List[ItemDefinition]:
    """a (stop+destroy), b (none), c (stop), d (destroy)."""

    def record(entry):
        def action():
            sequence.append(entry)
        return action

    return [
        ItemDefinition(
            name="a",
            build=lambda items, d: ItemPack(stop=record("stop a"), destroy=record("destroy a")),
        ),
        ItemDefinition(name="b", need=["a"], build=lambda items, d: None),
        ItemDefinition(name="c", need=["b", "a"], build=lambda items, d: ItemPack(stop=record("stop c"))),
        ItemDefinition(name="d", need=["c"], build=lambda items, d: ItemPack(destroy=record("destroy d"))),
    ]


@pytest.fixture(autouse=True)
def reset_structlog_context():
    """Keep bound context from leaking between tests."""
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()
