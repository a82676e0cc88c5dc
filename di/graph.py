"""
Holder - Dependency Graph

Validates a definition set and computes its build order.

The order is a topological order of the need graph (every dependency comes
before every definition that needs it). Among definitions that become ready
at the same time, the one given first wins, so identical input always
produces the identical order.
"""
from __future__ import annotations

import heapq
from typing import Dict, Iterable, List, Sequence, Set

from core.errors import (
    CyclicDependencyError,
    DuplicateDefinitionError,
    UnresolvedDependencyError,
)
from core.types import DefinitionLike, ItemDefinition, coerce_definition


def check_unique_definitions(definitions: Iterable[ItemDefinition]) -> None:
    """Raise DuplicateDefinitionError on the first repeated name."""
    names: Set[str] = set()
    for definition in definitions:
        if definition.name in names:
            raise DuplicateDefinitionError(definition.name)
        names.add(definition.name)


def _find_cycle(remaining: Dict[str, ItemDefinition]) -> List[str]:
    # Every node left over by Kahn's algorithm still has an unmet need inside
    # the leftover set, so walking needs must eventually revisit a node.
    start = next(iter(remaining))
    path: List[str] = []
    seen: Dict[str, int] = {}
    current = start
    while current not in seen:
        seen[current] = len(path)
        path.append(current)
        current = next(dep for dep in remaining[current].need if dep in remaining)
    return path[seen[current]:] + [current]


def topological_order(definitions: Sequence[ItemDefinition]) -> List[ItemDefinition]:
    """Order validated definitions so that needs are built first."""
    by_name = {definition.name: definition for definition in definitions}
    index = {definition.name: position for position, definition in enumerate(definitions)}

    in_degree: Dict[str, int] = {name: 0 for name in by_name}
    dependents: Dict[str, List[str]] = {name: [] for name in by_name}

    for definition in definitions:
        for dependency in dict.fromkeys(definition.need):
            if dependency not in by_name:
                raise UnresolvedDependencyError(definition.name, dependency)
            dependents[dependency].append(definition.name)
            in_degree[definition.name] += 1

    # Kahn's algorithm, ready set keyed by input position
    ready = [index[name] for name, degree in in_degree.items() if degree == 0]
    heapq.heapify(ready)
    ordered: List[ItemDefinition] = []

    while ready:
        current = definitions[heapq.heappop(ready)]
        ordered.append(current)
        for dependent in dependents[current.name]:
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                heapq.heappush(ready, index[dependent])

    if len(ordered) != len(definitions):
        placed = {definition.name for definition in ordered}
        remaining = {
            definition.name: definition
            for definition in definitions
            if definition.name not in placed
        }
        raise CyclicDependencyError(_find_cycle(remaining))

    return ordered


def sort_definitions(definitions: Iterable[DefinitionLike]) -> List[ItemDefinition]:
    """
    Validate a definition set and return it in build order.

    Raises:
        DuplicateDefinitionError: two definitions share a name
        UnresolvedDependencyError: a need names an undefined item
        CyclicDependencyError: the needs form a cycle
    """
    coerced = [coerce_definition(definition) for definition in definitions]
    check_unique_definitions(coerced)
    return topological_order(coerced)
