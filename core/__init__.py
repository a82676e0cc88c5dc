"""
Holder - Core Module

Foundational pieces shared by the rest of the holder:
- Error hierarchy (configuration errors, state contract violations)
- Definition, pack and lifecycle record types

Usage:
    from core import ItemDefinition, ItemPack, ConfigurationError
"""

from core.errors import (
    AdapterError,
    ConfigurationError,
    CyclicDependencyError,
    DefinitionError,
    DuplicateDefinitionError,
    ErrorContext,
    ErrorSeverity,
    HolderError,
    InvalidStateError,
    UnknownAdapterError,
    UnresolvedDependencyError,
)
from core.types import (
    Action,
    BuildContext,
    Builder,
    DefinitionLike,
    ItemDefinition,
    ItemName,
    ItemPack,
    LifecycleRecord,
    coerce_definition,
    normalize_need,
)

__all__ = [
    # Errors
    "HolderError",
    "ConfigurationError",
    "DefinitionError",
    "DuplicateDefinitionError",
    "CyclicDependencyError",
    "UnresolvedDependencyError",
    "UnknownAdapterError",
    "AdapterError",
    "InvalidStateError",
    "ErrorContext",
    "ErrorSeverity",
    # Types
    "Action",
    "BuildContext",
    "Builder",
    "DefinitionLike",
    "ItemDefinition",
    "ItemName",
    "ItemPack",
    "LifecycleRecord",
    "coerce_definition",
    "normalize_need",
]
