# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Core data models for symbol tracing.

This module defines the code unit shapes that the symbol extractor walks:
- SymbolNode: A leaf identifier
- LiteralNode: An atomic value that contains no symbols
- CompositeNode: An ordered sequence of child code units
- Parameter: One entry of a function parameter list
- FunctionNode: A defined function with a parameter list and a body

And the result container:
- DependencyReport: Direct and transitive internal dependency maps

Code units are immutable. Dependency maps use JSON-compatible primitives
(names mapped to sorted lists of names) for easy serialization.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SymbolNode:
    """A leaf identifier, e.g. ``foo`` in ``foo(x)``."""

    name: str


@dataclass(frozen=True)
class LiteralNode:
    """An atomic value (number, string, boolean, None). Contributes no symbols."""

    value: Any = None


@dataclass(frozen=True)
class CompositeNode:
    """An ordered sequence of child code units.

    Calls, operators, blocks and any other construct that is not a leaf
    reduce to this shape. For a call, the first child is usually the callee.
    """

    children: Tuple[Any, ...] = ()


@dataclass(frozen=True)
class Parameter:
    """A single parameter of a function.

    ``name`` is the binding being introduced and is never reported as a
    referenced symbol. ``default`` and ``annotation`` are code units that may
    themselves reference symbols.
    """

    name: str
    default: Optional[Any] = None
    annotation: Optional[Any] = None


@dataclass(frozen=True)
class FunctionNode:
    """A defined function: a parameter list plus a body code unit."""

    parameters: Tuple[Parameter, ...] = ()
    body: Any = field(default_factory=CompositeNode)


# Code unit shapes dispatched on by the extractor
CODE_UNIT_TYPES = (SymbolNode, LiteralNode, CompositeNode, Parameter, FunctionNode)

# Name -> code unit (or any object the extractor can adapt)
Namespace = Mapping[str, Any]

# Name -> sorted list of names
DependencyMap = Dict[str, List[str]]


def call(callee: str, *args: Any, **kwargs: Any) -> CompositeNode:
    """Build a call-shaped composite: ``callee(*args, **kwargs)``.

    Positional arguments that are strings become SymbolNodes; keyword
    argument names are bindings and are dropped, only their values are kept.

    Example:
        call("foo", a=SymbolNode("A")) models ``foo(a = A)``.
    """
    children: List[Any] = [SymbolNode(callee)]
    for arg in list(args) + list(kwargs.values()):
        children.append(SymbolNode(arg) if isinstance(arg, str) else arg)
    return CompositeNode(tuple(children))


@dataclass
class DependencyReport:
    """Direct and transitive internal dependencies of a namespace.

    Both maps have one entry per name in the namespace, including names
    with no internal dependencies (empty list).
    """

    direct: DependencyMap
    transitive: DependencyMap

    def names(self) -> List[str]:
        """Return all analyzed names in namespace order."""
        return list(self.direct)

    def dependents_of(self, name: str) -> List[str]:
        """Return names whose transitive dependencies include ``name``."""
        return sorted(n for n, deps in self.transitive.items() if name in deps)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            "direct": {name: list(deps) for name, deps in self.direct.items()},
            "transitive": {name: list(deps) for name, deps in self.transitive.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DependencyReport":
        """Deserialize from JSON-compatible dict."""
        return cls(
            direct={name: sorted(deps) for name, deps in data.get("direct", {}).items()},
            transitive={name: sorted(deps) for name, deps in data.get("transitive", {}).items()},
        )
