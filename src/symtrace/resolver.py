# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Internal dependency resolution for a namespace of definitions.

Given a namespace (name -> code unit):
- direct_internal_symbols() finds, for each name, the symbols its code
  references that are themselves names in the namespace
- transitive_internal_deps() follows those edges recursively, so that for a
  given name it yields every internal definition needed to run it

Built on those two:
- required_definitions(): minimal subset of the namespace needed by a set of roots
- unused_definitions(): dead-code candidates
- DependencyResolver: binds a namespace and configuration, caching the direct map

Closure traversal keeps a visited set per top-level name. A name already
visited is never expanded again, but it stays in the result. A name appears
in its own result only when it references itself directly (a recursive
function); reaching it back through a longer cycle does not add it.
"""

import concurrent.futures
import logging
from collections.abc import Mapping
from typing import Any, Dict, Iterable, List, Optional, Set, Union

from symtrace.analyzers.python_analyzer import SourceLike, list_definitions
from symtrace.config import Config
from symtrace.extractor import extract_symbols
from symtrace.models import DependencyMap, DependencyReport, Namespace

logger = logging.getLogger(__name__)

NamespaceOrSource = Union[Namespace, SourceLike]


def _as_namespace(env: NamespaceOrSource) -> Namespace:
    """Return ``env`` as a mapping, loading it from a module/path if needed."""
    if isinstance(env, Mapping):
        return env
    return list_definitions(env)


def direct_internal_symbols(env: NamespaceOrSource, max_workers: int = 1) -> DependencyMap:
    """Find, for each definition, the internal symbols it uses directly.

    Args:
        env: Namespace mapping, or a module / module name / file path to
            load one from.
        max_workers: Number of threads used for symbol extraction. 1 runs
            sequentially.

    Returns:
        Mapping with one entry per name in the namespace (in namespace order)
        to the sorted list of referenced symbols that are also names in the
        namespace. Names without internal dependencies map to [].
    """
    namespace = _as_namespace(env)
    names = list(namespace)

    if max_workers > 1 and len(names) > 1:
        with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
            all_symbols = list(executor.map(extract_symbols, (namespace[n] for n in names)))
    else:
        all_symbols = [extract_symbols(namespace[n]) for n in names]

    # Keep only symbols naming objects in this namespace
    name_set = set(names)
    direct: DependencyMap = {}
    for name, symbols in zip(names, all_symbols):
        direct[name] = [s for s in symbols if s in name_set]

    logger.debug(f"Extracted direct internal symbols for {len(direct)} definitions")
    return direct


def transitive_internal_deps(env: NamespaceOrSource, max_workers: int = 1) -> DependencyMap:
    """Find, for each definition, every internal definition it depends on.

    Args:
        env: Namespace mapping, or a module / module name / file path to
            load one from.
        max_workers: Number of threads used for symbol extraction.

    Returns:
        Mapping with one entry per name to the sorted list of names reachable
        by following direct internal dependencies.
    """
    direct = direct_internal_symbols(env, max_workers=max_workers)
    return closure_of(direct)


def closure_of(direct: DependencyMap) -> DependencyMap:
    """Compute the transitive closure of a direct dependency map.

    Args:
        direct: Name -> names it depends on directly. Edges to names that
            are not keys of ``direct`` are ignored.

    Returns:
        Name -> sorted names reachable from it, restricted to the keys of
        ``direct``.
    """
    return {name: _find_internal_deps_one(name, direct) for name in direct}


def _find_internal_deps_one(name: str, direct: DependencyMap) -> List[str]:
    visited: Set[str] = set()
    _find_internal_deps_one_impl(name, direct, visited)
    if name not in direct.get(name, []):
        visited.discard(name)
    return sorted(dep for dep in visited if dep in direct)


def _find_internal_deps_one_impl(name: str, direct: DependencyMap, visited: Set[str]) -> None:
    """Depth-first walk from ``name``, recording reached names in ``visited``.

    The start name is not pre-marked, so a cycle through it expands its
    children once more before stopping. An explicit stack keeps deep chains
    off the call stack.
    """
    stack: List[str] = list(reversed(direct.get(name, [])))
    while stack:
        current = stack.pop()
        if current in visited:
            continue
        visited.add(current)
        stack.extend(dep for dep in reversed(direct.get(current, [])) if dep not in visited)


def _normalize_roots(roots: Union[str, Iterable[str]]) -> List[str]:
    if isinstance(roots, str):
        return [roots]
    return list(roots)


def required_definitions(
    env: NamespaceOrSource,
    roots: Union[str, Iterable[str]],
    max_workers: int = 1,
) -> List[str]:
    """Find the minimal set of definitions needed to keep ``roots``.

    Args:
        env: Namespace mapping, or a source to load one from.
        roots: Name or names the caller wants to keep.
        max_workers: Number of threads used for symbol extraction.

    Returns:
        Sorted union of the roots and their transitive internal dependencies.
        Roots that are not names in the namespace are logged and ignored.
    """
    transitive = transitive_internal_deps(env, max_workers=max_workers)
    return _required_from_closure(transitive, _normalize_roots(roots))


def _required_from_closure(transitive: DependencyMap, roots: List[str]) -> List[str]:
    required: Set[str] = set()
    for root in roots:
        if root not in transitive:
            logger.warning(f"'{root}' is not defined in the namespace, ignoring")
            continue
        required.add(root)
        required.update(transitive[root])
    return sorted(required)


def unused_definitions(
    env: NamespaceOrSource,
    roots: Optional[Union[str, Iterable[str]]] = None,
    max_workers: int = 1,
) -> List[str]:
    """Find definitions that nothing needs.

    Args:
        env: Namespace mapping, or a source to load one from.
        roots: Entry points to keep. If given, every name outside
            required_definitions(env, roots) is unused. If None, a name is
            unused when no other definition references it directly;
            a function that only calls itself still counts as unused.
        max_workers: Number of threads used for symbol extraction.

    Returns:
        Sorted list of unused names.
    """
    direct = direct_internal_symbols(env, max_workers=max_workers)
    return _unused_from_direct(direct, roots)


def _unused_from_direct(
    direct: DependencyMap, roots: Optional[Union[str, Iterable[str]]]
) -> List[str]:
    if roots is not None:
        required = set(_required_from_closure(closure_of(direct), _normalize_roots(roots)))
        return sorted(name for name in direct if name not in required)

    referenced: Set[str] = set()
    for name, deps in direct.items():
        referenced.update(dep for dep in deps if dep != name)
    return sorted(name for name in direct if name not in referenced)


class DependencyResolver:
    """Resolves internal dependencies for one namespace.

    The direct dependency map is computed on first use and cached; the
    namespace is treated as read-only for the resolver's lifetime.

    Usage:
        resolver = DependencyResolver.from_source("mypackage.utils")
        resolver.transitive()["main"]
        resolver.required(["main"])
    """

    def __init__(self, namespace: Namespace, config: Optional[Config] = None) -> None:
        """Initialize the resolver.

        Args:
            namespace: Mapping of name to code unit.
            config: Configuration. If None, loads .symtrace.yml from the
                current directory.
        """
        self.namespace = namespace
        self.config = config if config is not None else Config()
        self._direct: Optional[DependencyMap] = None

    @classmethod
    def from_source(
        cls, source: SourceLike, config: Optional[Config] = None
    ) -> "DependencyResolver":
        """Create a resolver for the definitions of a module, module name or file.

        Raises:
            NamespaceLoadError: If the source cannot be loaded.
        """
        if config is None:
            config = Config()
        return cls(list_definitions(source, config), config)

    def names(self) -> List[str]:
        return list(self.namespace)

    def symbols(self, name: str) -> List[str]:
        """Return every symbol referenced by ``name``, internal or not.

        Raises:
            KeyError: If ``name`` is not in the namespace.
        """
        return extract_symbols(self.namespace[name])

    def direct(self) -> DependencyMap:
        """Return the direct internal dependency map."""
        if self._direct is None:
            self._direct = direct_internal_symbols(
                self.namespace, max_workers=self.config.max_workers
            )
        return {name: list(deps) for name, deps in self._direct.items()}

    def transitive(self) -> DependencyMap:
        """Return the transitive internal dependency map."""
        return closure_of(self.direct())

    def required(self, roots: Union[str, Iterable[str]]) -> List[str]:
        """Return the roots plus everything they transitively need."""
        return _required_from_closure(self.transitive(), _normalize_roots(roots))

    def unused(self, roots: Optional[Union[str, Iterable[str]]] = None) -> List[str]:
        """Return dead-code candidates (see unused_definitions())."""
        return _unused_from_direct(self.direct(), roots)

    def report(self) -> DependencyReport:
        """Return both dependency maps in one serializable report."""
        direct = self.direct()
        return DependencyReport(direct=direct, transitive=closure_of(direct))

    def subset(self, roots: Union[str, Iterable[str]]) -> Dict[str, Any]:
        """Return the part of the namespace needed by ``roots``, in namespace order."""
        required = set(self.required(roots))
        return {name: unit for name, unit in self.namespace.items() if name in required}
