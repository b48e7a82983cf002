# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tests for namespace dependency resolution.

Test Coverage:
- direct_internal_symbols(): filtering to namespace names, empty entries
- transitive_internal_deps(): chains, cycles, self-reference, closure property
- Parallel extraction gives the same results as sequential extraction
- required_definitions() / unused_definitions()
- DependencyResolver and DependencyReport
"""

import ast
import logging

import pytest

from symtrace.config import Config
from symtrace.extractor import extract_symbols
from symtrace.models import CompositeNode, FunctionNode, LiteralNode, Parameter, SymbolNode, call
from symtrace.resolver import (
    DependencyResolver,
    closure_of,
    direct_internal_symbols,
    required_definitions,
    transitive_internal_deps,
    unused_definitions,
)


def _source_namespace(source: str) -> dict:
    """Build a namespace from the top-level functions of a source string."""
    tree = ast.parse(source)
    return {node.name: node for node in tree.body if isinstance(node, ast.FunctionDef)}


@pytest.fixture
def mixed_namespace():
    """Namespace mixing internal and external references."""
    return {
        "main": FunctionNode(
            parameters=(Parameter("path", default=SymbolNode("DEFAULT_PATH")),),
            body=call("run", call("print", "path"), call("load", "path")),
        ),
        "run": call("validate", "data"),
        "load": call("open", "path"),
        "validate": CompositeNode((call("len", "data"), LiteralNode(0))),
        "DEFAULT_PATH": LiteralNode("/tmp"),
        "unused": call("helper"),
    }


class TestDirectInternalSymbols:
    """Tests for direct_internal_symbols()."""

    def test_filters_to_namespace_names(self, mixed_namespace):
        direct = direct_internal_symbols(mixed_namespace)

        assert direct == {
            "main": ["DEFAULT_PATH", "load", "run"],
            "run": ["validate"],
            "load": [],
            "validate": [],
            "DEFAULT_PATH": [],
            "unused": [],
        }

    def test_every_name_has_an_entry_in_namespace_order(self, mixed_namespace):
        direct = direct_internal_symbols(mixed_namespace)
        assert list(direct) == list(mixed_namespace)

    def test_subset_of_extracted_symbols(self, mixed_namespace):
        direct = direct_internal_symbols(mixed_namespace)

        for name, deps in direct.items():
            assert set(deps) <= set(extract_symbols(mixed_namespace[name]))
            assert all(dep in mixed_namespace for dep in deps)

    def test_empty_namespace(self):
        assert direct_internal_symbols({}) == {}
        assert transitive_internal_deps({}) == {}

    def test_python_ast_namespace(self):
        namespace = _source_namespace(
            "def a(x=b):\n    return c(x)\n\n"
            "def b():\n    return 1\n\n"
            "def c(y):\n    return print(y)\n"
        )
        assert direct_internal_symbols(namespace) == {"a": ["b", "c"], "b": [], "c": []}

    def test_parallel_extraction_matches_sequential(self, mixed_namespace):
        sequential = direct_internal_symbols(mixed_namespace)
        parallel = direct_internal_symbols(mixed_namespace, max_workers=4)
        assert parallel == sequential
        assert list(parallel) == list(sequential)


class TestTransitiveInternalDeps:
    """Tests for transitive_internal_deps()."""

    def test_chain(self):
        namespace = {"a": SymbolNode("b"), "b": call("c"), "c": LiteralNode(1)}

        assert transitive_internal_deps(namespace) == {"a": ["b", "c"], "b": ["c"], "c": []}

    def test_mutual_cycle_terminates(self):
        namespace = {"a": call("b"), "b": call("a")}

        assert transitive_internal_deps(namespace) == {"a": ["b"], "b": ["a"]}

    def test_self_reference_is_included(self):
        namespace = {"f": call("f", "g"), "g": CompositeNode()}

        result = transitive_internal_deps(namespace)

        assert result["f"] == ["f", "g"]
        assert result["g"] == []

    def test_self_reference_inside_larger_cycle(self):
        namespace = {"a": call("a", "b"), "b": call("c"), "c": call("a")}

        result = transitive_internal_deps(namespace)

        assert result["a"] == ["a", "b", "c"]
        assert result["b"] == ["a", "c"]
        assert result["c"] == ["a", "b"]

    def test_shared_dependency_visited_once(self):
        """Diamond shapes still produce each name once."""
        namespace = {
            "top": call("left", "right"),
            "left": call("base"),
            "right": call("base"),
            "base": LiteralNode(None),
        }

        assert transitive_internal_deps(namespace)["top"] == ["base", "left", "right"]

    def test_closure_property(self, mixed_namespace):
        direct = direct_internal_symbols(mixed_namespace)
        transitive = transitive_internal_deps(mixed_namespace)

        for name, deps in transitive.items():
            assert set(direct[name]) <= set(deps)
            for dep in deps:
                assert set(direct[dep]) - {name} <= set(deps)

    def test_closure_property_with_cycles(self):
        namespace = {
            "a": call("b"),
            "b": call("c", "d"),
            "c": call("a"),
            "d": call("d"),
            "e": call("a"),
        }
        direct = direct_internal_symbols(namespace)
        transitive = transitive_internal_deps(namespace)

        assert transitive["e"] == ["a", "b", "c", "d"]
        for name, deps in transitive.items():
            assert set(direct[name]) <= set(deps)
            for dep in deps:
                assert set(direct[dep]) - {name} <= set(deps)

    def test_long_chain_does_not_hit_recursion_limit(self):
        size = 5000
        direct = {f"f{i}": [f"f{i + 1}"] for i in range(size)}
        direct[f"f{size}"] = []

        result = closure_of(direct)

        assert len(result["f0"]) == size
        assert result[f"f{size}"] == []

    def test_closure_of_ignores_edges_to_unknown_names(self):
        result = closure_of({"a": ["b", "missing"], "b": ["missing", "c"], "c": []})
        assert result == {"a": ["b", "c"], "b": ["c"], "c": []}

    def test_traversals_do_not_share_state(self):
        namespace = {"a": call("b"), "b": call("c"), "c": LiteralNode(0)}

        first = transitive_internal_deps(namespace)
        second = transitive_internal_deps(namespace)

        assert first == second
        assert first["b"] == ["c"]


class TestRequiredAndUnused:
    """Tests for minimal-subset extraction and dead-code candidates."""

    def test_required_definitions(self, mixed_namespace):
        assert required_definitions(mixed_namespace, "main") == [
            "DEFAULT_PATH",
            "load",
            "main",
            "run",
            "validate",
        ]

    def test_required_definitions_multiple_roots(self, mixed_namespace):
        assert required_definitions(mixed_namespace, ["run", "unused"]) == [
            "run",
            "unused",
            "validate",
        ]

    def test_unknown_root_is_ignored(self, mixed_namespace, caplog):
        with caplog.at_level(logging.WARNING):
            assert required_definitions(mixed_namespace, ["nope", "load"]) == ["load"]

        assert "'nope' is not defined in the namespace" in caplog.text

    def test_unused_with_roots(self, mixed_namespace):
        assert unused_definitions(mixed_namespace, roots=["main"]) == ["unused"]

    def test_unused_without_roots(self, mixed_namespace):
        assert unused_definitions(mixed_namespace) == ["main", "unused"]

    def test_self_reference_does_not_count_as_use(self):
        namespace = {"recursive": call("recursive"), "used": LiteralNode(1), "user": call("used")}
        assert unused_definitions(namespace) == ["recursive", "user"]


class TestDependencyResolver:
    """Tests for DependencyResolver."""

    @pytest.fixture
    def resolver(self, mixed_namespace):
        return DependencyResolver(mixed_namespace, Config.from_dict({"max_workers": 2}))

    def test_direct_and_transitive(self, resolver, mixed_namespace):
        assert resolver.direct() == direct_internal_symbols(mixed_namespace)
        assert resolver.transitive() == transitive_internal_deps(mixed_namespace)

    def test_direct_map_is_cached_but_copies_are_returned(self, resolver):
        first = resolver.direct()
        first["main"].append("tampered")

        assert "tampered" not in resolver.direct()["main"]

    def test_symbols_includes_external_names(self, resolver):
        assert resolver.symbols("load") == ["open", "path"]

    def test_symbols_unknown_name(self, resolver):
        with pytest.raises(KeyError):
            resolver.symbols("missing")

    def test_required_unused_and_subset(self, resolver, mixed_namespace):
        assert resolver.required("run") == ["run", "validate"]
        assert resolver.unused("main") == ["unused"]

        subset = resolver.subset("run")
        assert list(subset) == ["run", "validate"]
        assert subset["run"] is mixed_namespace["run"]

    def test_report(self, resolver):
        report = resolver.report()

        assert report.names() == resolver.names()
        assert report.transitive["main"] == ["DEFAULT_PATH", "load", "run", "validate"]
        assert report.dependents_of("validate") == ["main", "run"]

        data = report.to_dict()
        assert data["direct"]["run"] == ["validate"]
