# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Symbol extraction from code units.

extract_symbols() walks a code unit and returns every distinct identifier
referenced anywhere in it, including nested sub-expressions, function bodies
and parameter default values. Parameter names themselves are bindings, not
references, and are skipped.

Accepted inputs:
- Code units from models.py (SymbolNode, LiteralNode, CompositeNode,
  FunctionNode, Parameter), and lists/tuples of them
- Python AST nodes, converted with to_code_unit()
- Live Python functions, methods, lambdas and classes, converted from source
- Atomic Python values (None, bool, numbers, str, bytes), which contribute nothing

Anything else is an unknown shape: it is logged at DEBUG level and
contributes no symbols. Extraction never raises for finite, acyclic input.
"""

import ast
import inspect
import logging
from typing import Any, List, Set

from symtrace.analyzers.python_analyzer import object_to_code_unit, to_code_unit
from symtrace.models import CODE_UNIT_TYPES, CompositeNode, FunctionNode, Parameter, SymbolNode

logger = logging.getLogger(__name__)

ATOMIC_TYPES = (type(None), bool, int, float, complex, str, bytes)


def extract_symbols(unit: Any) -> List[str]:
    """Find all symbols used in a code unit or Python function.

    Args:
        unit: A code unit, AST node, or Python function/class.

    Returns:
        Sorted list of distinct symbol names.

    Example:
        >>> extract_symbols(ast.parse("foo(a=A)", mode="eval"))
        ['A', 'foo']
    """
    sym_table: Set[str] = set()
    _extract_symbols_impl(unit, sym_table)
    return sorted(sym_table)


def _extract_symbols_impl(unit: Any, sym_table: Set[str]) -> None:
    """Recurse over ``unit``, adding every symbol found to ``sym_table``.

    ``sym_table`` is shared by all recursive calls so each level does not
    allocate and merge its own set.
    """
    if isinstance(unit, CODE_UNIT_TYPES):
        _extract_code_unit_symbols(unit, sym_table)

    elif isinstance(unit, ATOMIC_TYPES):
        # Literals can't contain symbols
        pass

    elif isinstance(unit, (list, tuple)):
        for child in unit:
            _extract_symbols_impl(child, sym_table)

    elif isinstance(unit, ast.AST):
        _extract_symbols_impl(to_code_unit(unit), sym_table)

    elif inspect.isfunction(unit) or inspect.ismethod(unit) or inspect.isclass(unit):
        converted = object_to_code_unit(unit)
        if converted is not None:
            _extract_symbols_impl(converted, sym_table)

    else:
        logger.debug(f"Don't know how to handle object of type {type(unit).__name__}, skipping")


def _extract_code_unit_symbols(unit: Any, sym_table: Set[str]) -> None:
    if isinstance(unit, SymbolNode):
        if isinstance(unit.name, str) and unit.name:
            sym_table.add(unit.name)

    elif isinstance(unit, CompositeNode):
        for child in unit.children:
            _extract_symbols_impl(child, sym_table)

    elif isinstance(unit, FunctionNode):
        _extract_symbols_impl(unit.body, sym_table)
        _extract_parameter_list_symbols(unit.parameters, sym_table)

    elif isinstance(unit, Parameter):
        _extract_parameter_symbols(unit, sym_table)

    # LiteralNode contributes nothing


def _extract_parameter_list_symbols(parameters: Any, sym_table: Set[str]) -> None:
    """Walk a parameter list given as a tuple, list or CompositeNode.

    Only Parameter entries are walked. Anything else in the list is a
    binding of unknown shape and contributes nothing.
    """
    if isinstance(parameters, CompositeNode):
        parameters = parameters.children
    if not isinstance(parameters, (list, tuple)):
        logger.debug(
            f"Don't know how to handle parameter list of type {type(parameters).__name__}, "
            f"skipping"
        )
        return

    for param in parameters:
        if isinstance(param, Parameter):
            _extract_parameter_symbols(param, sym_table)
        else:
            logger.debug(
                f"Don't know how to handle parameter of type {type(param).__name__}, skipping"
            )


def _extract_parameter_symbols(param: Parameter, sym_table: Set[str]) -> None:
    # The parameter name is a binding; only its default and annotation are references
    if param.default is not None:
        _extract_symbols_impl(param.default, sym_table)
    if param.annotation is not None:
        _extract_symbols_impl(param.annotation, sym_table)
