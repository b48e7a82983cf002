# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Language analyzers that turn source code into code units.

Components:
- to_code_unit: Convert a Python AST node into a code unit
- object_to_code_unit: Convert a live function, method, lambda or class
- list_definitions: Load the namespace of top-level definitions of a module
"""

from symtrace.analyzers.python_analyzer import (
    NamespaceLoadError,
    list_definitions,
    object_to_code_unit,
    to_code_unit,
)

__all__ = ["NamespaceLoadError", "list_definitions", "object_to_code_unit", "to_code_unit"]
