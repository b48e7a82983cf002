# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Symbol extraction and internal dependency tracing for Python namespaces."""

from .analyzers import NamespaceLoadError, list_definitions, object_to_code_unit, to_code_unit
from .config import Config, ConfigurationError
from .extractor import extract_symbols
from .logging_setup import StructuredFormatter, setup_logging
from .models import (
    CompositeNode,
    DependencyReport,
    FunctionNode,
    LiteralNode,
    Parameter,
    SymbolNode,
    call,
)
from .resolver import (
    DependencyResolver,
    closure_of,
    direct_internal_symbols,
    required_definitions,
    transitive_internal_deps,
    unused_definitions,
)

__version__ = "0.1.0"

__all__ = [
    # Code units
    "SymbolNode",
    "LiteralNode",
    "CompositeNode",
    "Parameter",
    "FunctionNode",
    "call",
    # Extraction
    "extract_symbols",
    "to_code_unit",
    "object_to_code_unit",
    # Namespaces
    "list_definitions",
    "NamespaceLoadError",
    # Resolution
    "direct_internal_symbols",
    "transitive_internal_deps",
    "closure_of",
    "required_definitions",
    "unused_definitions",
    "DependencyResolver",
    "DependencyReport",
    # Configuration
    "Config",
    "ConfigurationError",
    # Logging
    "setup_logging",
    "StructuredFormatter",
]
