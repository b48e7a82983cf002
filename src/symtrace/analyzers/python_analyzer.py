# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Python source adapter for symbol tracing.

This module turns Python code into code units (see models.py) and supplies
namespaces of top-level definitions:
- to_code_unit(): ast.AST -> code unit
- object_to_code_unit(): function, method, lambda or class -> code unit
- list_definitions(): module, module name or file path -> Namespace

Conversion rules:
- ast.Name becomes a SymbolNode, whatever its context (load, store, del)
- ast.Constant becomes a LiteralNode
- Function definitions and lambdas become FunctionNodes; the function's own
  name is a binding and is dropped, parameter names are dropped too, while
  defaults and annotations are kept
- Every other node becomes a CompositeNode of its child nodes; plain string
  fields (attribute names, keyword argument names, import aliases) are
  never symbols

File reading follows the same rules as the analyzer pipeline: size limit,
UTF-8 first with latin-1 fallback.
"""

import ast
import importlib
import inspect
import logging
import textwrap
from pathlib import Path
from types import ModuleType
from typing import Any, Dict, List, Optional, Union

from symtrace.config import Config
from symtrace.models import CompositeNode, FunctionNode, LiteralNode, Parameter, SymbolNode

logger = logging.getLogger(__name__)

SourceLike = Union[ModuleType, str, Path]

_FUNCTION_NODES = (ast.FunctionDef, ast.AsyncFunctionDef)


class NamespaceLoadError(Exception):
    """Raised when a namespace cannot be obtained from its source."""

    pass


def to_code_unit(node: ast.AST) -> Any:
    """Convert a Python AST node into a code unit.

    Args:
        node: Any ast.AST node (expression, statement, module, ...).

    Returns:
        The equivalent code unit.
    """
    if isinstance(node, ast.Name):
        return SymbolNode(node.id)

    if isinstance(node, ast.Constant):
        return LiteralNode(node.value)

    if isinstance(node, _FUNCTION_NODES):
        # Decorators and return annotation sit outside the function unit
        children: List[Any] = [to_code_unit(d) for d in node.decorator_list]
        if node.returns is not None:
            children.append(to_code_unit(node.returns))
        children.append(
            FunctionNode(
                parameters=_convert_arguments(node.args),
                body=CompositeNode(tuple(to_code_unit(stmt) for stmt in node.body)),
            )
        )
        return CompositeNode(tuple(children))

    if isinstance(node, ast.Lambda):
        return FunctionNode(
            parameters=_convert_arguments(node.args),
            body=to_code_unit(node.body),
        )

    if isinstance(node, ast.ClassDef):
        class_children: List[Any] = [to_code_unit(d) for d in node.decorator_list]
        class_children.extend(to_code_unit(b) for b in node.bases)
        class_children.extend(to_code_unit(k.value) for k in node.keywords)
        class_children.extend(to_code_unit(stmt) for stmt in node.body)
        return CompositeNode(tuple(class_children))

    if isinstance(node, ast.arguments):
        # Parameter list seen outside a function, keep only what it references
        return FunctionNode(parameters=_convert_arguments(node), body=CompositeNode())

    return CompositeNode(tuple(to_code_unit(child) for child in ast.iter_child_nodes(node)))


def _convert_arguments(args: ast.arguments) -> tuple:
    """Convert ast.arguments into a tuple of Parameters.

    Positional defaults are aligned to the last positional parameters;
    keyword-only defaults are given per parameter (None when absent).
    """
    params: List[Parameter] = []

    positional = list(args.posonlyargs) + list(args.args)
    first_default = len(positional) - len(args.defaults)
    for index, arg in enumerate(positional):
        default = args.defaults[index - first_default] if index >= first_default else None
        params.append(_make_parameter(arg, default))

    if args.vararg is not None:
        params.append(_make_parameter(args.vararg, None))

    for arg, default in zip(args.kwonlyargs, args.kw_defaults):
        params.append(_make_parameter(arg, default))

    if args.kwarg is not None:
        params.append(_make_parameter(args.kwarg, None))

    return tuple(params)


def _make_parameter(arg: ast.arg, default: Optional[ast.expr]) -> Parameter:
    return Parameter(
        name=arg.arg,
        default=to_code_unit(default) if default is not None else None,
        annotation=to_code_unit(arg.annotation) if arg.annotation is not None else None,
    )


def object_to_code_unit(obj: Any) -> Optional[Any]:
    """Convert a live Python function, method, lambda or class into a code unit.

    The source is obtained with inspect.getsource(), dedented and parsed.
    For lambdas, the first lambda on the source line(s) is used.

    Args:
        obj: Function, method, lambda or class.

    Returns:
        Code unit for the definition, or None if no source is available.
    """
    target = obj.__func__ if inspect.ismethod(obj) else obj

    try:
        source = textwrap.dedent(inspect.getsource(target))
    except (OSError, TypeError) as e:
        logger.debug(f"No source available for {target!r}: {e}")
        return None

    try:
        module_ast = ast.parse(source)
    except SyntaxError as e:
        # Typically a lambda embedded in a larger expression
        logger.debug(f"Cannot parse source of {target!r}: {e.msg}")
        return None

    node = _find_definition_node(module_ast, target)
    if node is None:
        logger.debug(f"No definition found in source of {target!r}")
        return None

    return to_code_unit(node)


def _find_definition_node(module_ast: ast.Module, target: Any) -> Optional[ast.AST]:
    """Find the AST node defining ``target`` in its parsed source."""
    name = getattr(target, "__name__", None)

    if inspect.isclass(target):
        wanted: tuple = (ast.ClassDef,)
    elif name == "<lambda>":
        wanted = (ast.Lambda,)
    else:
        wanted = _FUNCTION_NODES

    fallback: Optional[ast.AST] = None
    for node in ast.walk(module_ast):
        if not isinstance(node, wanted):
            continue
        if isinstance(node, ast.Lambda) or getattr(node, "name", None) == name:
            return node
        if fallback is None:
            fallback = node
    return fallback


def list_definitions(source: SourceLike, config: Optional[Config] = None) -> Dict[str, Any]:
    """Collect the top-level definitions of a Python module.

    Args:
        source: A module object, an importable module name, or the path of
            a Python source file.
        config: Configuration controlling which definitions are included.
            If None, loads .symtrace.yml from the current directory.

    Returns:
        Ordered mapping of definition name to code unit. Functions map to
        their FunctionNode-bearing unit, classes to their body unit, and
        module-level assignments to the assigned value's unit.

    Raises:
        NamespaceLoadError: If the source cannot be located, read or parsed.
    """
    if config is None:
        config = Config()

    filename, text = _load_source(source, config)

    try:
        module_ast = ast.parse(text, filename=filename, mode="exec")
    except SyntaxError as e:
        raise NamespaceLoadError(f"Syntax error in {filename} at line {e.lineno}: {e.msg}") from e

    namespace: Dict[str, Any] = {}
    for node in module_ast.body:
        for name, unit in _definitions_in_statement(node, config):
            if not config.include_private and name.startswith("_"):
                continue
            # Later definitions replace earlier ones, as at runtime
            namespace.pop(name, None)
            namespace[name] = unit

    logger.debug(f"Loaded {len(namespace)} definitions from {filename}")
    return namespace


def _definitions_in_statement(node: ast.stmt, config: Config) -> List[tuple]:
    """Return (name, code unit) pairs defined by one top-level statement."""
    if isinstance(node, _FUNCTION_NODES):
        return [(node.name, to_code_unit(node))]

    if isinstance(node, ast.ClassDef):
        return [(node.name, to_code_unit(node))] if config.include_classes else []

    if not config.include_assignments:
        return []

    if isinstance(node, ast.Assign):
        unit = to_code_unit(node.value)
        return [(target.id, unit) for target in node.targets if isinstance(target, ast.Name)]

    if isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name):
        if node.value is None:
            return []
        return [(node.target.id, to_code_unit(node.value))]

    return []


def _load_source(source: SourceLike, config: Config) -> tuple:
    """Resolve a source to (filename, text).

    Raises:
        NamespaceLoadError: If the source cannot be located or read.
    """
    if isinstance(source, Path) or (isinstance(source, str) and source.endswith(".py")):
        return str(source), _read_file(Path(source), config.max_file_size_bytes)

    if isinstance(source, str):
        try:
            source = importlib.import_module(source)
        except ImportError as e:
            raise NamespaceLoadError(f"Cannot import module '{source}': {e}") from e

    if isinstance(source, ModuleType):
        module_file = getattr(source, "__file__", None)
        if module_file and module_file.endswith(".py"):
            return module_file, _read_file(Path(module_file), config.max_file_size_bytes)
        try:
            return source.__name__, inspect.getsource(source)
        except (OSError, TypeError) as e:
            raise NamespaceLoadError(f"No source available for module {source.__name__}") from e

    raise NamespaceLoadError(f"Unsupported namespace source: {source!r}")


def _read_file(path: Path, max_size_bytes: int) -> str:
    """Read a source file with UTF-8/latin-1 fallback and a size limit.

    Raises:
        NamespaceLoadError: If the file is missing, too large or unreadable.
    """
    try:
        file_size = path.stat().st_size
    except FileNotFoundError as e:
        raise NamespaceLoadError(f"File not found: {path}") from e
    except OSError as e:
        raise NamespaceLoadError(f"Cannot access {path}: {e}") from e

    if file_size > max_size_bytes:
        raise NamespaceLoadError(f"{path}: {file_size} bytes exceeds limit ({max_size_bytes})")

    try:
        try:
            return path.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            # latin-1 accepts all byte values
            logger.warning(f"⚠️ File {path} is not UTF-8, using latin-1 fallback encoding")
            return path.read_text(encoding="latin-1")
    except PermissionError as e:
        raise NamespaceLoadError(f"Permission denied reading file: {path}") from e
    except OSError as e:
        raise NamespaceLoadError(f"Cannot read {path}: {e}") from e
