"""
Loading and checking of CSDL JSON documents.

This module provides the entry points for reading a CSDL document from a file
or a string, plus the read-only accessors the CLI uses to describe a document.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Tuple

from odata_openapi.api.extractors.model_extractor import TypeRegistry
from odata_openapi.api.graph import check_acyclic
from odata_openapi.api.utils.naming import is_identifier, parse_qualified_name
from odata_openapi.errors import OpenAPIConversionError


# ------------------------------------------------------------------------------
# Public document builders

def build_document(document_path: str) -> Dict[str, Any]:
    """Read a CSDL JSON document from a file path."""
    path = Path(document_path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise OpenAPIConversionError(f"Cannot read CSDL document {document_path}: {e}", {"path": str(path)}) from e
    return build_document_str(text, source=str(path))


def build_document_str(document_str: str, source: str = "<string>") -> Dict[str, Any]:
    """Parse a CSDL JSON document from a string."""
    try:
        document = json.loads(document_str)
    except json.JSONDecodeError as e:
        raise OpenAPIConversionError(
            f"Invalid JSON in CSDL document {source}: {e.msg} (line {e.lineno}, column {e.colno})",
            {"source": source, "line": e.lineno, "column": e.colno},
        ) from e
    if not isinstance(document, dict):
        raise OpenAPIConversionError(
            f"CSDL document {source} must be a JSON object",
            {"source": source},
        )
    return document


# ------------------------------------------------------------------------------
# Document accessors

def get_document_namespaces(document: Dict[str, Any]) -> List[str]:
    return TypeRegistry(document).schema_namespaces()


def get_document_types(document: Dict[str, Any]) -> List[Tuple[str, str, str]]:
    """(qualified name, kind, base type) of every type declaration."""
    return [
        (f"{namespace}.{name}", declaration["$Kind"], declaration.get("$BaseType", ""))
        for namespace, name, declaration in TypeRegistry(document).iter_types()
        if declaration["$Kind"] in ("EntityType", "ComplexType", "EnumType", "TypeDefinition")
    ]


def get_container_children(document: Dict[str, Any]) -> List[Tuple[str, str, str]]:
    """(name, kind, type or operation) of every entity container child."""
    container = TypeRegistry(document).entity_container() or {}
    children = []
    for name, child in container.items():
        if not is_identifier(name) or not isinstance(child, dict):
            continue
        if child.get("$Action"):
            children.append((name, "ActionImport", child["$Action"]))
        elif child.get("$Function"):
            children.append((name, "FunctionImport", child["$Function"]))
        elif child.get("$Collection"):
            children.append((name, "EntitySet", child.get("$Type", "")))
        else:
            children.append((name, "Singleton", child.get("$Type", "")))
    return children


# ------------------------------------------------------------------------------
# Checks

def _type_references(element: Dict[str, Any]):
    for key, value in element.items():
        if key in ("$Type", "$BaseType", "$UnderlyingType") and isinstance(value, str):
            yield value
        elif isinstance(value, dict) and is_identifier(key):
            yield from _type_references(value)


def verify_document(document: Dict[str, Any]) -> List[str]:
    """
    Check names and the inheritance graph of a document.

    Returns the list of warnings (unknown type references). Raises
    InvalidNameError for malformed qualified names and CyclicTypeError for
    cyclic base types.
    """
    registry = TypeRegistry(document)
    warnings = []
    for namespace, name, declaration in registry.iter_types():
        for type_name in _type_references(declaration):
            parse_qualified_name(type_name)
            if type_name.startswith("Edm.") or registry.is_external(type_name):
                continue
            if registry.lookup(type_name) is None:
                warnings.append(f"{namespace}.{name}: unknown type {type_name}")
    check_acyclic(registry.type_graph)
    return warnings
