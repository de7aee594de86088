"""Property paths, navigation paths and key segments of resource paths."""

from typing import Any, Dict, List, Optional, Union

from ..extractors.type_mapper import path_value_prefix, path_value_suffix
from ..gen_logging import get_logger

logger = get_logger(__name__)

GUID_PATTERN = "^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"

INTEGER_KEY_TYPES = ("Edm.Int64", "Edm.Int32", "Edm.Int16", "Edm.SByte", "Edm.Byte")


def navigation_property_path(path: Union[str, Dict[str, str]]) -> str:
    """Unpack a NavigationPropertyPath written as string or as {"$NavigationPropertyPath": ...}."""
    if isinstance(path, str):
        return path
    return path.get("$NavigationPropertyPath")


def property_path(path: Union[str, Dict[str, str]]) -> str:
    if isinstance(path, str):
        return path
    return path.get("$PropertyPath")


def _structured(ctx, type_name: Optional[str], kind: Optional[str] = None) -> Optional[Dict[str, Any]]:
    if not type_name or type_name.startswith("Edm."):
        return None
    declaration = ctx.lookup(type_name)
    if not isinstance(declaration, dict):
        return None
    if kind is not None and declaration.get("$Kind") != kind:
        return None
    return declaration


def navigation_paths(ctx, type_decl: Optional[Dict[str, Any]], prefix: str = "", level: int = 0) -> List[str]:
    """
    Navigation property paths reachable from a structured type.

    Recurses into single-valued complex properties and into the targets of
    non-contained navigation properties, down to ctx.max_levels.
    """
    paths = []
    for name, prop in ctx.registry.flatten_properties(type_decl).items():
        if prop.get("$Kind") == "NavigationProperty":
            paths.append(prefix + name)
            if not prop.get("$ContainsTarget") and level < ctx.max_levels:
                target = _structured(ctx, prop.get("$Type"), "EntityType")
                if target is not None:
                    paths.extend(navigation_paths(ctx, target, f"{prefix}{name}/", level + 1))
        elif prop.get("$Type") and not prop.get("$Collection") and level < ctx.max_levels:
            complex_type = _structured(ctx, prop["$Type"], "ComplexType")
            if complex_type is not None:
                paths.extend(navigation_paths(ctx, complex_type, f"{prefix}{name}/", level + 1))
    return paths


def navigation_path_map(ctx, type_decl: Optional[Dict[str, Any]], prefix: str = "", level: int = 0,
                        result: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Navigation property path -> navigation property, including paths through complex properties."""
    if result is None:
        result = {}
    for name, prop in ctx.registry.flatten_properties(type_decl).items():
        if prop.get("$Kind") == "NavigationProperty":
            result[prefix + name] = prop
        elif prop.get("$Type") and not prop.get("$Collection") and level < ctx.max_levels:
            complex_type = _structured(ctx, prop["$Type"], "ComplexType")
            if complex_type is not None:
                navigation_path_map(ctx, complex_type, f"{prefix}{name}/", level + 1, result)
    return result


def _path_entry(ctx, parent: Dict[str, Any], name: str, prop: Dict[str, Any]) -> Dict[str, Any]:
    complex_type = _structured(ctx, prop.get("$Type"), "ComplexType")
    if complex_type is not None:
        return {
            "properties": ctx.registry.flatten_properties(complex_type),
            "path": f"{parent['path']}{name}/",
            "chain": parent["chain"] + [prop["$Type"]],
            "complex": True,
        }
    return {"properties": {}, "path": parent["path"] + name, "chain": [], "complex": False}


def primitive_paths(ctx, type_decl: Optional[Dict[str, Any]], prefix: str = "") -> List[str]:
    """
    Paths of all non-navigation properties, descending into complex properties.

    A complex property whose type already occurs earlier in its own chain of
    complex types is not expanded again, so recursive complex types list
    their first level only.
    """
    if not type_decl:
        return []

    root = {"path": prefix, "chain": []}
    entries = []
    for name, prop in ctx.registry.flatten_properties(type_decl).items():
        if prop.get("$Kind") == "NavigationProperty":
            continue
        type_name = prop.get("$Type")
        if type_name and not type_name.startswith("Edm.") and ctx.lookup(type_name) is None:
            logger.debug(f"  [SKIP] Unknown type {type_name} of property {name}")
            continue
        entries.append(_path_entry(ctx, root, name, prop))

    paths = []
    index = 0
    while index < len(entries):
        entry = entries[index]
        index += 1
        if not entry["complex"]:
            paths.append(entry["path"])
            continue
        tail = entry["chain"][-1]
        if entry["chain"].count(tail) > 1:
            logger.debug(f"  [SKIP] Cycle detected {' -> '.join(entry['chain'])}")
            continue
        expanded = [
            _path_entry(ctx, entry, name, prop)
            for name, prop in entry["properties"].items()
            if prop.get("$Kind") != "NavigationProperty"
        ]
        entries[index:index] = expanded
    return paths


def _key_property(ctx, type_decl: Dict[str, Any], path: str) -> Dict[str, Any]:
    return ctx.registry.resolve_property_path(type_decl, path) or {}


def key_parameters(ctx, type_decl: Dict[str, Any], level: int) -> List[Dict[str, Any]]:
    """Path Parameter Objects for the key properties of an entity type."""
    parameters = []
    for name, path in ctx.registry.key_map(type_decl).items():
        prop = _key_property(ctx, type_decl, path)
        type_name = prop.get("$Type", "Edm.String")
        schema = {"type": "integer" if type_name in INTEGER_KEY_TYPES else "string"}
        if type_name == "Edm.Int64":
            schema["format"] = "int64"
        elif type_name == "Edm.Int32":
            schema["format"] = "int32"
        elif type_name == "Edm.Guid":
            schema["pattern"] = GUID_PATTERN
        parameters.append({
            "name": f"{name}-{level}",
            "in": "path",
            "required": True,
            "description": ctx.voc.value(prop, "Core", "Description") or f"key: {name}",
            "schema": schema,
        })
    return parameters


def path_with_keys(ctx, prefix: str, type_decl: Dict[str, Any], level: int) -> str:
    """
    Resource path addressing a single entity by key.

    Parentheses style: Books(ID={ID-0}), with string values quoted.
    Key-as-segment style: Books/{ID-0}.
    """
    segments = []
    for name, path in ctx.registry.key_map(type_decl).items():
        type_name = _key_property(ctx, type_decl, path).get("$Type", "Edm.String")
        value_prefix = path_value_prefix(type_name, ctx.key_as_segment)
        value_suffix = path_value_suffix(type_name, ctx.key_as_segment)
        segments.append((name, f"{value_prefix}{{{name}-{level}}}{value_suffix}"))

    if ctx.key_as_segment:
        return prefix + "".join(f"/{value}" for _, value in segments)
    return prefix + "(" + ",".join(f"{name}={value}" for name, value in segments) + ")"
