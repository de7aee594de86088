"""
Component schemas for structured, enumeration and type-definition types.

Structured types get one schema per variant:

    ""         read    (response payloads)
    "-create"  create  (POST bodies, the only variant carrying "required")
    "-update"  update  (PATCH bodies, no keys, no immutable properties)

A type with a base type is emitted as allOf [base, own properties]. The base
side points at the auxiliary "-base" variant of the parent, which carries the
parent's own shape without the parent's anyOf over its subtypes.
"""

from typing import Any, Dict, Tuple

from ..extractors.references import schema_ref
from ..extractors.schema_extractor import ER_ANNOTATIONS, synthesize_schema
from ..gen_logging import get_logger
from ..utils.naming import is_identifier

logger = get_logger(__name__)

SUFFIX = {
    "read": "",
    "create": "-create",
    "update": "-update",
}

BASE_SUFFIX = "-base"

TITLE_SUFFIX = {
    "": "",
    "-create": " (for create)",
    "-update": " (for update)",
}

ODM_ANNOTATIONS = {
    "@ODM.entityName": "x-sap-odm-entity-name",
    "@ODM.oid": "x-sap-odm-oid",
}

ER_TYPE_ANNOTATIONS = ER_ANNOTATIONS

OPENAPI_EXTENSIONS_PREFIX = "@OpenAPI.Extensions."


def split_suffix(suffix: str) -> Tuple[str, bool]:
    """"-base-create" -> ("-create", True), "-update" -> ("-update", False)."""
    if suffix.startswith(BASE_SUFFIX):
        return suffix[len(BASE_SUFFIX):], True
    return suffix, False


def openapi_extensions(element: Dict[str, Any]) -> Dict[str, Any]:
    """
    @OpenAPI.Extensions.<name> annotations as specification extensions.

    Names already starting with "x-sap-" are kept, "sap-..." gains the "x-"
    prefix, everything else is put under "x-sap-".
    """
    extensions = {}
    for key, value in (element or {}).items():
        if not key.startswith(OPENAPI_EXTENSIONS_PREFIX):
            continue
        name = key[len(OPENAPI_EXTENSIONS_PREFIX):]
        if name.startswith("x-sap-"):
            extensions[name] = value
        elif name.startswith("sap-"):
            extensions["x-" + name] = value
        else:
            extensions["x-sap-" + name] = value
    return extensions


def _is_countable(ctx, name: str) -> bool:
    """False when the entity set named like the type is annotated not countable."""
    container = ctx.entity_container or {}
    child = container.get(name)
    restrictions = ctx.voc.value(child, "Capabilities", "CountRestrictions") or {}
    return restrictions.get("Countable") is not False


def _read_only(ctx, prop: Dict[str, Any]) -> bool:
    voc = ctx.voc
    return voc.value(prop, "Core", "Permissions") == "Read" or bool(voc.value(prop, "Core", "Computed"))


def _variant_properties(ctx, name: str, properties: Dict[str, Any], keys, suffix: str):
    """
    Properties and required names of one variant over the given property map.

    Returns (schema properties, required list). The required list is only
    meaningful for the create variant.
    """
    voc = ctx.voc
    count_allowed = _is_countable(ctx, name)
    schema_properties = {}
    required = [key for key in keys if key in properties]

    for prop_name, prop in properties.items():
        if voc.value(prop, "Common", "FieldControl") == "Mandatory":
            required.append(prop_name)

        if prop.get("$Kind") == "NavigationProperty":
            contained = prop.get("$ContainsTarget") or prop.get("$OnDelete") == "Cascade"
            if suffix == SUFFIX["read"]:
                schema_properties[prop_name] = synthesize_schema(ctx, prop)
                if prop.get("$Collection") and contained and count_allowed:
                    schema_properties[f"{prop_name}{ctx.count_property}"] = schema_ref("count")
                    ctx.inline_types.add("count")
            elif contained and not _read_only(ctx, prop):
                # deep inserts and deep updates both send create-shaped payloads
                schema_properties[prop_name] = synthesize_schema(ctx, prop, SUFFIX["create"])
            continue

        if _read_only(ctx, prop) or voc.value(prop, "Core", "ComputedDefaultValue"):
            required = [item for item in required if item != prop_name]

        if suffix == SUFFIX["read"]:
            schema_properties[prop_name] = synthesize_schema(ctx, prop)
        elif not _read_only(ctx, prop):
            if suffix == SUFFIX["create"]:
                schema_properties[prop_name] = synthesize_schema(ctx, prop, SUFFIX["create"])
            elif prop_name not in keys and not voc.value(prop, "Core", "Immutable"):
                schema_properties[prop_name] = synthesize_schema(ctx, prop, SUFFIX["update"])

    return schema_properties, list(dict.fromkeys(required))


def _object_schema(properties: Dict[str, Any], required, suffix: str) -> Dict[str, Any]:
    schema = {"type": "object"}
    if properties:
        schema["properties"] = properties
    if suffix == SUFFIX["create"] and required:
        schema["required"] = required
    return schema


def schemas_for_structured_type(ctx, schemas: Dict[str, Any], namespace: str, name: str, type_decl: Dict[str, Any], suffix: str) -> None:
    """Add the schema of one structured type variant (possibly a "-base" variant)."""
    voc = ctx.voc
    registry = ctx.registry
    variant, is_base = split_suffix(suffix)
    schema_name = f"{namespace}.{name}{suffix}"
    keys = registry.key_properties(type_decl)
    base_name = type_decl.get("$BaseType")
    if base_name and not isinstance(registry.lookup(base_name), dict):
        base_name = None

    if base_name:
        own_properties, required = _variant_properties(
            ctx, name, registry.own_properties(type_decl), keys, variant
        )
        schema = {
            "title": (voc.value(type_decl, "Core", "Description") or name) + TITLE_SUFFIX[variant],
            "allOf": [
                ctx.ref(base_name, BASE_SUFFIX + variant),
                _object_schema(own_properties, required, variant),
            ],
        }
    else:
        properties, required = _variant_properties(
            ctx, name, registry.own_properties(type_decl), keys, variant
        )
        schema = {
            "title": (voc.value(type_decl, "Core", "Description") or name) + TITLE_SUFFIX[variant],
        }
        schema.update(_object_schema(properties, required, variant))

    schemas[schema_name] = schema
    if is_base:
        return

    if variant == SUFFIX["read"] and type_decl.get("@ODM.root"):
        schema["x-sap-root-entity"] = type_decl["@ODM.root"]
    for annotation, extension in ODM_ANNOTATIONS.items():
        if type_decl.get(annotation):
            schema[extension] = type_decl[annotation]
    for annotation, extension in ER_TYPE_ANNOTATIONS.items():
        if type_decl.get(annotation):
            schema[extension] = type_decl[annotation]

    description = voc.value(type_decl, "Core", "LongDescription")
    if description:
        schema["description"] = description

    derived = registry.derived_types(f"{namespace}.{name}")
    if derived:
        schema["anyOf"] = [ctx.ref(derived_name, variant) for derived_name in derived]
        if not type_decl.get("$Abstract"):
            schema["anyOf"].append({})


def schema_for_enumeration_type(ctx, schemas: Dict[str, Any], namespace: str, name: str, type_decl: Dict[str, Any]) -> None:
    schema = {
        "type": "string",
        "title": name,
        "enum": [member for member in type_decl if is_identifier(member)],
    }
    description = ctx.voc.value(type_decl, "Core", "LongDescription")
    if description:
        schema["description"] = description
    schemas[f"{namespace}.{name}"] = schema


def schema_for_type_definition(ctx, schemas: Dict[str, Any], namespace: str, name: str, type_decl: Dict[str, Any]) -> None:
    element = {"$Type": type_decl.get("$UnderlyingType")}
    element.update(type_decl)
    schema = synthesize_schema(ctx, element)
    schema["title"] = name
    description = ctx.voc.value(type_decl, "Core", "LongDescription")
    if description:
        schema["description"] = description
    schemas[f"{namespace}.{name}"] = schema


def geo_schemas() -> Dict[str, Any]:
    return {
        "geoPoint": {
            "type": "object",
            "properties": {
                "coordinates": schema_ref("geoPosition"),
                "type": {"type": "string", "enum": ["Point"], "default": "Point"},
            },
            "required": ["type", "coordinates"],
        },
        "geoPosition": {
            "type": "array",
            "minItems": 2,
            "items": {"type": "number"},
        },
    }


def count_schema() -> Dict[str, Any]:
    return {
        "anyOf": [{"type": "number"}, {"type": "string"}],
        "description": "The number of entities in the collection. Available when using the "
                       "[$count](http://docs.oasis-open.org/odata/odata/v4.01/odata-v4.01-part1-protocol.html#sec_SystemQueryOptioncount) query option.",
    }


def error_schema(ctx) -> Dict[str, Any]:
    """OData error payload; pre-4.0 services use the V2 message shape."""
    error = {
        "type": "object",
        "required": ["error"],
        "properties": {
            "error": {
                "type": "object",
                "required": ["code", "message"],
                "properties": {
                    "code": {"type": "string"},
                    "message": {"type": "string"},
                    "target": {"type": "string"},
                    "details": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "required": ["code", "message"],
                            "properties": {
                                "code": {"type": "string"},
                                "message": {"type": "string"},
                                "target": {"type": "string"},
                            },
                        },
                    },
                    "innererror": {
                        "type": "object",
                        "description": "The structure of this object is service-specific",
                    },
                },
            }
        },
    }

    if ctx.version_below("4.0"):
        inner = error["properties"]["error"]["properties"]
        inner["message"] = {
            "type": "object",
            "properties": {
                "lang": {"type": "string"},
                "value": {"type": "string"},
            },
            "required": ["lang", "value"],
        }
        del inner["details"]
        del inner["target"]

    return error


def build_schemas(ctx) -> Dict[str, Any]:
    """
    Drain the required-schema work-list and return the sorted schema map.

    Building one schema may reference further types; those are appended to
    the work-list and picked up by the same loop.
    """
    unordered = {}
    for entry in ctx.tracker.drain():
        type_decl = ctx.lookup(f"{entry.namespace}.{entry.name}")
        if not isinstance(type_decl, dict):
            logger.warning(f"  [WARN] Unknown type {entry.namespace}.{entry.name}")
            continue
        kind = type_decl.get("$Kind")
        if kind in ("EntityType", "ComplexType"):
            schemas_for_structured_type(ctx, unordered, entry.namespace, entry.name, type_decl, entry.suffix)
        elif kind == "EnumType":
            schema_for_enumeration_type(ctx, unordered, entry.namespace, entry.name, type_decl)
        elif kind == "TypeDefinition":
            schema_for_type_definition(ctx, unordered, entry.namespace, entry.name, type_decl)
        logger.debug(f"  [SCHEMA] {entry.namespace}.{entry.name}{entry.suffix}")

    # @OpenAPI.Extensions on structured types go onto their read schema
    for namespace, name, type_decl in ctx.registry.iter_types():
        if type_decl.get("$Kind") not in ("EntityType", "ComplexType"):
            continue
        schema_name = f"{namespace}.{name}{SUFFIX['read']}"
        extensions = openapi_extensions(type_decl)
        if extensions and schema_name in unordered:
            unordered[schema_name].update(extensions)

    ordered = {name: unordered[name] for name in sorted(unordered)}

    if "geoPoint" in ctx.inline_types:
        ordered.update(geo_schemas())

    if ctx.entity_container is not None or "count" in ctx.inline_types:
        ordered["count"] = count_schema()
    if ctx.entity_container is not None:
        ordered["error"] = error_schema(ctx)

    return ordered


def require_all_types(ctx) -> None:
    """Request every type of the document; used for documents without a container."""
    for namespace, name, type_decl in ctx.registry.iter_types():
        kind = type_decl.get("$Kind")
        if kind in ("EntityType", "ComplexType"):
            for suffix in SUFFIX.values():
                ctx.tracker.request_reference(namespace, name, suffix)
        elif kind in ("EnumType", "TypeDefinition"):
            ctx.tracker.request_reference(namespace, name)
