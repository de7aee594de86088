"""
Schema Objects for model elements (properties, parameters, return types).

synthesize_schema() is the single place where a typed CSDL element turns into
JSON Schema. Each step may have to wrap a bare $ref in allOf first, because a
Reference Object cannot carry sibling keywords.
"""

from typing import Any, Dict, Optional

from ..gen_logging import get_logger
from .type_mapper import (
    GEO_POINT_TYPES,
    is_string_type,
    map_primitive,
    path_value_prefix,
    path_value_suffix,
)

logger = get_logger(__name__)

STRUCTURED_KINDS = ("EntityType", "ComplexType")

ODM_OID_REFERENCE = "@ODM.oidReference"

ER_ANNOTATION_PREFIX = "@EntityRelationship"
ER_ANNOTATIONS = {
    "@EntityRelationship.entityType": "x-entity-relationship-entity-type",
    "@EntityRelationship.entityIds": "x-entity-relationship-entity-ids",
    "@EntityRelationship.propertyType": "x-entity-relationship-property-type",
    "@EntityRelationship.reference": "x-entity-relationship-reference",
    "@EntityRelationship.compositeReferences": "x-entity-relationship-composite-references",
    "@EntityRelationship.temporalIds": "x-entity-relationship-temporal-ids",
    "@EntityRelationship.temporalReferences": "x-entity-relationship-temporal-references",
    "@EntityRelationship.referencesWithConstantIds": "x-entity-relationship-references-with-constant-ids",
}


def _wrap_ref(schema: Dict[str, Any]) -> Dict[str, Any]:
    if "$ref" in schema:
        return {"allOf": [schema]}
    return schema


def literal_type(ctx, type_name: Optional[str]) -> Optional[str]:
    """Primitive type behind a type name, following type definitions."""
    if type_name and not type_name.startswith("Edm."):
        declaration = ctx.lookup(type_name)
        if isinstance(declaration, dict) and declaration.get("$Kind") == "TypeDefinition":
            return declaration.get("$UnderlyingType")
    return type_name


def _type_schema(ctx, element: Dict[str, Any], suffix: str) -> Dict[str, Any]:
    type_name = element.get("$Type")

    if type_name is None or type_name.startswith("Edm."):
        if type_name in GEO_POINT_TYPES:
            ctx.inline_types.add("geoPoint")
        return map_primitive(type_name, element, ctx.voc)

    if ctx.registry.is_external(type_name):
        schema = ctx.ref(type_name, suffix)
    else:
        declaration = ctx.lookup(type_name)
        if not isinstance(declaration, dict):
            logger.warning(f"  [WARN] Unknown type {type_name}, using string schema")
            return {"type": "string"}
        structured = declaration.get("$Kind") in STRUCTURED_KINDS
        schema = ctx.ref(type_name, suffix if structured else "")

    if element.get("$MaxLength"):
        schema = {"allOf": [schema], "maxLength": element["$MaxLength"]}
    return schema


def _allowed_values(ctx, schema: Dict[str, Any], element: Dict[str, Any]) -> None:
    values = ctx.voc.value(element, "Validation", "AllowedValues")
    if not values:
        return
    schema["enum"] = [record.get("Value") if isinstance(record, dict) else record for record in values]
    descriptions = {}
    for record in values:
        if isinstance(record, dict):
            description = ctx.voc.value(record, "Core", "Description")
            if description:
                descriptions[str(record.get("Value"))] = description
    if descriptions:
        schema["x-sap-enum-descriptions"] = descriptions


def _function_literal(ctx, schema: Dict[str, Any], element: Dict[str, Any]) -> Dict[str, Any]:
    """Rewrite example and pattern for values written into a function call URL."""
    type_name = literal_type(ctx, element.get("$Type"))
    prefix = path_value_prefix(type_name)
    suffix = path_value_suffix(type_name)

    if is_string_type(type_name) or element.get("$Nullable"):
        schema = _wrap_ref(schema)

    if isinstance(schema.get("example"), str):
        schema["example"] = f"{prefix}{schema['example']}{suffix}"

    pattern = schema.get("pattern")
    if pattern:
        if pattern.startswith("^"):
            pattern = pattern[1:]
        if pattern.endswith("$"):
            pattern = pattern[:-1]
        schema["pattern"] = f"^{prefix}({pattern}){suffix}$"
    elif is_string_type(type_name):
        schema["pattern"] = "^'([^']|'')*'$"

    if element.get("$Nullable"):
        schema["default"] = "null"
        if schema.get("pattern"):
            schema["pattern"] = "^(null|" + schema["pattern"][1:-1] + ")$"
    return schema


def _bound_target(schema: Dict[str, Any]) -> Dict[str, Any]:
    """Numeric bounds belong on the number branch of a number-or-string union."""
    if schema.get("anyOf"):
        return schema["anyOf"][0]
    return schema


def synthesize_schema(
    ctx,
    element: Dict[str, Any],
    suffix: str = "",
    for_parameter: bool = False,
    for_function: bool = False,
) -> Dict[str, Any]:
    """
    Build the Schema Object for a typed model element.

    Args:
        ctx: ConversionContext of the running conversion
        element: property, parameter or return type declaration
        suffix: schema variant ("", "-create", "-update") used for structured types
        for_parameter: omit the description, it goes on the Parameter Object
        for_function: value is a function parameter written as a URL literal

    Returns:
        Schema Object (a new dict)
    """
    voc = ctx.voc
    schema = _type_schema(ctx, element, suffix)

    if voc.value(element, "Validation", "AllowedValues"):
        schema = _wrap_ref(schema)
        _allowed_values(ctx, schema, element)

    if element.get("$Nullable"):
        schema = _wrap_ref(schema)
        schema["nullable"] = True

    if "$DefaultValue" in element:
        schema = _wrap_ref(schema)
        schema["default"] = element["$DefaultValue"]

    example = voc.value(element, "Core", "Example")
    if example is not None:
        schema = _wrap_ref(schema)
        schema["example"] = example.get("Value") if isinstance(example, dict) else example

    if for_function:
        schema = _function_literal(ctx, schema, element)

    maximum = voc.value(element, "Validation", "Maximum")
    if maximum is not None:
        schema = _wrap_ref(schema)
        target = _bound_target(schema)
        target["maximum"] = maximum
        if voc.nested(element, "Validation", "Maximum", "Validation", "Exclusive"):
            target["exclusiveMaximum"] = True

    minimum = voc.value(element, "Validation", "Minimum")
    if minimum is not None:
        schema = _wrap_ref(schema)
        target = _bound_target(schema)
        target["minimum"] = minimum
        if voc.nested(element, "Validation", "Minimum", "Validation", "Exclusive"):
            target["exclusiveMinimum"] = True

    if element.get("$Collection"):
        schema = {"type": "array", "items": schema}

    description = voc.value(element, "Core", "LongDescription")
    if description and not for_parameter:
        schema = _wrap_ref(schema)
        schema["description"] = description

    oid_reference = element.get(ODM_OID_REFERENCE)
    if isinstance(oid_reference, dict) and oid_reference.get("entityName"):
        schema = _wrap_ref(schema)
        schema["x-sap-odm-oid-reference-entity-name"] = oid_reference["entityName"]

    for key, value in element.items():
        if key.startswith(ER_ANNOTATION_PREFIX) and key in ER_ANNOTATIONS:
            schema = _wrap_ref(schema)
            schema[ER_ANNOTATIONS[key]] = value

    return schema
