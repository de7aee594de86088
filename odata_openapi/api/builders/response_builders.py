"""Responses Objects for entity, collection and operation results."""

from typing import Any, Dict, List, Optional

from ..extractors.references import response_ref, schema_ref
from ..extractors.schema_extractor import synthesize_schema
from ..utils.naming import parse_qualified_name

NON_VALUE_EDM_TYPES = ("Edm.Stream", "Edm.EntityType", "Edm.ComplexType")


def error_response() -> Dict[str, Any]:
    """The shared "error" component response."""
    return {
        "description": "Error",
        "content": {
            "application/json": {"schema": schema_ref("error")},
        },
    }


def etag_header() -> Dict[str, Any]:
    return {
        "ETag": {
            "description": "Entity tag",
            "schema": {"type": "string"},
        }
    }


def _payload_schema(ctx, return_type: Dict[str, Any], with_count: bool) -> Dict[str, Any]:
    schema = synthesize_schema(ctx, return_type)
    type_name = return_type.get("$Type") or "Edm.String"

    if return_type.get("$Collection"):
        properties = {}
        if with_count:
            properties[ctx.count_property] = schema_ref("count")
        properties["value"] = schema
        return {
            "type": "object",
            "title": "Collection of " + parse_qualified_name(type_name).name,
            "properties": properties,
        }

    if return_type.get("$Type") is None or (
        type_name.startswith("Edm.") and type_name not in NON_VALUE_EDM_TYPES
    ):
        # primitive results are wrapped in a {"value": ...} object
        return {"type": "object", "properties": {"value": schema}}

    return schema


def response(
    ctx,
    code: int,
    description: str,
    return_type: Optional[Dict[str, Any]] = None,
    errors: Optional[List[Dict[str, Any]]] = None,
    with_count: bool = True,
) -> Dict[str, Any]:
    """
    Build a Responses Object with one success response and error responses.

    Args:
        ctx: ConversionContext
        code: success status code; 204 responses carry no content
        description: description of the success response
        return_type: typed element describing the payload ($Type, $Collection, ...)
        errors: OperationRestrictions/ErrorResponses-style records
            ({"StatusCode": ..., "Description": ...}); replaces the default 4XX
        with_count: add the count annotation to collection payloads

    Returns:
        Responses Object keyed by status code
    """
    status = str(code)
    responses = {status: {"description": description}}
    if code != 204:
        responses[status]["content"] = {
            "application/json": {"schema": _payload_schema(ctx, return_type or {}, with_count)},
        }

    if errors:
        for error in errors:
            responses[str(error.get("StatusCode"))] = {
                "description": error.get("Description"),
                "content": {
                    "application/json": {"schema": schema_ref("error")},
                },
            }
    else:
        responses["4XX"] = response_ref("error")
    return responses
