"""
Path Items for actions, functions, their imports, and the $batch endpoint.

Actions are POST requests with a JSON body, functions are GET requests with
parameters in the URL. Bound operations drop the binding parameter, it is
supplied by the path they are appended to.
"""

from typing import Any, Dict, List, Optional

from ..extractors.schema_extractor import synthesize_schema
from ..gen_logging import get_logger
from ..utils.naming import is_identifier, namespace_qualified_name, parse_qualified_name
from .parameter_builders import copy_parameters, custom_parameters
from .response_builders import response
from .schema_builders import openapi_extensions

logger = get_logger(__name__)

SYSTEM_QUERY_OPTIONS = (
    "compute",
    "expand",
    "select",
    "filter",
    "search",
    "count",
    "orderby",
    "skip",
    "top",
    "format",
    "index",
    "schemaversion",
    "skiptoken",
    "apply",
)

LITERALS_URL = (
    "https://docs.oasis-open.org/odata/odata/v4.01/odata-v4.01-part2-url-conventions.html"
    "#sec_ComplexandCollectionLiterals"
)

DEFAULT_TAG = "Service Operations"


def _simple_name(operation_name: str) -> str:
    if "." not in operation_name:
        return operation_name
    return parse_qualified_name(operation_name).name


def _operation_parameters(overload: Dict[str, Any]) -> List[Dict[str, Any]]:
    parameters = overload.get("$Parameter") or []
    if overload.get("$IsBound"):
        parameters = parameters[1:]
    return parameters


def _operation_restrictions(ctx, overload: Dict[str, Any]) -> Dict[str, Any]:
    return ctx.voc.value(overload, "Capabilities", "OperationRestrictions") or {}


def _tag(ctx, overload: Dict[str, Any], source_name: Optional[str]) -> str:
    return ctx.voc.value(overload, "Common", "Label") or source_name or DEFAULT_TAG


def path_item_action(ctx, paths, prefix, prefix_parameters, action_name, overload, source_name, action_import=None):
    """Add the POST Path Item of an action overload."""
    voc = ctx.voc
    action_import = action_import or {}
    restrictions = _operation_restrictions(ctx, overload)
    errors = restrictions.get("ErrorResponses")

    if overload.get("$ReturnType"):
        responses = response(ctx, 200, "Success", overload["$ReturnType"], errors)
    else:
        responses = response(ctx, 204, "Success", None, errors)

    operation = {
        "summary": voc.value(action_import, "Core", "Description")
        or voc.value(overload, "Core", "Description")
        or "Invokes action " + _simple_name(action_name),
        "tags": [_tag(ctx, overload, source_name)],
        "responses": responses,
    }
    operation.update(openapi_extensions(overload))

    description = voc.value(action_import, "Core", "LongDescription") or voc.value(overload, "Core", "LongDescription")
    if description:
        operation["description"] = description
    if prefix_parameters:
        operation["parameters"] = copy_parameters(prefix_parameters)

    parameters = _operation_parameters(overload)
    if parameters:
        operation["requestBody"] = {
            "description": "Action parameters",
            "content": {
                "application/json": {
                    "schema": {
                        "type": "object",
                        "properties": {
                            parameter["$Name"]: synthesize_schema(ctx, parameter) for parameter in parameters
                        },
                    }
                }
            },
        }

    custom_parameters(operation, restrictions)
    paths[prefix] = {"post": operation}


def _structured_or_stream(ctx, parameter: Dict[str, Any]) -> bool:
    type_name = parameter.get("$Type") or "Edm.String"
    if parameter.get("$Collection") or type_name == "Edm.Stream":
        return True
    declaration = None if type_name.startswith("Edm.") else ctx.lookup(type_name)
    if not isinstance(declaration, dict):
        return False
    return declaration.get("$Kind") in ("ComplexType", "EntityType") or declaration.get("$UnderlyingType") == "Edm.Stream"


def _is_string_parameter(ctx, parameter: Dict[str, Any]) -> bool:
    type_name = parameter.get("$Type")
    if not type_name or type_name == "Edm.String":
        return True
    if type_name.startswith("Edm."):
        return False
    # enumeration and type definition values are written as quoted literals too
    return isinstance(ctx.lookup(type_name), dict)


def _append_description(parameter: Dict[str, Any], text: str) -> None:
    if parameter.get("description"):
        parameter["description"] += "  \n" + text
    else:
        parameter["description"] = text


def path_item_function(ctx, paths, prefix, prefix_parameters, function_name, overload, source_name, function_import=None):
    """
    Add the GET Path Item of a function overload.

    With implicit parameter aliases (version > 4.0, or any optional
    parameter) all parameters are query options. Otherwise primitive
    parameters become path segments "name={name}" and structured ones
    explicit aliases "name=@name".
    """
    voc = ctx.voc
    function_import = function_import or {}
    parameters = _operation_parameters(overload)
    implicit_aliases = ctx.version_above("4.0") or any(
        voc.has(parameter, "Core", "OptionalParameter") for parameter in parameters
    )
    allow_at_names = implicit_aliases and ctx.version != "2.0"

    segments = []
    function_parameters = []
    for parameter in parameters:
        name = parameter["$Name"]
        result = {
            "required": not voc.has(parameter, "Core", "OptionalParameter") if implicit_aliases else True,
        }
        description = "  \n".join(
            text for text in (
                voc.value(parameter, "Core", "Description"),
                voc.value(parameter, "Core", "LongDescription"),
            ) if text
        )
        if description:
            result["description"] = description

        reserved = allow_at_names and name.lower() in SYSTEM_QUERY_OPTIONS
        if _structured_or_stream(ctx, parameter):
            result["in"] = "query"
            if reserved:
                result["name"] = "@" + name
            elif implicit_aliases:
                result["name"] = name
            else:
                segments.append(f"{name}=@{name}")
                result["name"] = "@" + name
            result["schema"] = {"type": "string"}
            type_name = namespace_qualified_name(parameter.get("$Type") or "Edm.String", ctx.registry.namespaces)
            if parameter.get("$Collection"):
                text = f"This is a URL-encoded JSON array with items of type {type_name}"
            else:
                text = f"This is URL-encoded JSON of type {type_name}"
            _append_description(result, f"{text}, see [Complex and Collection Literals]({LITERALS_URL})")
            result["example"] = "[]" if parameter.get("$Collection") else "{}"
        else:
            if implicit_aliases:
                result["in"] = "query"
            else:
                segments.append(f"{name}={{{name}}}")
                result["in"] = "path"
            result["name"] = "@" + name if reserved else name
            if _is_string_parameter(ctx, parameter):
                _append_description(result, "String value needs to be enclosed in single quotes")
            result["schema"] = synthesize_schema(ctx, parameter, for_parameter=True, for_function=True)
        function_parameters.append(result)

    restrictions = _operation_restrictions(ctx, overload)
    operation = {
        "summary": voc.value(function_import, "Core", "Description")
        or voc.value(overload, "Core", "Description")
        or "Invokes function " + _simple_name(function_name),
        "tags": [_tag(ctx, overload, source_name)],
        "parameters": copy_parameters(prefix_parameters) + function_parameters,
        "responses": response(ctx, 200, "Success", overload.get("$ReturnType"), restrictions.get("ErrorResponses")),
    }
    operation.update(openapi_extensions(overload))

    description = voc.value(function_import, "Core", "LongDescription") or voc.value(overload, "Core", "LongDescription")
    if description:
        operation["description"] = description

    custom_parameters(operation, restrictions)
    path = prefix if implicit_aliases else f"{prefix}({','.join(segments)})"
    paths[path] = {"get": operation}


def path_item_action_import(ctx, paths, name, child):
    overloads = ctx.lookup(child["$Action"])
    overload = next(
        (item for item in overloads or [] if isinstance(item, dict) and not item.get("$IsBound")),
        None,
    )
    if overload is None:
        logger.warning(f"  [WARN] Unknown action {child['$Action']} in action import {name}")
        return
    path_item_action(ctx, paths, "/" + name, [], child["$Action"], overload, child.get("$EntitySet"), child)


def path_item_function_import(ctx, paths, name, child):
    overloads = ctx.lookup(child["$Function"])
    if not overloads:
        logger.warning(f"  [WARN] Unknown function {child['$Function']} in function import {name}")
        return
    for overload in overloads:
        if isinstance(overload, dict) and not overload.get("$IsBound"):
            path_item_function(ctx, paths, "/" + name, [], child["$Function"], overload, child.get("$EntitySet"), child)


def path_items_for_bound_operations(ctx, paths, prefix, prefix_parameters, element, source_name, by_key=False):
    """Add Path Items of the operations bound to the type (or collection) of an element."""
    if element.get("$Kind") == "NavigationProperty":
        return
    collection = bool(element.get("$Collection")) and not by_key
    for operation_name, overload in ctx.registry.bound_overloads(element["$Type"], collection):
        path = f"{prefix}/{operation_name}"
        if overload.get("$Kind") == "Action":
            path_item_action(ctx, paths, path, prefix_parameters, operation_name, overload, source_name)
        else:
            path_item_function(ctx, paths, path, prefix_parameters, operation_name, overload, source_name)


def path_item_batch(ctx, paths, container):
    """Add the /$batch Path Item unless batch requests are switched off."""
    voc = ctx.voc
    batch_support = voc.value(container, "Capabilities", "BatchSupport") or {}
    if voc.value(container, "Capabilities", "BatchSupported") is False or batch_support.get("Supported") is False:
        return

    first_entity_set = next(
        (name for name, child in container.items()
         if is_identifier(name) and isinstance(child, dict) and child.get("$Collection")),
        None,
    )
    description = voc.value(batch_support, "Core", "LongDescription") or (
        "Group multiple requests into a single request payload, see "
        "[Batch Requests](http://docs.oasis-open.org/odata/odata/v4.01/odata-v4.01-part1-protocol.html#sec_BatchRequests)."
    )
    operation = {
        "summary": voc.value(batch_support, "Core", "Description") or "Sends a group of requests",
        "description": description + '\n\n*Please note that "Try it out" is not supported for this request.*',
        "tags": ["Batch Requests"],
        "requestBody": {
            "required": True,
            "description": "Batch request",
            "content": {
                "multipart/mixed;boundary=request-separator": {
                    "schema": {"type": "string"},
                    "example": "--request-separator\n"
                               "Content-Type: application/http\n"
                               "Content-Transfer-Encoding: binary\n\n"
                               f"GET {first_entity_set} HTTP/1.1\n"
                               "Accept: application/json\n\n"
                               "\n--request-separator--",
                }
            },
        },
        "responses": {
            "4XX": {"$ref": "#/components/responses/error"},
        },
    }
    status = "202" if ctx.version_below("4.0") else "200"
    operation["responses"][status] = {
        "description": "Batch response",
        "content": {
            "multipart/mixed": {
                "schema": {"type": "string"},
                "example": "--response-separator\n"
                           "Content-Type: application/http\n\n"
                           "HTTP/1.1 200 OK\n"
                           "Content-Type: application/json\n\n"
                           "{...}"
                           "\n--response-separator--",
            }
        },
    }
    paths["/$batch"] = {"post": operation}
