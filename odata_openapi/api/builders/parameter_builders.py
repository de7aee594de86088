"""
Parameter Objects: shared system query options, per-path query options,
custom headers and query options, and optimistic concurrency headers.
"""

import copy
from typing import Any, Dict, List, Optional

from ..extractors.references import parameter_ref
from ..gen_logging import get_logger
from ..utils.paths import navigation_paths, navigation_property_path, primitive_paths, property_path

logger = get_logger(__name__)

PROTOCOL_URL = "http://docs.oasis-open.org/odata/odata/v4.01/odata-v4.01-part1-protocol.html"

FILTER_DESCRIPTION = f"Filter items by property values, see [Filtering]({PROTOCOL_URL}#sec_SystemQueryOptionfilter)"
ORDERBY_DESCRIPTION = f"Order items by property values, see [Sorting]({PROTOCOL_URL}#sec_SystemQueryOptionorderby)"
SELECT_DESCRIPTION = f"Select properties to be returned, see [Select]({PROTOCOL_URL}#sec_SystemQueryOptionselect)"
EXPAND_DESCRIPTION = f"Expand related entities, see [Expand]({PROTOCOL_URL}#sec_SystemQueryOptionexpand)"


def component_parameters(ctx) -> Dict[str, Any]:
    """Shared parameters referenced as #/components/parameters/<name>."""
    prefix = ctx.query_option_prefix
    parameters = {
        "top": {
            "name": prefix + "top",
            "in": "query",
            "description": f"Show only the first n items, see [Paging - Top]({PROTOCOL_URL}#sec_SystemQueryOptiontop)",
            "schema": {"type": "integer", "minimum": 0},
            "example": 50,
        },
        "skip": {
            "name": prefix + "skip",
            "in": "query",
            "description": f"Skip the first n items, see [Paging - Skip]({PROTOCOL_URL}#sec_SystemQueryOptionskip)",
            "schema": {"type": "integer", "minimum": 0},
        },
        "count": {
            "name": prefix + "count",
            "in": "query",
            "description": f"Include count of items, see [Count]({PROTOCOL_URL}#sec_SystemQueryOptioncount)",
            "schema": {"type": "boolean"},
        },
    }
    if not ctx.version_below("4.0"):
        parameters["search"] = {
            "name": prefix + "search",
            "in": "query",
            "description": f"Search items by search phrases, see [Searching]({PROTOCOL_URL}#sec_SystemQueryOptionsearch)",
            "schema": {"type": "string"},
        }
    return parameters


def restriction_record(ctx, restrictions: Optional[Dict[str, Any]], target: Optional[Dict[str, Any]], term: str):
    """
    Effective Capabilities record for a path.

    Navigation restrictions of the path win over the annotation on the
    target entity set.
    """
    value = (restrictions or {}).get(term)
    if value is None:
        value = ctx.voc.value(target, "Capabilities", term)
    return value if value is not None else {}


def _enum_array(name: str, description: str, items: List[str]) -> Dict[str, Any]:
    return {
        "name": name,
        "in": "query",
        "description": description,
        "explode": False,
        "schema": {
            "type": "array",
            "uniqueItems": True,
            "items": {"type": "string", "enum": items},
        },
    }


def option_top(ctx, parameters, target, restrictions):
    if restriction_record(ctx, restrictions, target, "TopSupported") is not False:
        parameters.append(parameter_ref("top"))


def option_skip(ctx, parameters, target, restrictions):
    if restriction_record(ctx, restrictions, target, "SkipSupported") is not False:
        parameters.append(parameter_ref("skip"))


def option_search(ctx, parameters, target, restrictions):
    if ctx.version_below("4.0"):
        return
    search = restriction_record(ctx, restrictions, target, "SearchRestrictions")
    if search.get("Searchable") is False:
        return
    description = ctx.voc.value(search, "Core", "Description")
    if description:
        parameters.append({
            "name": ctx.query_option_prefix + "search",
            "in": "query",
            "description": description,
            "schema": {"type": "string"},
        })
    else:
        parameters.append(parameter_ref("search"))


def option_filter(ctx, parameters, target, restrictions):
    filter_restrictions = restriction_record(ctx, restrictions, target, "FilterRestrictions")
    if filter_restrictions.get("Filterable") is False:
        return
    parameter = {
        "name": ctx.query_option_prefix + "filter",
        "in": "query",
        "description": ctx.voc.value(filter_restrictions, "Core", "Description") or FILTER_DESCRIPTION,
        "schema": {"type": "string"},
    }
    if filter_restrictions.get("RequiresFilter"):
        parameter["required"] = True
    required_properties = filter_restrictions.get("RequiredProperties") or []
    if required_properties:
        parameter["description"] += "\n\nRequired filter properties:"
        for item in required_properties:
            parameter["description"] += "\n- " + property_path(item)
    parameters.append(parameter)


def option_count(ctx, parameters, target, restrictions):
    count_restrictions = restriction_record(ctx, restrictions, target, "CountRestrictions")
    if count_restrictions.get("Countable") is not False:
        parameters.append(parameter_ref("count"))


def option_orderby(ctx, parameters, type_decl, target, restrictions):
    sort = restriction_record(ctx, restrictions, target, "SortRestrictions")
    if sort.get("Sortable") is False:
        return
    non_sortable = {property_path(item) for item in sort.get("NonSortableProperties") or []}
    items = []
    for path in primitive_paths(ctx, type_decl):
        if path in non_sortable:
            continue
        items.append(path)
        items.append(path + " desc")
    if items:
        parameters.append(_enum_array(
            ctx.query_option_prefix + "orderby",
            ctx.voc.value(sort, "Core", "Description") or ORDERBY_DESCRIPTION,
            items,
        ))


def option_select(ctx, parameters, type_decl, target, restrictions):
    select = restriction_record(ctx, restrictions, target, "SelectSupport")
    if select.get("Supported") is False:
        return
    items = primitive_paths(ctx, type_decl)
    if items:
        parameters.append(_enum_array(ctx.query_option_prefix + "select", SELECT_DESCRIPTION, items))


def option_expand(ctx, parameters, type_decl, target, restrictions, level):
    expand = restriction_record(ctx, restrictions, target, "ExpandRestrictions")
    if expand.get("Expandable") is False or level >= ctx.max_levels:
        return
    non_expandable = {navigation_property_path(item) for item in expand.get("NonExpandableProperties") or []}
    items = [path for path in navigation_paths(ctx, type_decl, level=level) if path not in non_expandable]
    if items:
        parameters.append(_enum_array(ctx.query_option_prefix + "expand", EXPAND_DESCRIPTION, ["*"] + items))


def collection_query_options(ctx, parameters, type_decl, target, restrictions, level):
    """Query options of a collection GET, in a fixed order."""
    option_top(ctx, parameters, target, restrictions)
    option_skip(ctx, parameters, target, restrictions)
    option_search(ctx, parameters, target, restrictions)
    option_filter(ctx, parameters, target, restrictions)
    option_count(ctx, parameters, target, restrictions)
    option_orderby(ctx, parameters, type_decl, target, restrictions)
    option_select(ctx, parameters, type_decl, target, restrictions)
    option_expand(ctx, parameters, type_decl, target, restrictions, level)


def entity_query_options(ctx, parameters, type_decl, target, restrictions, level):
    """Query options of a single-entity GET."""
    option_select(ctx, parameters, type_decl, target, restrictions)
    option_expand(ctx, parameters, type_decl, target, restrictions, level)


def _custom_parameter(custom: Dict[str, Any], location: str) -> Dict[str, Any]:
    parameter = {
        "name": custom.get("Name"),
        "in": location,
        "required": bool(custom.get("Required", False)),
    }
    if custom.get("Description"):
        parameter["description"] = custom["Description"]
    schema = {"type": "string"}
    if custom.get("DocumentationURL"):
        schema["externalDocs"] = {"url": custom["DocumentationURL"]}
    examples = custom.get("ExampleValues") or []
    if examples and isinstance(examples[0], dict):
        schema["example"] = examples[0].get("Value")
    parameter["schema"] = schema
    return parameter


def custom_parameters(operation: Dict[str, Any], restriction: Optional[Dict[str, Any]]) -> None:
    """Append CustomHeaders and CustomQueryOptions of a restriction record."""
    restriction = restriction or {}
    headers = restriction.get("CustomHeaders") or []
    query_options = restriction.get("CustomQueryOptions") or []
    if not headers and not query_options:
        return
    parameters = operation.setdefault("parameters", [])
    for custom in headers:
        parameters.append(_custom_parameter(custom, "header"))
    for custom in query_options:
        parameters.append(_custom_parameter(custom, "query"))


def if_match_parameter() -> Dict[str, Any]:
    return {
        "name": "If-Match",
        "in": "header",
        "description": "Etag",
        "schema": {"type": "string"},
    }


def copy_parameters(parameters: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Private copies of inherited path parameters; path items never share objects."""
    return copy.deepcopy(list(parameters))
