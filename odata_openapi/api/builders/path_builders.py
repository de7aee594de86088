"""
Paths Object from the entity container.

Every entity set and singleton gets a resource path; collections get a
by-key path, and navigation properties are followed recursively down to
ctx.max_levels, re-applying the same pattern relative to the parent path.
Key parameters of the parent paths are passed down as prefix parameters.
"""

from typing import Any, Dict, List, Optional

from ..crud_helpers import (
    get_operation_http_method,
    get_operation_status_code,
    get_operation_summary,
    get_response_description,
    is_operation_allowed,
)
from ..gen_logging import get_logger
from ..utils.naming import enum_member, is_identifier
from ..utils.paths import key_parameters, navigation_path_map, navigation_property_path, path_with_keys
from .operation_builders import (
    path_item_action_import,
    path_item_batch,
    path_item_function_import,
    path_items_for_bound_operations,
)
from .parameter_builders import (
    collection_query_options,
    copy_parameters,
    custom_parameters,
    entity_query_options,
    if_match_parameter,
    restriction_record,
)
from .response_builders import etag_header, response

logger = get_logger(__name__)


def _join(navigation_path: str, name: str) -> str:
    return f"{navigation_path}/{name}" if navigation_path else name


def navigation_restrictions(ctx, root: Dict[str, Any], navigation_path: str) -> Dict[str, Any]:
    """RestrictedProperties entry of the root entity set for a navigation path, or {}."""
    restrictions = ctx.voc.value(root, "Capabilities", "NavigationRestrictions") or {}
    for item in restrictions.get("RestrictedProperties") or []:
        if navigation_property_path(item.get("NavigationProperty")) == navigation_path:
            return item
    return {}


def non_expandable_properties(ctx, root: Dict[str, Any], navigation_path: str) -> List[str]:
    """NonExpandableProperties of the root entity set, relative to a navigation path."""
    expand = ctx.voc.value(root, "Capabilities", "ExpandRestrictions") or {}
    prefix = f"{navigation_path}/" if navigation_path else ""
    result = []
    for item in expand.get("NonExpandableProperties") or []:
        path = navigation_property_path(item)
        if path.startswith(prefix):
            result.append(path[len(prefix):])
    return result


def _expand_restrictions(ctx, restrictions, target, non_expandable):
    """Navigation restrictions with the relative non-expandable paths folded in."""
    if not non_expandable:
        return restrictions
    merged = dict(restrictions)
    expand = dict(restriction_record(ctx, restrictions, target, "ExpandRestrictions"))
    expand["NonExpandableProperties"] = list(expand.get("NonExpandableProperties") or []) + non_expandable
    merged["ExpandRestrictions"] = expand
    return merged


def _has_concurrency_control(ctx, target: Optional[Dict[str, Any]]) -> bool:
    return ctx.voc.has(target, "Core", "OptimisticConcurrency")


def _tags(source_name: str, target_name: Optional[str], target) -> List[str]:
    tags = [source_name]
    if target is not None and target_name and target_name != source_name:
        tags.append(target_name)
    return tags


def operation_read(ctx, path_item, element, name, source_name, target_name, target, level, restrictions, by_key, non_expandable):
    voc = ctx.voc
    read = restriction_record(ctx, restrictions, target, "ReadRestrictions")
    read_by_key = read.get("ReadByKeyRestrictions")

    readable = True
    if by_key and read_by_key and "Readable" in read_by_key:
        readable = read_by_key["Readable"]
    elif "Readable" in read:
        readable = read["Readable"]
    if readable is False:
        return

    descriptions = read
    if by_key:
        descriptions = read_by_key or {}
    collection = bool(element.get("$Collection")) and not by_key
    operation_name = "list" if collection else "read"

    count_restrictions = voc.value(target, "Capabilities", "CountRestrictions") or {}
    errors = (read_by_key or {}).get("ErrorResponses") if by_key else read.get("ErrorResponses")
    operation = {
        "summary": voc.value(descriptions, "Core", "Description") or get_operation_summary(operation_name, name),
        "tags": _tags(source_name, target_name, target),
        "parameters": [],
        "responses": response(
            ctx,
            get_operation_status_code(operation_name),
            get_response_description(operation_name),
            {"$Type": element["$Type"], "$Collection": collection},
            errors,
            count_restrictions.get("Countable") is not False,
        ),
    }

    change_tracking = voc.value(element, "Capabilities", "ChangeTracking") or {}
    if collection and change_tracking.get("Supported"):
        base_path = ctx.options.base_path or ""
        operation["responses"]["200"]["content"]["application/json"]["schema"]["properties"]["@odata.deltaLink"] = {
            "type": "string",
            "example": f"{base_path}/{name}?$deltatoken=opaque server-generated token for fetching the delta",
        }

    if not collection and _has_concurrency_control(ctx, target):
        operation["responses"]["200"]["headers"] = etag_header()

    description = voc.value(descriptions, "Core", "LongDescription")
    if description:
        operation["description"] = description

    custom_parameters(operation, (read_by_key or read) if by_key else read)

    type_decl = ctx.lookup(element["$Type"])
    query_restrictions = _expand_restrictions(ctx, restrictions, target, non_expandable)
    if collection:
        collection_query_options(ctx, operation["parameters"], type_decl, target, query_restrictions, level)
    else:
        entity_query_options(ctx, operation["parameters"], type_decl, target, query_restrictions, level)

    path_item["get"] = operation


def operation_create(ctx, path_item, element, name, source_name, target_name, target, restrictions):
    voc = ctx.voc
    insert = restriction_record(ctx, restrictions, target, "InsertRestrictions")
    if not is_operation_allowed("create", insert):
        return
    type_decl = ctx.lookup(element["$Type"])
    operation = {
        "summary": voc.value(insert, "Core", "Description") or get_operation_summary("create", name),
        "tags": _tags(source_name, target_name, target),
        "requestBody": {
            "description": voc.value(type_decl, "Core", "Description") or "New entity",
            "required": True,
            "content": {
                "application/json": {"schema": ctx.ref(element["$Type"], "-create")},
            },
        },
        "responses": response(
            ctx,
            get_operation_status_code("create"),
            get_response_description("create"),
            {"$Type": element["$Type"]},
            insert.get("ErrorResponses"),
        ),
    }
    description = voc.value(insert, "Core", "LongDescription")
    if description:
        operation["description"] = description
    custom_parameters(operation, insert)
    path_item["post"] = operation


def operation_update(ctx, path_item, element, name, source_name, target, restrictions):
    voc = ctx.voc
    update = restriction_record(ctx, restrictions, target, "UpdateRestrictions")
    if not is_operation_allowed("update", update) or voc.value(element, "Core", "Immutable"):
        return
    type_decl = ctx.lookup(element["$Type"])
    operation = {
        "summary": voc.value(update, "Core", "Description") or get_operation_summary("update", name),
        "tags": [source_name],
        "requestBody": {
            "description": voc.value(type_decl, "Core", "Description") or "New property values",
            "required": True,
            "content": {
                "application/json": {"schema": ctx.ref(element["$Type"], "-update")},
            },
        },
        "responses": response(ctx, get_operation_status_code("update"), get_response_description("update"),
                              None, update.get("ErrorResponses")),
    }
    description = voc.value(update, "Core", "LongDescription")
    if description:
        operation["description"] = description
    if _has_concurrency_control(ctx, target):
        operation["parameters"] = [if_match_parameter()]
    custom_parameters(operation, update)
    path_item[get_operation_http_method("update", update)] = operation


def operation_delete(ctx, path_item, element, name, source_name, target, restrictions):
    voc = ctx.voc
    delete = restriction_record(ctx, restrictions, target, "DeleteRestrictions")
    if not is_operation_allowed("delete", delete):
        return
    operation = {
        "summary": voc.value(delete, "Core", "Description") or get_operation_summary("delete", name),
        "tags": [source_name],
        "responses": response(ctx, get_operation_status_code("delete"), get_response_description("delete"),
                              None, delete.get("ErrorResponses")),
    }
    description = voc.value(delete, "Core", "LongDescription")
    if description:
        operation["description"] = description
    if _has_concurrency_control(ctx, target):
        operation["parameters"] = [if_match_parameter()]
    custom_parameters(operation, delete)
    path_item["delete"] = operation


def _only_parameters(path_item: Dict[str, Any]) -> bool:
    return all(key == "parameters" for key in path_item)


def path_items(ctx, paths, prefix, prefix_parameters, element, root, source_name, target_name, target, level, navigation_path):
    """
    Add the Path Item of a resource path and everything below it.

    Args:
        ctx: ConversionContext
        paths: Paths Object being built
        prefix: resource path, e.g. "/Books(ID={ID-0})/author"
        prefix_parameters: path parameters of the prefix
        element: entity set, singleton or navigation property
        root: entity set or singleton the path starts at
        source_name: tag of the root resource
        target_name: tag of the entity set the path ends in
        target: entity set the path ends in (None for contained targets)
        level: navigation depth, 0 for root resources
        navigation_path: navigation property path from root, "" at the root
    """
    name = prefix[prefix.rfind("/") + 1:]
    type_decl = ctx.lookup(element["$Type"])
    restrictions = navigation_restrictions(ctx, root, navigation_path)
    non_expandable = non_expandable_properties(ctx, root, navigation_path)

    path_item = {}
    paths[prefix] = path_item
    if prefix_parameters:
        path_item["parameters"] = copy_parameters(prefix_parameters)

    operation_read(ctx, path_item, element, name, source_name, target_name, target, level, restrictions, False, non_expandable)
    creatable = element.get("$ContainsTarget") or (level < 2 and target is not None)
    if element.get("$Collection") and creatable and not root.get("@cds.autoexpose"):
        operation_create(ctx, path_item, element, name, source_name, target_name, target, restrictions)
    path_items_for_bound_operations(ctx, paths, prefix, prefix_parameters, element, source_name)

    if element.get("$Collection"):
        if level < ctx.max_levels:
            path_items_with_key(ctx, paths, prefix, prefix_parameters, element, root, source_name, target_name,
                                target, level, navigation_path, restrictions, non_expandable)
    elif element.get("$ContainsTarget"):
        operation_update(ctx, path_item, element, name, source_name, target, restrictions)
        if element.get("$Nullable"):
            operation_delete(ctx, path_item, element, name, source_name, target, restrictions)
        path_items_with_navigation(ctx, paths, prefix, prefix_parameters, type_decl, root, source_name, level, navigation_path)
    elif level == 0:
        # singleton
        operation_update(ctx, path_item, element, name, source_name, target, restrictions)
        path_items_with_navigation(ctx, paths, prefix, prefix_parameters, type_decl, root, source_name, level, navigation_path)

    if _only_parameters(path_item):
        del paths[prefix]


def path_items_with_key(ctx, paths, prefix, prefix_parameters, element, root, source_name, target_name,
                        target, level, navigation_path, restrictions, non_expandable):
    """Add the by-key Path Item of a collection and the paths below it."""
    indexable = restrictions.get("IndexableByKey")
    target_indexable = ctx.voc.value(target, "Capabilities", "IndexableByKey") is not False
    if not (indexable is True or (indexable is not False and target_indexable)):
        return

    name = prefix[prefix.rfind("/") + 1:]
    type_decl = ctx.lookup(element["$Type"])
    if not isinstance(type_decl, dict):
        logger.warning(f"  [WARN] Unknown type {element['$Type']} of {name}")
        return
    parameters = key_parameters(ctx, type_decl, level)
    if not parameters:
        logger.debug(f"  [SKIP] No key properties for {name}, no by-key path")
        return

    path = path_with_keys(ctx, prefix, type_decl, level)
    all_parameters = list(prefix_parameters) + parameters
    path_item = {"parameters": copy_parameters(all_parameters)}
    paths[path] = path_item

    operation_read(ctx, path_item, element, name, source_name, target_name, target, level, restrictions, True, non_expandable)
    operation_update(ctx, path_item, element, name, source_name, target, restrictions)
    operation_delete(ctx, path_item, element, name, source_name, target, restrictions)
    if _only_parameters(path_item):
        del paths[path]

    path_items_for_bound_operations(ctx, paths, path, all_parameters, element, source_name, by_key=True)
    path_items_with_navigation(ctx, paths, path, all_parameters, type_decl, root, source_name, level, navigation_path)


def _root_navigable(ctx, root, level: int) -> bool:
    restrictions = ctx.voc.value(root, "Capabilities", "NavigationRestrictions") or {}
    navigability = enum_member(restrictions.get("Navigability"))
    if level == 0:
        return navigability != "None"
    if level == 1:
        return navigability != "Single"
    return True


def path_items_with_navigation(ctx, paths, prefix, prefix_parameters, type_decl, root, source_name, level, navigation_path):
    """Follow the navigation properties of a type, honouring Navigability restrictions."""
    if not type_decl or level >= ctx.max_levels:
        return
    if enum_member(navigation_restrictions(ctx, root, navigation_path).get("Navigability")) == "Single":
        return

    root_navigable = _root_navigable(ctx, root, level)
    bindings = root.get("$NavigationPropertyBinding") or {}
    container = ctx.entity_container or {}

    for name, navigation in navigation_path_map(ctx, type_decl).items():
        path = _join(navigation_path, name)
        navigability = enum_member(navigation_restrictions(ctx, root, path).get("Navigability"))
        if not ((root_navigable and navigability != "None") or navigability in ("Recursive", "Single")):
            continue
        target_set_name = bindings.get(path)
        target = container.get(target_set_name) if target_set_name else None
        target_name = ctx.voc.value(target, "Common", "Label") or target_set_name
        path_items(ctx, paths, f"{prefix}/{name}", prefix_parameters, navigation, root, source_name,
                   target_name, target, level + 1, path)


def source_name(ctx, name: str, child: Dict[str, Any]) -> str:
    """Tag of a container child: the Label of its type, or its name."""
    type_decl = ctx.lookup(child["$Type"])
    return ctx.voc.value(type_decl, "Common", "Label") or name


def get_paths(ctx) -> Dict[str, Any]:
    """Paths Object for the entity container, sorted by path."""
    container = ctx.entity_container or {}
    paths = {}
    resources = [name for name in container if is_identifier(name) and isinstance(container[name], dict)]

    for name in resources:
        child = container[name]
        if child.get("$Type"):
            tag = source_name(ctx, name, child)
            logger.debug(f"  [PATH] /{name}")
            path_items(ctx, paths, "/" + name, [], child, child, tag, tag, child, 0, "")
        elif child.get("$Action"):
            path_item_action_import(ctx, paths, name, child)
        elif child.get("$Function"):
            path_item_function_import(ctx, paths, name, child)
        else:
            logger.debug(f"  [SKIP] Unrecognized entity container child {name}")

    if resources:
        path_item_batch(ctx, paths, container)

    return {path: paths[path] for path in sorted(paths)}
