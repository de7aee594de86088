"""
Main entry point for CSDL to OpenAPI conversion.

This module assembles one OpenAPI 3.0.2 document from one CSDL JSON document.

Architecture:
    - extractors/: Model lookups, type mapping and schema synthesis
    - graph/: Type inheritance graph and cycle detection
    - builders/: Paths, parameters, responses, schemas and security
    - utils/: Name and path utilities
"""

from typing import Any, Dict, List, Optional

from ..templates import env
from .builders.parameter_builders import component_parameters
from .builders.path_builders import get_paths, source_name
from .builders.response_builders import error_response
from .builders.schema_builders import build_schemas, openapi_extensions, require_all_types
from .builders.security_builders import security_requirements, security_schemes
from .context import ConversionContext
from .gen_logging import get_logger
from .graph import check_acyclic
from .utils.naming import is_identifier, parse_qualified_name

logger = get_logger(__name__)

OPENAPI_VERSION = "3.0.2"

DIAGRAM_COLORS = {
    "resource": "{bg:lawngreen}",
    "entity_type": "{bg:lightslategray}",
    "complex_type": "",
    "external": "{bg:whitesmoke}",
}


def get_info(ctx: ConversionContext) -> Dict[str, Any]:
    """Info Object: title, description and version of the service."""
    voc = ctx.voc
    container = ctx.entity_container
    schema = ctx.registry.container_schema()

    if container is None:
        return {
            "title": "OData CSDL document",
            "description": "",
            "version": "",
        }

    namespace = parse_qualified_name(ctx.registry.container_name()).qualifier
    title = (
        voc.value(container, "Core", "Description")
        or voc.value(schema, "Core", "Description")
        or f"Service for namespace {ctx.registry.namespace_of(namespace)}"
    )

    description = voc.value(container, "Core", "LongDescription") or voc.value(schema, "Core", "LongDescription")
    if not description:
        root = ctx.options.service_root()
        description = f"This service is located at [{root}/]({root}/)"
    if ctx.options.diagram:
        description += "\n\n" + resource_diagram(ctx)

    return {
        "title": title,
        "description": description,
        "version": voc.value(schema, "Core", "SchemaVersion") or "",
    }


def _diagram_name(ctx, type_name: str) -> str:
    return parse_qualified_name(type_name).name


def _overload_fragments(ctx, name: str, overload: Optional[Dict[str, Any]], color: str) -> List[str]:
    cardinality = env.filters["yuml_cardinality"]
    fragments = [f"[{name}{color}]"]
    if not overload:
        return fragments
    return_type = overload.get("$ReturnType")
    if return_type and isinstance(ctx.lookup(return_type.get("$Type") or "Edm.String"), dict):
        fragments[0] += f"-{cardinality(return_type)}>[{_diagram_name(ctx, return_type['$Type'])}]"
    for parameter in overload.get("$Parameter") or []:
        if isinstance(ctx.lookup(parameter.get("$Type") or "Edm.String"), dict):
            fragments.append(f"[{name}{color}]<-{cardinality(parameter)}[{_diagram_name(ctx, parameter['$Type'])}]")
    return fragments


def resource_diagram(ctx: ConversionContext) -> str:
    """yUML class diagram of the structured types and container children, with legend."""
    cardinality = env.filters["yuml_cardinality"]
    fragments = []

    for _, type_name, type_decl in ctx.registry.iter_types():
        kind = type_decl.get("$Kind")
        if kind not in ("EntityType", "ComplexType"):
            continue
        color = DIAGRAM_COLORS["entity_type"] if kind == "EntityType" else DIAGRAM_COLORS["complex_type"]
        base = f"[{_diagram_name(ctx, type_decl['$BaseType'])}]^" if type_decl.get("$BaseType") else ""
        fragments.append(f"{base}[{type_name}{color}]")

        for property_name, prop in ctx.registry.own_properties(type_decl).items():
            prop_type = prop.get("$Type") or "Edm.String"
            navigation = prop.get("$Kind") == "NavigationProperty"
            if not navigation and prop_type.startswith("Edm."):
                continue
            target = ctx.lookup(prop_type)
            partner = prop.get("$Partner")
            bidirectional = bool(
                partner and isinstance(target, dict)
                and isinstance(target.get(partner), dict)
                and target[partner].get("$Partner") == property_name
            )
            # draw a bidirectional association once
            if bidirectional and property_name > partner:
                continue
            composition = "++" if not navigation or prop.get("$ContainsTarget") else ""
            arrow = "" if not navigation or bidirectional else ">"
            target_box = _diagram_name(ctx, prop_type) if target is not None else prop_type + DIAGRAM_COLORS["external"]
            fragments.append(f"[{type_name}]{composition}-{cardinality(prop)}{arrow}[{target_box}]")

    resources = []
    container = ctx.entity_container or {}
    for name in reversed([key for key in container if is_identifier(key)]):
        child = container[name]
        if not isinstance(child, dict):
            continue
        if child.get("$Type"):
            resources.append({
                "name": name,
                "type_name": _diagram_name(ctx, child["$Type"]),
                "element": child,
            })
        elif child.get("$Action"):
            overloads = ctx.lookup(child["$Action"]) or []
            overload = next((item for item in overloads if not item.get("$IsBound")), None)
            fragments.extend(_overload_fragments(ctx, name, overload, "{bg:salmon}"))
        elif child.get("$Function"):
            overloads = ctx.lookup(child["$Function"]) or []
            overload = next((item for item in overloads if not item.get("$IsBound")), None)
            fragments.extend(_overload_fragments(ctx, name, overload, "{bg:coral}"))

    template = env.get_template("diagram.md.jinja")
    return template.render(fragments=fragments, resources=resources, colors=DIAGRAM_COLORS)


def get_tags(ctx: ConversionContext) -> List[Dict[str, str]]:
    """One tag per entity set and singleton, deduplicated by name and sorted."""
    voc = ctx.voc
    container = ctx.entity_container or {}
    tags = {}
    for name, child in container.items():
        if not is_identifier(name) or not isinstance(child, dict) or not child.get("$Type"):
            continue
        tag = {"name": source_name(ctx, name, child)}
        description = voc.value(child, "Core", "Description") or voc.value(ctx.lookup(child["$Type"]), "Core", "Description")
        if description:
            tag["description"] = description
        tags[tag["name"]] = tag
    return [tags[name] for name in sorted(tags)]


def get_components(ctx: ConversionContext) -> Dict[str, Any]:
    """Components Object; must run after the paths have requested their schemas."""
    components = {"schemas": build_schemas(ctx)}
    if ctx.entity_container is not None:
        components["parameters"] = component_parameters(ctx)
        components["responses"] = {"error": error_response()}
    schemes = security_schemes(ctx, ctx.entity_container)
    if schemes:
        components["securitySchemes"] = schemes
    return components


def csdl2openapi(csdl: Dict[str, Any], options=None) -> Dict[str, Any]:
    """
    Convert a CSDL JSON document into an OpenAPI 3.0.2 document.

    Args:
        csdl: CSDL JSON document (not modified)
        options: ConversionOptions or a mapping of options
            (url, servers, odataVersion, scheme, host, basePath, diagram,
            maxLevels, queryOptionPrefix)

    Returns:
        OpenAPI document as a dict

    Raises:
        CyclicTypeError: a $BaseType chain loops
        InvalidNameError: a type reference is not a qualified name
    """
    ctx = ConversionContext(csdl, options)
    logger.info(f"[PHASE] Converting CSDL {ctx.version} document")

    check_acyclic(ctx.registry.type_graph)

    container = ctx.entity_container
    if container is None:
        logger.debug("  [SKIP] No entity container, emitting all types")
        require_all_types(ctx)

    openapi = {
        "openapi": OPENAPI_VERSION,
        "info": get_info(ctx),
        "x-sap-api-type": "ODATA" if ctx.version_below("4.0") else "ODATAV4",
        "x-odata-version": ctx.version,
    }
    if container is not None:
        openapi["servers"] = ctx.options.server_list()
        openapi["tags"] = get_tags(ctx)

    openapi["paths"] = get_paths(ctx)
    logger.info(f"[PATHS] {len(openapi['paths'])} paths")

    openapi["components"] = get_components(ctx)
    logger.info(f"[SCHEMAS] {len(openapi['components']['schemas'])} schemas")

    security = security_requirements(ctx, container)
    if security:
        openapi["security"] = security

    openapi.update(openapi_extensions(ctx.registry.container_schema()))
    openapi.update(openapi_extensions(container))
    return openapi
