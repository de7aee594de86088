"""
Service-level compilation: protocols, service paths and output file names.

A service may be exposed through several protocols; each protocol gets its
own OpenAPI document with its own service URL.
"""

import re
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from ..gen_logging import get_logger
from ..generator import csdl2openapi
from ..utils.naming import kebab_case
from ...errors import UnsupportedProtocolError
from ...language import build_document_str
from .config_builders import to_openapi_options

logger = get_logger(__name__)

SUPPORTED_PROTOCOLS = ("rest", "odata", "odata-v4")

SERVICE_PATH_PLACEHOLDER = re.compile(r"/*\$\{service-path\}")


def service_name_of(csdl: Dict[str, Any]) -> str:
    """"CatalogService.EntityContainer" -> "CatalogService"."""
    container = csdl.get("$EntityContainer") or ""
    return container.rsplit(".", 1)[0] if "." in container else container


def resolve_protocols(service_name: str, service: Dict[str, Any], odata_version: Optional[str]) -> List[str]:
    """
    Protocols to generate documents for.

    An explicit odata version decides alone: "4.01" -> rest, "4.0" -> odata.
    Otherwise the service's @protocol annotation is used, rest by default.
    """
    if odata_version == "4.01":
        return ["rest"]
    if odata_version == "4.0":
        return ["odata"]

    protocol = (service or {}).get("@protocol")
    if not protocol:
        return ["rest"]

    if isinstance(protocol, list):
        protocols = []
        for item in protocol:
            if item in SUPPORTED_PROTOCOLS:
                protocols.append(item)
            else:
                logger.warning(f"  [WARN] \"{item}\" protocol is not supported")
        return protocols

    if protocol in SUPPORTED_PROTOCOLS:
        return [protocol]

    raise UnsupportedProtocolError(
        f"Service \"{service_name}\" is annotated with @protocol:'{protocol}' "
        "which is not supported in openAPI generation.",
        {"service": service_name, "protocol": protocol},
    )


def default_service_path(service_name: str, service: Dict[str, Any], protocol: str) -> str:
    """
    Service path as a CAP server would mount it.

    @path wins; otherwise the simple service name without a "Service"
    suffix, kebab-cased, below /rest or /odata/v4.
    """
    path = (service or {}).get("@path")
    if path:
        return path if path.startswith("/") else "/" + path

    name = service_name.rsplit(".", 1)[-1]
    if name.endswith("Service") and len(name) > len("Service"):
        name = name[:-len("Service")]
    prefix = "/rest" if protocol == "rest" else "/odata/v4"
    return f"{prefix}/{kebab_case(name)}"


def service_urls(
    service_name: str,
    service: Dict[str, Any],
    protocols: List[str],
    url_template: Optional[str],
    resolve_path: Callable[[str, Dict[str, Any], str], str],
) -> Dict[str, str]:
    """Service URL per protocol; "${service-path}" in the url option is replaced by the path."""
    urls = {}
    for protocol in protocols:
        path = resolve_path(service_name, service, protocol)
        if url_template:
            urls[protocol] = SERVICE_PATH_PLACEHOLDER.sub(path, url_template)
        else:
            urls[protocol] = path
    return urls


def _documents_for_service(csdl, options, services, resolve_path, default_name):
    if not csdl.get("$EntityContainer"):
        return {default_name: csdl2openapi(csdl, options)}

    service_name = service_name_of(csdl)
    service = (services or {}).get(service_name) or {}
    protocols = resolve_protocols(service_name, service, options.get("odata_version"))
    urls = service_urls(service_name, service, protocols, options.get("url"), resolve_path)

    documents = {}
    name = default_name or service_name
    for protocol in protocols:
        protocol_options = dict(options)
        protocol_options["url"] = urls[protocol]
        if protocol == "rest" and not protocol_options.get("odata_version"):
            protocol_options["odata_version"] = "4.01"
        logger.info(f"[SERVICE] {service_name} ({protocol}) at {urls[protocol]}")
        filename = f"{name}.{protocol}" if len(protocols) > 1 else name
        documents[filename] = csdl2openapi(csdl, protocol_options)
    return documents


def compile_service(
    csdl,
    options: Optional[Dict[str, Any]] = None,
    services: Optional[Dict[str, Dict[str, Any]]] = None,
    resolve_path: Optional[Callable[[str, Dict[str, Any], str], str]] = None,
) -> Dict[str, Dict[str, Any]]:
    """
    Convert one or several CSDL documents into OpenAPI documents.

    Args:
        csdl: a CSDL document, or an iterable of (document, {"file": name})
            pairs as produced for several services
        options: compiler-style options ("openapi:url", "odata-version",
            "openapi:config-file", ...)
        services: service descriptors by service name; "@protocol" and
            "@path" are read from them
        resolve_path: (service name, descriptor, protocol) -> service path

    Returns:
        OpenAPI documents keyed by file name
    """
    resolve_path = resolve_path or default_service_path
    openapi_options = to_openapi_options(options)

    if isinstance(csdl, dict):
        return _documents_for_service(csdl, openapi_options, services, resolve_path, "")

    documents = {}
    for content, metadata in csdl:
        if isinstance(content, str):
            content = build_document_str(content)
        file_name = (metadata or {}).get("file", "")
        documents.update(_documents_for_service(content, openapi_options, services, resolve_path, file_name))
    return documents


def iterate_documents(documents: Dict[str, Dict[str, Any]]) -> Iterator[Tuple[Dict[str, Any], Dict[str, str]]]:
    """Yield (document, {"file": name}) pairs; unnamed documents get empty metadata."""
    for name, document in documents.items():
        if name:
            yield document, {"file": name}
        else:
            yield document, {}
