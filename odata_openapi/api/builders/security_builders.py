"""Security Scheme Objects and Security Requirements from Authorization annotations."""

from typing import Any, Dict, List, Optional

from ..gen_logging import get_logger

logger = get_logger(__name__)

LOCATIONS = {
    "Header": "header",
    "QueryOption": "query",
    "Cookie": "cookie",
}

OAUTH2_FLOWS = {
    "OAuth2AuthCode": "authorizationCode",
    "OAuth2ClientCredentials": "clientCredentials",
    "OAuth2Implicit": "implicit",
    "OAuth2Password": "password",
}


def _scopes(authorization: Dict[str, Any]) -> Dict[str, str]:
    return {
        scope.get("Scope"): scope.get("Description")
        for scope in authorization.get("Scopes") or []
    }


def _oauth2_flow(flow_type: str, authorization: Dict[str, Any]) -> Dict[str, Any]:
    flow = {}
    if flow_type in ("OAuth2AuthCode", "OAuth2Implicit"):
        flow["authorizationUrl"] = authorization.get("AuthorizationUrl")
    if flow_type != "OAuth2Implicit":
        flow["tokenUrl"] = authorization.get("TokenUrl")
    if authorization.get("RefreshUrl"):
        flow["refreshUrl"] = authorization["RefreshUrl"]
    flow["scopes"] = _scopes(authorization)
    return flow


def security_scheme(authorization: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Translate one Authorization record into a Security Scheme Object.

    Returns None for unknown authorization types.
    """
    qualified_type = authorization.get("@type") or authorization.get("@odata.type") or ""
    auth_type = qualified_type[qualified_type.rfind(".") + 1:]

    scheme = {}
    if authorization.get("Description"):
        scheme["description"] = authorization["Description"]

    if auth_type == "ApiKey":
        scheme["type"] = "apiKey"
        scheme["name"] = authorization.get("KeyName")
        scheme["in"] = LOCATIONS.get(authorization.get("Location"))
    elif auth_type == "Http":
        scheme["type"] = "http"
        scheme["scheme"] = authorization.get("Scheme")
        if authorization.get("BearerFormat"):
            scheme["bearerFormat"] = authorization["BearerFormat"]
    elif auth_type in OAUTH2_FLOWS:
        scheme["type"] = "oauth2"
        scheme["flows"] = {OAUTH2_FLOWS[auth_type]: _oauth2_flow(auth_type, authorization)}
    elif auth_type == "OpenIDConnect":
        scheme["type"] = "openIdConnect"
        scheme["openIdConnectUrl"] = authorization.get("IssuerUrl")
    else:
        logger.warning(f"  [WARN] Unknown Authorization type {qualified_type}")
        return None
    return scheme


def security_schemes(ctx, container: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Security Scheme Objects keyed by authorization name."""
    schemes = {}
    for authorization in ctx.voc.value(container, "Authorization", "Authorizations") or []:
        scheme = security_scheme(authorization)
        if scheme is not None:
            schemes[authorization.get("Name")] = scheme
    return schemes


def security_requirements(ctx, container: Optional[Dict[str, Any]]) -> List[Dict[str, List[str]]]:
    requirements = []
    for scheme in ctx.voc.value(container, "Authorization", "SecuritySchemes") or []:
        requirements.append({scheme.get("Authorization"): scheme.get("RequiredScopes") or []})
    if not requirements:
        logger.debug("  [SKIP] No security schemes defined in the entity container")
    return requirements
