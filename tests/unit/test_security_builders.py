"""
Unit tests for security schemes and requirements.
"""

import logging

from odata_openapi.api.builders.security_builders import (
    security_requirements,
    security_scheme,
    security_schemes,
)


class TestSecurityScheme:
    """Test translation of Authorization records."""

    def test_api_key(self):
        scheme = security_scheme({
            "@type": "Org.OData.Authorization.V1.ApiKey",
            "Name": "key",
            "KeyName": "x-api-key",
            "Location": "Header",
            "Description": "API key",
        })
        assert scheme == {"type": "apiKey", "name": "x-api-key", "in": "header", "description": "API key"}

    def test_http_bearer(self):
        scheme = security_scheme({"@odata.type": "Org.OData.Authorization.V1.Http", "Scheme": "bearer",
                                  "BearerFormat": "JWT"})
        assert scheme == {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"}

    def test_client_credentials(self):
        scheme = security_scheme({
            "@type": "#Org.OData.Authorization.V1.OAuth2ClientCredentials",
            "TokenUrl": "https://auth.example.com/token",
            "Scopes": [{"Scope": "read", "Description": "Read access"}],
        })
        assert scheme == {
            "type": "oauth2",
            "flows": {"clientCredentials": {
                "tokenUrl": "https://auth.example.com/token",
                "scopes": {"read": "Read access"},
            }},
        }

    def test_implicit_flow_has_no_token_url(self):
        scheme = security_scheme({
            "@type": "Org.OData.Authorization.V1.OAuth2Implicit",
            "AuthorizationUrl": "https://auth.example.com/authorize",
        })
        assert scheme["flows"]["implicit"] == {
            "authorizationUrl": "https://auth.example.com/authorize",
            "scopes": {},
        }

    def test_open_id_connect(self):
        scheme = security_scheme({"@type": "Org.OData.Authorization.V1.OpenIDConnect",
                                  "IssuerUrl": "https://id.example.com"})
        assert scheme == {"type": "openIdConnect", "openIdConnectUrl": "https://id.example.com"}

    def test_unknown_type_is_skipped(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert security_scheme({"@type": "Org.OData.Authorization.V1.Kerberos"}) is None
        assert "Unknown Authorization type" in caplog.text


class TestContainerSecurity:
    """Test schemes and requirements of an entity container."""

    def test_schemes_and_requirements(self, make_context):
        container = {
            "@Authorization.Authorizations": [
                {"@type": "Org.OData.Authorization.V1.Http", "Name": "basic", "Scheme": "basic"},
                {"@type": "Org.OData.Authorization.V1.Unknown", "Name": "other"},
            ],
            "@Authorization.SecuritySchemes": [
                {"Authorization": "basic"},
                {"Authorization": "oauth", "RequiredScopes": ["read"]},
            ],
        }
        ctx = make_context({})
        assert security_schemes(ctx, container) == {"basic": {"type": "http", "scheme": "basic"}}
        assert security_requirements(ctx, container) == [{"basic": []}, {"oauth": ["read"]}]

    def test_no_requirements(self, make_context):
        ctx = make_context({})
        assert security_requirements(ctx, None) == []
