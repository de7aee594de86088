"""
Integration tests for service-level compilation.

Tests protocol selection, service URLs, output names and options coming
from compiler-style keys and configuration files.
"""

import json
import logging

import pytest

from odata_openapi import compile_service, iterate_documents
from odata_openapi.errors import ConfigurationError, UnsupportedProtocolError


class TestProtocols:
    """Test which protocols get a document."""

    def test_rest_by_default(self, bookshop_csdl):
        documents = compile_service(bookshop_csdl)
        assert list(documents) == ["CatalogService"]
        openapi = documents["CatalogService"]
        assert openapi["servers"] == [{"url": "/rest/catalog"}]
        assert openapi["x-odata-version"] == "4.01"

    def test_odata_version_selects_odata(self, bookshop_csdl):
        documents = compile_service(bookshop_csdl, {"odata-version": "4.0"})
        openapi = documents["CatalogService"]
        assert openapi["servers"] == [{"url": "/odata/v4/catalog"}]
        assert openapi["x-odata-version"] == "4.0"

    def test_several_protocols(self, bookshop_csdl, caplog):
        services = {"CatalogService": {"@protocol": ["odata", "graphql", "rest"]}}
        with caplog.at_level(logging.WARNING):
            documents = compile_service(bookshop_csdl, {}, services)
        assert list(documents) == ["CatalogService.odata", "CatalogService.rest"]
        assert documents["CatalogService.odata"]["x-odata-version"] == "4.0"
        assert documents["CatalogService.rest"]["x-odata-version"] == "4.01"
        assert documents["CatalogService.rest"]["servers"] == [{"url": "/rest/catalog"}]
        assert '"graphql" protocol is not supported' in caplog.text

    def test_unsupported_protocol(self, bookshop_csdl):
        services = {"CatalogService": {"@protocol": "none"}}
        with pytest.raises(UnsupportedProtocolError) as excinfo:
            compile_service(bookshop_csdl, {}, services)
        assert excinfo.value.details == {"service": "CatalogService", "protocol": "none"}

    def test_protocols_for_unknown_service_default_to_rest(self, bookshop_csdl):
        services = {"OtherService": {"@protocol": "none"}}
        assert list(compile_service(bookshop_csdl, {}, services)) == ["CatalogService"]


class TestServiceUrls:
    """Test service paths and the url option."""

    def test_explicit_path(self, bookshop_csdl):
        services = {"CatalogService": {"@path": "browse"}}
        openapi = compile_service(bookshop_csdl, {}, services)["CatalogService"]
        assert openapi["servers"] == [{"url": "/browse"}]

    def test_url_template(self, bookshop_csdl):
        options = {"openapi:url": "https://example.com/${service-path}"}
        openapi = compile_service(bookshop_csdl, options)["CatalogService"]
        assert openapi["servers"] == [{"url": "https://example.com/rest/catalog"}]
        assert "https://example.com/rest/catalog/" in openapi["info"]["description"]

    def test_custom_path_resolver(self, bookshop_csdl):
        def resolve_path(service_name, service, protocol):
            return f"/{protocol}/{service_name}"

        openapi = compile_service(bookshop_csdl, {"odata-version": "4.0"}, resolve_path=resolve_path)["CatalogService"]
        assert openapi["servers"] == [{"url": "/odata/CatalogService"}]

    def test_servers_option_wins(self, bookshop_csdl):
        options = {"openapi:servers": json.dumps([{"url": "https://api.example.com"}])}
        openapi = compile_service(bookshop_csdl, options)["CatalogService"]
        assert openapi["servers"] == [{"url": "https://api.example.com"}]


class TestOptions:
    """Test compiler-style options and configuration files."""

    def test_max_levels_option(self, bookshop_csdl):
        openapi = compile_service(bookshop_csdl, {"openapi:max-levels": 1})["CatalogService"]
        assert "/Authors(ID={ID-0})/books(ID={ID-1})" not in openapi["paths"]

    def test_config_file(self, bookshop_csdl, temp_output_dir):
        config_file = temp_output_dir / "openapi.yaml"
        config_file.write_text("diagram: true\nmaxLevels: 1\n")
        options = {"openapi:config-file": str(config_file), "openapi:max-levels": 2}
        openapi = compile_service(bookshop_csdl, options)["CatalogService"]
        assert "## Entity Data Model" in openapi["info"]["description"]
        assert "/Authors(ID={ID-0})/books(ID={ID-1})" in openapi["paths"]

    def test_missing_config_file(self, bookshop_csdl, temp_output_dir):
        options = {"openapi:config-file": str(temp_output_dir / "missing.json")}
        with pytest.raises(ConfigurationError):
            compile_service(bookshop_csdl, options)


class TestSeveralDocuments:
    """Test the iterable input form and its counterpart."""

    def test_iterable_input(self, bookshop_csdl, orders_csdl):
        del orders_csdl["$EntityContainer"]
        documents = compile_service([
            (json.dumps(bookshop_csdl), {"file": "catalog"}),
            (orders_csdl, {"file": "orders"}),
        ])
        assert list(documents) == ["catalog", "orders"]
        assert documents["catalog"]["servers"] == [{"url": "/rest/catalog"}]
        assert documents["orders"]["paths"] == {}

    def test_iterate_documents(self, bookshop_csdl):
        documents = {"catalog": {"a": 1}, "": {"b": 2}}
        assert list(iterate_documents(documents)) == [
            ({"a": 1}, {"file": "catalog"}),
            ({"b": 2}, {}),
        ]

    def test_round_trip_names(self, bookshop_csdl):
        documents = compile_service(bookshop_csdl, {"odata-version": "4.0"})
        pairs = list(iterate_documents(documents))
        assert [metadata for _, metadata in pairs] == [{"file": "CatalogService"}]
