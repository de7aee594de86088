"""
Integration tests for the odata-openapi command line interface.
"""

import json

import yaml
from click.testing import CliRunner

from odata_openapi.cli.cli import cli


class TestConvertCommand:
    """Test the convert command end to end."""

    def test_writes_json(self, bookshop_csdl, write_csdl_file, temp_output_dir):
        model_path = write_csdl_file(bookshop_csdl, "catalog.json")
        out_dir = temp_output_dir / "out"
        result = CliRunner().invoke(cli, ["convert", str(model_path), "--out", str(out_dir), "-q"])

        assert result.exit_code == 0, result.output
        out_file = out_dir / "CatalogService.openapi3.json"
        assert out_file.exists()
        openapi = json.loads(out_file.read_text())
        assert openapi["openapi"] == "3.0.2"
        assert openapi["servers"] == [{"url": "/rest/catalog"}]
        assert "OpenAPI document written to" in result.output

    def test_writes_yaml(self, bookshop_csdl, write_csdl_file, temp_output_dir):
        model_path = write_csdl_file(bookshop_csdl, "catalog.json")
        result = CliRunner().invoke(cli, [
            "convert", str(model_path),
            "--out", str(temp_output_dir),
            "--format", "yaml",
            "--odata-version", "4.0",
            "--max-levels", "1",
            "-q",
        ])

        assert result.exit_code == 0, result.output
        openapi = yaml.safe_load((temp_output_dir / "CatalogService.openapi3.yaml").read_text())
        assert openapi["x-odata-version"] == "4.0"
        assert openapi["servers"] == [{"url": "/odata/v4/catalog"}]
        assert "/Authors(ID={ID-0})/books(ID={ID-1})" not in openapi["paths"]

    def test_yaml_has_no_anchors(self, orders_csdl, write_csdl_file, temp_output_dir):
        model_path = write_csdl_file(orders_csdl, "orders.json")
        result = CliRunner().invoke(cli, [
            "convert", str(model_path), "--out", str(temp_output_dir), "--format", "yaml", "-q",
        ])

        assert result.exit_code == 0, result.output
        text = (temp_output_dir / "OrderService.openapi3.yaml").read_text()
        assert "&id" not in text
        assert "*id" not in text
        openapi = yaml.safe_load(text)
        assert openapi["paths"]["/Orders(ID={ID-0})/items"]["parameters"][0]["name"] == "ID-0"

    def test_document_without_container_uses_file_name(self, orders_csdl, write_csdl_file, temp_output_dir):
        del orders_csdl["$EntityContainer"]
        model_path = write_csdl_file(orders_csdl, "orders.json")
        result = CliRunner().invoke(cli, ["convert", str(model_path), "--out", str(temp_output_dir / "out"), "-q"])

        assert result.exit_code == 0, result.output
        assert (temp_output_dir / "out" / "orders.openapi3.json").exists()

    def test_diagram_flag(self, bookshop_csdl, write_csdl_file, temp_output_dir):
        model_path = write_csdl_file(bookshop_csdl, "catalog.json")
        result = CliRunner().invoke(cli, [
            "convert", str(model_path), "--out", str(temp_output_dir / "out"), "--diagram", "-q",
        ])

        assert result.exit_code == 0, result.output
        openapi = json.loads((temp_output_dir / "out" / "CatalogService.openapi3.json").read_text())
        assert "## Entity Data Model" in openapi["info"]["description"]

    def test_invalid_json(self, temp_output_dir):
        model_path = temp_output_dir / "broken.json"
        model_path.write_text("{not json")
        result = CliRunner().invoke(cli, ["convert", str(model_path), "--out", str(temp_output_dir), "-q"])

        assert result.exit_code == 1
        assert "Conversion failed" in result.output

    def test_invalid_servers_option(self, bookshop_csdl, write_csdl_file, temp_output_dir):
        model_path = write_csdl_file(bookshop_csdl, "catalog.json")
        result = CliRunner().invoke(cli, [
            "convert", str(model_path), "--out", str(temp_output_dir), "--servers", "[broken", "-q",
        ])

        assert result.exit_code == 1
        assert "Conversion failed" in result.output


class TestValidateCommand:
    """Test the validate command."""

    def test_valid_document(self, bookshop_csdl, write_csdl_file):
        result = CliRunner().invoke(cli, ["validate", str(write_csdl_file(bookshop_csdl))])
        assert result.exit_code == 0
        assert "Model validation success!" in result.output

    def test_unknown_type_is_a_warning(self, bookshop_csdl, write_csdl_file):
        bookshop_csdl["CatalogService"]["Books"]["genre"] = {"$Type": "CatalogService.Genre"}
        result = CliRunner().invoke(cli, ["validate", str(write_csdl_file(bookshop_csdl))])
        assert result.exit_code == 0
        assert "unknown type CatalogService.Genre" in result.output

    def test_cyclic_base_types(self, write_csdl_file):
        csdl = {
            "N": {
                "A": {"$Kind": "ComplexType", "$BaseType": "N.B"},
                "B": {"$Kind": "ComplexType", "$BaseType": "N.A"},
            },
        }
        result = CliRunner().invoke(cli, ["validate", str(write_csdl_file(csdl))])
        assert result.exit_code == 1
        assert "Validation failed" in result.output

    def test_missing_file(self, temp_output_dir):
        result = CliRunner().invoke(cli, ["validate", str(temp_output_dir / "missing.json")])
        assert result.exit_code == 1


class TestInspectCommand:
    """Test the inspect command."""

    def test_lists_types_and_children(self, bookshop_csdl, write_csdl_file):
        result = CliRunner().invoke(cli, ["inspect", str(write_csdl_file(bookshop_csdl))])
        assert result.exit_code == 0
        assert "Namespaces: CatalogService" in result.output
        assert "CatalogService.Books" in result.output
        assert "submitOrder" in result.output
        assert "ActionImport" in result.output
