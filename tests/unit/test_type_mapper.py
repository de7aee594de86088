"""
Unit tests for the mapping of Edm primitive types to Schema Objects.
"""

import logging

from odata_openapi.api.extractors.type_mapper import (
    map_primitive,
    path_value_prefix,
    path_value_suffix,
)


class TestPrimitiveMapping:
    """Test the primitive type table."""

    def test_missing_type_is_string(self):
        assert map_primitive(None) == {"type": "string"}

    def test_string_max_length(self):
        assert map_primitive("Edm.String", {"$MaxLength": 10}) == {"type": "string", "maxLength": 10}

    def test_int32(self):
        assert map_primitive("Edm.Int32") == {"type": "integer", "format": "int32"}

    def test_int64_accepts_strings(self):
        schema = map_primitive("Edm.Int64")
        assert schema["anyOf"] == [{"type": "integer", "format": "int64"}, {"type": "string"}]
        assert schema["example"] == "42"

    def test_binary_max_length_accounts_for_base64(self):
        schema = map_primitive("Edm.Binary", {"$MaxLength": 10})
        assert schema == {"type": "string", "format": "base64url", "maxLength": 14}

    def test_date_time_offset_precision(self):
        schema = map_primitive("Edm.DateTimeOffset", {"$Precision": 3})
        assert schema["example"] == "2017-04-13T15:51:04.000Z"

    def test_geography_point_references_shared_schema(self):
        assert map_primitive("Edm.GeographyPoint") == {"$ref": "#/components/schemas/geoPoint"}

    def test_stream_with_json_schema(self):
        element = {"@JSON.Schema": '{"type": "object"}'}
        assert map_primitive("Edm.Stream", element) == {"type": "object"}

    def test_stream_without_json_schema(self):
        assert map_primitive("Edm.Stream") == {"type": "string", "format": "base64url"}

    def test_unknown_primitive_degrades_to_empty_schema(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert map_primitive("Edm.Whatever") == {}
        assert "Unknown type: Edm.Whatever" in caplog.text

    def test_fresh_schema_per_call(self):
        first = map_primitive("Edm.Int32")
        first["nullable"] = True
        assert "nullable" not in map_primitive("Edm.Int32")


class TestDecimalBounds:
    """Test bounds derived from precision and scale."""

    def test_precision_five_scale_two(self):
        schema = map_primitive("Edm.Decimal", {"$Precision": 5, "$Scale": 2})
        number = schema["anyOf"][0]
        assert number["maximum"] == 999.99
        assert number["minimum"] == -999.99
        assert number["multipleOf"] == 0.01
        assert schema["x-sap-precision"] == 5
        assert schema["x-sap-scale"] == 2

    def test_scale_zero(self):
        number = map_primitive("Edm.Decimal", {"$Precision": 3, "$Scale": 0})["anyOf"][0]
        assert number["maximum"] == 999
        assert number["multipleOf"] == 1

    def test_floating_scale_has_no_multiple(self):
        number = map_primitive("Edm.Decimal", {"$Precision": 7, "$Scale": "floating"})["anyOf"][0]
        assert "multipleOf" not in number
        assert number["maximum"] == 9999999

    def test_large_precision_has_no_bounds(self):
        number = map_primitive("Edm.Decimal", {"$Precision": 34})["anyOf"][0]
        assert "maximum" not in number


class TestLiteralDelimiters:
    """Test URL literal quoting per type."""

    def test_string_is_quoted(self):
        assert path_value_prefix("Edm.String") == "'"
        assert path_value_suffix(None) == "'"

    def test_numbers_are_not_quoted(self):
        assert path_value_prefix("Edm.Int32") == ""
        assert path_value_suffix("Edm.Guid") == ""

    def test_key_as_segment_is_never_quoted(self):
        assert path_value_prefix("Edm.String", key_as_segment=True) == ""
