"""Type mapping from OData primitive types to OpenAPI Schema Objects."""

import json
import math
from typing import Any, Dict, Optional

from ..gen_logging import get_logger
from ..vocabularies import Vocabulary

logger = get_logger(__name__)

GEO_POINT_TYPES = {
    "Edm.Geography",
    "Edm.GeographyPoint",
    "Edm.Geometry",
    "Edm.GeometryPoint",
}

PATH_TYPES = {
    "Edm.AnnotationPath",
    "Edm.ModelElementPath",
    "Edm.NavigationPropertyPath",
    "Edm.PropertyPath",
}

# Types whose URL literals are written without quotes
UNQUOTED_LITERAL_TYPES = {
    "Edm.Boolean",
    "Edm.Byte",
    "Edm.Date",
    "Edm.DateTimeOffset",
    "Edm.Decimal",
    "Edm.Double",
    "Edm.Guid",
    "Edm.Int16",
    "Edm.Int32",
    "Edm.Int64",
    "Edm.SByte",
    "Edm.Single",
    "Edm.TimeOfDay",
}

_DEFAULT_VOCABULARY = Vocabulary()


def _number(value) -> Optional[int]:
    """Numeric facet value, None for "variable"/"floating"/missing."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _decimal_schema(element: Dict[str, Any]) -> Dict[str, Any]:
    precision = _number(element.get("$Precision"))
    scale = _number(element.get("$Scale"))

    schema = {
        "anyOf": [{"type": "number", "format": "decimal"}, {"type": "string"}],
        "example": 0,
    }
    if precision is not None:
        schema["x-sap-precision"] = precision
    if scale is not None:
        schema["x-sap-scale"] = scale

    number = schema["anyOf"][0]
    if scale is not None:
        # 1 / 10**n is exact where 10**-n is not
        number["multipleOf"] = 10 ** -scale if scale <= 0 else 1 / 10 ** scale

    if precision is not None and precision < 16:
        effective_scale = scale or 0
        limit = 10 ** (precision - effective_scale)
        delta = 10 ** -effective_scale if effective_scale <= 0 else 1 / 10 ** effective_scale
        maximum = limit - delta
        if effective_scale > 0:
            maximum = round(maximum, effective_scale)
        number["maximum"] = maximum
        number["minimum"] = -maximum
    return schema


def map_primitive(type_name: Optional[str], element: Dict[str, Any] = None, voc: Vocabulary = None) -> Dict[str, Any]:
    """
    Map an Edm primitive type to a fresh Schema Object.

    type_name None is treated as Edm.String. Facets ($MaxLength, $Precision,
    $Scale) and the @JSON.Schema / @Validation.Pattern annotations are read
    from element. Geography and geometry points map to a reference to the
    shared geoPoint schema; the caller is responsible for emitting it.
    """
    element = element or {}
    voc = voc or _DEFAULT_VOCABULARY
    max_length = _number(element.get("$MaxLength"))

    if type_name is None or type_name == "Edm.String":
        schema = {"type": "string"}
        if max_length:
            schema["maxLength"] = max_length
        pattern = voc.value(element, "Validation", "Pattern")
        if pattern:
            schema["pattern"] = pattern
        return schema

    if type_name in PATH_TYPES:
        return {"type": "string"}

    if type_name in GEO_POINT_TYPES:
        return {"$ref": "#/components/schemas/geoPoint"}

    if type_name == "Edm.Binary":
        schema = {"type": "string", "format": "base64url"}
        if max_length:
            schema["maxLength"] = math.ceil(4 * max_length / 3)
        return schema

    if type_name == "Edm.Boolean":
        return {"type": "boolean"}

    if type_name == "Edm.Byte":
        return {"type": "integer", "format": "uint8"}

    if type_name == "Edm.Date":
        return {"type": "string", "format": "date", "example": "2017-04-13"}

    if type_name in ("Edm.DateTime", "Edm.DateTimeOffset"):
        precision = _number(element.get("$Precision"))
        fraction = "." + "0" * precision if precision else ""
        return {
            "type": "string",
            "format": "date-time",
            "example": f"2017-04-13T15:51:04{fraction}Z",
        }

    if type_name == "Edm.Decimal":
        return _decimal_schema(element)

    if type_name == "Edm.Double":
        return {
            "anyOf": [{"type": "number", "format": "double"}, {"type": "string"}],
            "example": 3.14,
        }

    if type_name == "Edm.Duration":
        return {"type": "string", "format": "duration", "example": "P4DT15H51M04S"}

    if type_name == "Edm.Guid":
        return {
            "type": "string",
            "format": "uuid",
            "example": "01234567-89ab-cdef-0123-456789abcdef",
        }

    if type_name == "Edm.Int16":
        return {"type": "integer", "format": "int16"}

    if type_name == "Edm.Int32":
        return {"type": "integer", "format": "int32"}

    if type_name == "Edm.Int64":
        return {
            "anyOf": [{"type": "integer", "format": "int64"}, {"type": "string"}],
            "example": "42",
        }

    if type_name == "Edm.PrimitiveType":
        return {"anyOf": [{"type": "boolean"}, {"type": "number"}, {"type": "string"}]}

    if type_name == "Edm.SByte":
        return {"type": "integer", "format": "int8"}

    if type_name == "Edm.Single":
        return {
            "anyOf": [{"type": "number", "format": "float"}, {"type": "string"}],
            "example": 3.14,
        }

    if type_name == "Edm.Stream":
        json_schema = voc.value(element, "JSON", "Schema")
        if json_schema:
            if isinstance(json_schema, str):
                return json.loads(json_schema)
            return dict(json_schema)
        return {"type": "string", "format": "base64url"}

    if type_name == "Edm.TimeOfDay":
        return {"type": "string", "format": "time", "example": "15:51:04"}

    if type_name == "Edm.Untyped":
        return {}

    logger.warning(f"  [WARN] Unknown type: {type_name}")
    return {}


def is_string_type(type_name: Optional[str]) -> bool:
    return type_name is None or type_name == "Edm.String"


def path_value_prefix(type_name: Optional[str], key_as_segment: bool = False) -> str:
    """Opening delimiter of a URL literal of the given type."""
    if type_name in UNQUOTED_LITERAL_TYPES or key_as_segment:
        return ""
    return "'"


def path_value_suffix(type_name: Optional[str], key_as_segment: bool = False) -> str:
    """Closing delimiter of a URL literal of the given type."""
    if type_name in UNQUOTED_LITERAL_TYPES or key_as_segment:
        return ""
    return "'"
