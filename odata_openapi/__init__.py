"""Convert OData CSDL JSON documents into OpenAPI 3.0.2 descriptions."""

from odata_openapi.api.builders.service_builders import compile_service, iterate_documents
from odata_openapi.api.generator import csdl2openapi

__version__ = "0.1.0"

__all__ = [
    "csdl2openapi",
    "compile_service",
    "iterate_documents",
]
