from pathlib import Path
from jinja2 import Environment, FileSystemLoader


def _yuml_cardinality(element) -> str:
    """yUML multiplicity of a typed element: "*", "0..1" or ""."""
    if element.get("$Collection"):
        return "*"
    if element.get("$Nullable"):
        return "0..1"
    return ""


env = Environment(
    loader=FileSystemLoader(Path(__file__).parent),
    trim_blocks=True,
    lstrip_blocks=True,
)

env.filters["yuml_cardinality"] = _yuml_cardinality
