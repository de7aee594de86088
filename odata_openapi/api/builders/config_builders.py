"""
Conversion options and configuration file loading.

Options reach the converter in three spellings: compiler style
("openapi:url", "odata-version"), camelCase ("odataVersion") from JSON
configuration, and snake_case from Python callers. Everything is normalized
into a ConversionOptions instance.
"""

import json
import re
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..gen_logging import get_logger
from ...errors import ConfigurationError

logger = get_logger(__name__)

DEFAULT_MAX_LEVELS = 5
DEFAULT_QUERY_OPTION_PREFIX = "$"


def _snake_case(key: str) -> str:
    key = key.replace("-", "_")
    return re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "_", key).lower()


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


@dataclass
class ConversionOptions:
    """Options of a single CSDL to OpenAPI conversion."""
    url: Optional[str] = None
    servers: Any = None
    odata_version: Optional[str] = None
    scheme: Optional[str] = None
    host: Optional[str] = None
    base_path: Optional[str] = None
    diagram: bool = False
    max_levels: int = DEFAULT_MAX_LEVELS
    query_option_prefix: str = DEFAULT_QUERY_OPTION_PREFIX

    @classmethod
    def from_mapping(cls, mapping: Optional[Dict[str, Any]]) -> "ConversionOptions":
        if isinstance(mapping, cls):
            return mapping
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in (mapping or {}).items():
            name = _snake_case(key)
            if name not in known:
                logger.debug(f"  [SKIP] Unknown option {key}")
                continue
            if value is None:
                continue
            values[name] = value

        if "odata_version" in values:
            values["odata_version"] = str(values["odata_version"])
        if "diagram" in values:
            values["diagram"] = _as_bool(values["diagram"])
        if "max_levels" in values:
            try:
                values["max_levels"] = int(values["max_levels"])
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"Option maxLevels must be an integer, got {values['max_levels']!r}") from e
        return cls(**values)

    def service_root(self) -> str:
        if self.url:
            return self.url
        return f"{self.scheme or 'https'}://{self.host or 'localhost'}{self.base_path or '/service-root'}"

    def server_list(self) -> List[Dict[str, Any]]:
        """Server Objects from the servers option, or one server at the service root."""
        servers = self.servers
        if isinstance(servers, str):
            try:
                servers = json.loads(servers)
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"Option servers is not valid JSON: {e}") from e
        if isinstance(servers, dict):
            servers = [servers]
        if servers:
            return list(servers)
        return [{"url": self.service_root()}]


def load_config_file(path: str) -> Dict[str, Any]:
    """Read a JSON or YAML configuration file into a dict."""
    config_path = Path(path)
    if not config_path.is_file():
        raise ConfigurationError(
            f"Error while parsing the openapi configuration file {path}",
            {"path": str(path)},
        )
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            content = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Error while parsing the openapi configuration file {path}: {e}",
            {"path": str(path)},
        ) from e
    if not isinstance(content, dict):
        raise ConfigurationError(
            f"Error while parsing the openapi configuration file {path}: expected a mapping",
            {"path": str(path)},
        )
    return content


def to_openapi_options(raw: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Extract converter options from compiler-style options.

    "openapi:<name>" keys are unwrapped, "odata-version" is kept, and an
    "openapi:config-file" is merged in; inline options take precedence over
    the file. Keys of the result are snake_case.
    """
    result = {}
    for key, value in (raw or {}).items():
        if key.startswith("openapi:") and len(key) > len("openapi:"):
            result[_snake_case(key[len("openapi:"):])] = value
        elif key in ("odata-version", "odataVersion", "odata_version"):
            result["odata_version"] = value

    config_file = result.pop("config_file", None)
    if config_file:
        logger.debug(f"[CONFIG] Reading {config_file}")
        for key, value in load_config_file(config_file).items():
            name = _snake_case(key)
            if name == "diagram":
                if "diagram" not in result:
                    result["diagram"] = _as_bool(value)
            elif name not in result:
                result[name] = value

    return result
