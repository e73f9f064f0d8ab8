"""Contains utility functions for reading YAML and JSON configuration files."""

import json
from pathlib import Path
from typing import Any

import structlog
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

yaml = YAML(typ="safe")


def load_json_or_yaml_file(path: Path) -> dict[str, Any]:
    """Loads a file that may hold either JSON or YAML, as `.prettierrc` may.

    JSON is tried first because tab-indented JSON is not valid YAML. An empty
    file yields an empty dictionary.
    """
    content = path.read_text(encoding="utf-8")
    if not content.strip():
        return {}
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        logger.debug("Configuration file is not JSON, parsing as YAML", path=str(path))
        try:
            data = yaml.load(content)
        except YAMLError as exc:
            raise ValueError(f"Failed to parse configuration file {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {path} must contain a mapping, found {type(data).__name__}")
    return data
