from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import jsonschema
import yaml

from embedcfg.resources import embedded_config_schema_path

from .config_model import EmbeddedPythonConfig
from .errors import ValidationError


_SCHEMA: Optional[Dict[str, Any]] = None


def _schema() -> Dict[str, Any]:
    global _SCHEMA
    if _SCHEMA is None:
        _SCHEMA = json.loads(embedded_config_schema_path().read_text(encoding="utf-8"))
    return _SCHEMA


def validate_config_dict(raw: Any) -> List[str]:
    """
    Validates a raw config mapping and returns a list of error strings (empty means valid).
    """
    validator = jsonschema.Draft202012Validator(_schema())
    errors = []
    for e in sorted(validator.iter_errors(raw), key=str):
        where = "/".join(str(p) for p in e.absolute_path)
        errors.append(f"{where}: {e.message}" if where else e.message)
    return errors


def config_from_dict(raw: Any) -> EmbeddedPythonConfig:
    errors = validate_config_dict(raw)
    if errors:
        raise ValidationError(
            code="config.schema_invalid",
            message="Embedded Python config does not validate against embedded_config.schema.json",
            data={"errors": errors},
        )
    return EmbeddedPythonConfig.from_dict(raw)


def load_config(path: Path) -> EmbeddedPythonConfig:
    """
    Load an embedded Python config from a YAML (or `.json`) file.

    An empty file yields the default configuration.
    """
    if not path.exists():
        raise FileNotFoundError(str(path))
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        raw = json.loads(text)
    else:
        raw = yaml.safe_load(text)
    if raw is None:
        raw = {}
    return config_from_dict(raw)
