from __future__ import annotations

from importlib import import_module
from pathlib import Path


def _package_dir(package_name: str) -> Path:
    """Directory an imported package was loaded from (filesystem installs only)."""
    p = getattr(import_module(package_name), "__file__", None)
    if not isinstance(p, str) or not p:
        raise RuntimeError(f"{package_name} is not installed on a filesystem; cannot locate its data files")
    return Path(p).resolve().parent


def schemas_dir() -> Path:
    return _package_dir("embedcfg") / "schemas"


def embedded_config_schema_path() -> Path:
    """Schema validating embedded Python config files."""
    return schemas_dir() / "embedded_config.schema.json"
