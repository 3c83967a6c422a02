from __future__ import annotations

import plistlib
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from embedcfg.core.errors import ValidationError
from embedcfg.dialect.context import ScriptContext
from embedcfg.dialect.values import ScriptValue

from ._build import require_str, require_type, write_build_manifest
from .file_resource import FileContent, FileManifest

MODULE = "macos_application_bundle_builder"

_PLIST_VALUE_TYPES = (str, bool, int, float)


class MacOsApplicationBundleBuilder(ScriptValue):
    """
    Accumulates the contents of a `<name>.app` bundle.
    """

    TYPE = "MacOsApplicationBundleBuilder"

    def __init__(self, bundle_name: str) -> None:
        super().__init__()
        self.bundle_name = bundle_name
        self._info_plist: Dict[str, Any] = {
            "CFBundleName": bundle_name,
            "CFBundleDisplayName": bundle_name,
            "CFBundlePackageType": "APPL",
            "CFBundleInfoDictionaryVersion": "6.0",
        }
        self._files = FileManifest()

    @property
    def info_plist(self) -> Dict[str, Any]:
        return dict(self._info_plist)

    @property
    def files(self) -> FileManifest:
        return self._files

    def set_info_plist_key(self, key: str, value: Any) -> None:
        self.check_mutable("set Info.plist keys on")
        if not isinstance(value, _PLIST_VALUE_TYPES):
            raise ValidationError(
                code=f"{MODULE}.invalid",
                message=f"Info.plist value for {key} must be a string, boolean or number",
            )
        self._info_plist[key] = value

    def add_file(self, content: FileContent, directory: str) -> str:
        self.check_mutable("add files to")
        return self._files.add_file(content, f"Contents/{directory}")

    def owned_values(self) -> Iterable[ScriptValue]:
        return [self._files]

    def build(self, target_dir: Path) -> Path:
        if "CFBundleIdentifier" not in self._info_plist:
            raise ValidationError(
                code=f"{MODULE}.incomplete",
                message="CFBundleIdentifier must be set before building",
            )
        bundle_dir = Path(target_dir) / f"{self.bundle_name}.app"
        self._files.install(bundle_dir)
        plist_path = bundle_dir / "Contents" / "Info.plist"
        plist_path.parent.mkdir(parents=True, exist_ok=True)
        with plist_path.open("wb") as f:
            plistlib.dump(self._info_plist, f, sort_keys=True)
        return bundle_dir


def macos_application_bundle_builder(ctx: ScriptContext, bundle_name: str) -> MacOsApplicationBundleBuilder:
    """Create a builder for a macOS `.app` bundle."""
    return MacOsApplicationBundleBuilder(require_str(bundle_name, "bundle_name", module=MODULE))


def _builder(value: Any) -> MacOsApplicationBundleBuilder:
    return require_type(value, MacOsApplicationBundleBuilder, "builder", module=MODULE)


def set_info_plist_key(ctx: ScriptContext, builder: MacOsApplicationBundleBuilder, key: str, value: Any) -> None:
    _builder(builder).set_info_plist_key(require_str(key, "key", module=MODULE), value)


def add_macos_file(
    ctx: ScriptContext, builder: MacOsApplicationBundleBuilder, content: FileContent, path: Optional[str] = None
) -> str:
    """Add a file under Contents/MacOS (executables)."""
    require_type(content, FileContent, "content", module=MODULE)
    return _builder(builder).add_file(content, f"MacOS/{path}" if path else "MacOS")


def add_resources_file(
    ctx: ScriptContext, builder: MacOsApplicationBundleBuilder, content: FileContent, path: Optional[str] = None
) -> str:
    """Add a file under Contents/Resources."""
    require_type(content, FileContent, "content", module=MODULE)
    return _builder(builder).add_file(content, f"Resources/{path}" if path else "Resources")


def build(ctx: ScriptContext, builder: MacOsApplicationBundleBuilder, target_dir: str) -> str:
    """Materialize the bundle below `target_dir`."""
    b = _builder(builder)
    target = Path(require_str(target_dir, "target_dir", module=MODULE))
    bundle_dir = b.build(target)
    write_build_manifest(
        ctx,
        target,
        module=MODULE,
        name=b.bundle_name,
        payload={"kind": "macos_application_bundle", "bundle": str(bundle_dir), "files": b.files.paths()},
    )
    return str(bundle_dir)


def register(env) -> None:
    env.add_function(MODULE, "MacOsApplicationBundleBuilder", macos_application_bundle_builder)
    env.add_function(MODULE, "macos_application_bundle_builder_set_info_plist_key", set_info_plist_key)
    env.add_function(MODULE, "macos_application_bundle_builder_add_macos_file", add_macos_file)
    env.add_function(MODULE, "macos_application_bundle_builder_add_resources_file", add_resources_file)
    env.add_function(MODULE, "macos_application_bundle_builder_build", build)
