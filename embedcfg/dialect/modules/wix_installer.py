"""
Generic WiX installer: a set of `.wxs` sources plus preprocessor variables,
compiled by candle/light in the packaging backend.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, Optional

from embedcfg.core.errors import ValidationError
from embedcfg.dialect.context import ScriptContext
from embedcfg.dialect.values import ScriptValue

from ._build import require_str, require_type, write_build_manifest
from .file_resource import FileManifest

MODULE = "wix_installer"


class WiXInstaller(ScriptValue):
    TYPE = "WiXInstaller"

    def __init__(self, installer_id: str, filename: str) -> None:
        super().__init__()
        self.installer_id = installer_id
        self.filename = filename
        self._wxs: Dict[str, str] = {}
        self._variables: Dict[str, Optional[str]] = {}
        self._build_files = FileManifest()

    def add_wxs_source(self, name: str, source: str) -> None:
        self.check_mutable("add wxs files to")
        if not name.endswith(".wxs"):
            raise ValidationError(code=f"{MODULE}.invalid", message=f"wxs file name must end in .wxs: {name}")
        self._wxs[name] = source

    def set_variable(self, key: str, value: Optional[str]) -> None:
        self.check_mutable("set variables on")
        self._variables[key] = value

    def add_build_files(self, manifest: FileManifest) -> None:
        self.check_mutable("add build files to")
        self._build_files.add_manifest(manifest)

    @property
    def wxs_names(self) -> list:
        return sorted(self._wxs.keys())

    @property
    def variables(self) -> Dict[str, Optional[str]]:
        return dict(self._variables)

    def owned_values(self) -> Iterable[ScriptValue]:
        return [self._build_files]

    def build(self, ctx: ScriptContext, target_dir: Path) -> Path:
        if not self._wxs:
            raise ValidationError(code=f"{MODULE}.incomplete", message="at least one wxs file is required")
        target = Path(target_dir)
        wxs_dir = target / "wxs"
        wxs_dir.mkdir(parents=True, exist_ok=True)
        for name, source in sorted(self._wxs.items()):
            (wxs_dir / name).write_text(source, encoding="utf-8")
        self._build_files.install(target / "build_files")
        return write_build_manifest(
            ctx,
            target,
            module=MODULE,
            name=self.installer_id,
            payload={
                "kind": "wix_installer",
                "output": self.filename,
                "wxs": [str(wxs_dir / n) for n in self.wxs_names],
                "variables": self.variables,
                "build_files": self._build_files.paths(),
            },
        )


def wix_installer(ctx: ScriptContext, installer_id: str, filename: str) -> WiXInstaller:
    """Create an installer producing `filename` (.msi or .exe)."""
    filename = require_str(filename, "filename", module=MODULE)
    if not filename.lower().endswith((".msi", ".exe")):
        raise ValidationError(code=f"{MODULE}.invalid", message=f"filename must end in .msi or .exe: {filename}")
    return WiXInstaller(require_str(installer_id, "id", module=MODULE), filename)


def add_wxs_file(ctx: ScriptContext, installer: WiXInstaller, path: str) -> None:
    """Add a `.wxs` source read from disk."""
    src = Path(require_str(path, "path", module=MODULE))
    if not src.is_file():
        raise ValidationError(code=f"{MODULE}.missing", message=f"wxs file not found: {src}", data={"path": str(src)})
    require_type(installer, WiXInstaller, "installer", module=MODULE).add_wxs_source(
        src.name, src.read_text(encoding="utf-8")
    )


def set_variable(ctx: ScriptContext, installer: WiXInstaller, key: str, value: Optional[str] = None) -> None:
    """Define a preprocessor variable passed to candle."""
    if value is not None and not isinstance(value, str):
        raise ValidationError(code=f"{MODULE}.invalid", message="variable value must be a string or None")
    require_type(installer, WiXInstaller, "installer", module=MODULE).set_variable(
        require_str(key, "key", module=MODULE), value
    )


def add_build_files(ctx: ScriptContext, installer: WiXInstaller, manifest: FileManifest) -> None:
    """Add files materialized next to the wxs sources at build time."""
    require_type(manifest, FileManifest, "manifest", module=MODULE)
    require_type(installer, WiXInstaller, "installer", module=MODULE).add_build_files(manifest)


def build(ctx: ScriptContext, installer: WiXInstaller, target_dir: str) -> str:
    i = require_type(installer, WiXInstaller, "installer", module=MODULE)
    return str(i.build(ctx, Path(require_str(target_dir, "target_dir", module=MODULE))))


def register(env) -> None:
    env.add_function(MODULE, "WiXInstaller", wix_installer)
    env.add_function(MODULE, "wix_installer_add_wxs_file", add_wxs_file)
    env.add_function(MODULE, "wix_installer_set_variable", set_variable)
    env.add_function(MODULE, "wix_installer_add_build_files", add_build_files)
    env.add_function(MODULE, "wix_installer_build", build)
