from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import yaml

from embedcfg.core.errors import ValidationError
from embedcfg.dialect.context import ScriptContext
from embedcfg.dialect.values import ScriptValue

from ._build import require_str, require_type, write_build_manifest
from .file_resource import FileManifest

MODULE = "snapcraft"

_CONFINEMENTS = ("strict", "classic", "devmode")
_GRADES = ("stable", "devel")


class Snap(ScriptValue):
    """A `snapcraft.yaml` document."""

    TYPE = "Snap"

    def __init__(self, name: str, version: str, summary: str, description: str) -> None:
        super().__init__()
        self._doc: Dict[str, Any] = {
            "name": name,
            "version": version,
            "summary": summary,
            "description": description,
            "base": "core18",
            "grade": "stable",
            "confinement": "strict",
            "apps": {},
            "parts": {},
        }

    @property
    def name(self) -> str:
        return self._doc["name"]

    def set(self, key: str, value: str) -> None:
        self.check_mutable("modify")
        if key == "confinement" and value not in _CONFINEMENTS:
            raise ValidationError(code=f"{MODULE}.invalid", message=f"confinement must be one of {', '.join(_CONFINEMENTS)}")
        if key == "grade" and value not in _GRADES:
            raise ValidationError(code=f"{MODULE}.invalid", message=f"grade must be one of {', '.join(_GRADES)}")
        if key in ("apps", "parts", "name"):
            raise ValidationError(code=f"{MODULE}.invalid", message=f"{key} cannot be set directly")
        self._doc[key] = value

    def add_app(self, name: str, command: str, plugs: Optional[List[str]] = None) -> None:
        self.check_mutable("add apps to")
        app: Dict[str, Any] = {"command": command}
        if plugs:
            app["plugs"] = list(plugs)
        self._doc["apps"][name] = app

    def add_part(self, name: str, plugin: str, source: Optional[str] = None) -> None:
        self.check_mutable("add parts to")
        part: Dict[str, Any] = {"plugin": plugin}
        if source is not None:
            part["source"] = source
        self._doc["parts"][name] = part

    def to_yaml(self) -> str:
        return yaml.safe_dump(self._doc, sort_keys=False, allow_unicode=True)


class SnapcraftBuilder(ScriptValue):
    TYPE = "SnapcraftBuilder"

    def __init__(self, snap: Snap) -> None:
        super().__init__()
        self.snap = snap
        self._invocations: List[Dict[str, Any]] = []
        self._files = FileManifest()

    def add_invocation(self, args: List[str], purge_build: Optional[bool] = None) -> None:
        self.check_mutable("add invocations to")
        self._invocations.append({"args": list(args), "purge_build": purge_build})

    def add_file_manifest(self, manifest: FileManifest) -> None:
        self.check_mutable("add files to")
        self._files.add_manifest(manifest)

    @property
    def invocations(self) -> List[Dict[str, Any]]:
        return [dict(i) for i in self._invocations]

    def owned_values(self) -> Iterable[ScriptValue]:
        return [self.snap, self._files]

    def build(self, ctx: ScriptContext, target_dir: Path) -> Path:
        target = Path(target_dir)
        self._files.install(target)
        snap_yaml = target / "snap" / "snapcraft.yaml"
        snap_yaml.parent.mkdir(parents=True, exist_ok=True)
        snap_yaml.write_text(self.snap.to_yaml(), encoding="utf-8")
        invocations = self.invocations or [{"args": ["snap"], "purge_build": None}]
        write_build_manifest(
            ctx,
            target,
            module=MODULE,
            name=self.snap.name,
            payload={
                "kind": "snap",
                "snapcraft_yaml": str(snap_yaml),
                "invocations": invocations,
                "files": self._files.paths(),
            },
        )
        return snap_yaml


def snap(ctx: ScriptContext, name: str, version: str, summary: str, description: str) -> Snap:
    """Create a snap definition."""
    return Snap(
        require_str(name, "name", module=MODULE),
        require_str(version, "version", module=MODULE),
        require_str(summary, "summary", module=MODULE),
        require_str(description, "description", module=MODULE),
    )


def snap_set(ctx: ScriptContext, snap_value: Snap, key: str, value: str) -> None:
    require_type(snap_value, Snap, "snap", module=MODULE).set(require_str(key, "key", module=MODULE), value)


def snap_add_app(ctx: ScriptContext, snap_value: Snap, name: str, command: str, plugs: Optional[List[str]] = None) -> None:
    require_type(snap_value, Snap, "snap", module=MODULE).add_app(
        require_str(name, "name", module=MODULE), require_str(command, "command", module=MODULE), plugs
    )


def snap_add_part(ctx: ScriptContext, snap_value: Snap, name: str, plugin: str, source: Optional[str] = None) -> None:
    require_type(snap_value, Snap, "snap", module=MODULE).add_part(
        require_str(name, "name", module=MODULE), require_str(plugin, "plugin", module=MODULE), source
    )


def snapcraft_builder(ctx: ScriptContext, snap_value: Snap) -> SnapcraftBuilder:
    """Create a builder that runs snapcraft for a snap definition."""
    return SnapcraftBuilder(require_type(snap_value, Snap, "snap", module=MODULE))


def add_invocation(ctx: ScriptContext, builder: SnapcraftBuilder, args: List[str], purge_build: Optional[bool] = None) -> None:
    """Add a snapcraft invocation (e.g. ["snap"]) to run at build time."""
    if isinstance(args, str) or not all(isinstance(a, str) for a in args):
        raise ValidationError(code=f"{MODULE}.invalid", message="args must be a list of strings")
    require_type(builder, SnapcraftBuilder, "builder", module=MODULE).add_invocation(list(args), purge_build)


def add_file_manifest(ctx: ScriptContext, builder: SnapcraftBuilder, manifest: FileManifest) -> None:
    require_type(manifest, FileManifest, "manifest", module=MODULE)
    require_type(builder, SnapcraftBuilder, "builder", module=MODULE).add_file_manifest(manifest)


def build(ctx: ScriptContext, builder: SnapcraftBuilder, target_dir: str) -> str:
    b = require_type(builder, SnapcraftBuilder, "builder", module=MODULE)
    return str(b.build(ctx, Path(require_str(target_dir, "target_dir", module=MODULE))))


def register(env) -> None:
    env.add_function(MODULE, "Snap", snap)
    env.add_function(MODULE, "snap_set", snap_set)
    env.add_function(MODULE, "snap_add_app", snap_add_app)
    env.add_function(MODULE, "snap_add_part", snap_add_part)
    env.add_function(MODULE, "SnapcraftBuilder", snapcraft_builder)
    env.add_function(MODULE, "snapcraft_builder_add_invocation", add_invocation)
    env.add_function(MODULE, "snapcraft_builder_add_file_manifest", add_file_manifest)
    env.add_function(MODULE, "snapcraft_builder_build", build)
