"""
Builds a WiX bundle (`.exe` bootstrapper) chaining MSI packages and
Visual C++ redistributables.
"""

from __future__ import annotations

import uuid
from pathlib import Path
from typing import Any, Dict, Iterable, List

from embedcfg.core.errors import ValidationError
from embedcfg.dialect.context import ScriptContext
from embedcfg.dialect.values import ScriptValue

from ._build import require_str, require_type, write_build_manifest
from .wix_msi_builder import WiXMSIBuilder

MODULE = "wix_bundle_builder"

VC_REDIST_PLATFORMS = ("x86", "x64", "arm64")


class WiXBundleBuilder(ScriptValue):
    TYPE = "WiXBundleBuilder"

    def __init__(self, id_prefix: str, name: str, version: str, manufacturer: str) -> None:
        super().__init__()
        self.id_prefix = id_prefix
        self.name = name
        self.version = version
        self.manufacturer = manufacturer
        self._vc_redist: List[str] = []
        self._msi_builders: List[WiXMSIBuilder] = []

    def add_vc_redistributable(self, platform: str) -> None:
        self.check_mutable("add redistributables to")
        if platform not in VC_REDIST_PLATFORMS:
            raise ValidationError(
                code=f"{MODULE}.invalid",
                message=f"platform must be one of {', '.join(VC_REDIST_PLATFORMS)}",
                data={"platform": platform},
            )
        if platform not in self._vc_redist:
            self._vc_redist.append(platform)

    def add_msi_builder(self, builder: WiXMSIBuilder) -> None:
        self.check_mutable("add packages to")
        self._msi_builders.append(builder)

    def owned_values(self) -> Iterable[ScriptValue]:
        return list(self._msi_builders)

    @property
    def upgrade_code(self) -> str:
        return str(uuid.uuid5(uuid.NAMESPACE_DNS, f"{self.id_prefix}.{self.name}.bundle")).upper()

    def chain(self) -> List[Dict[str, Any]]:
        out: List[Dict[str, Any]] = [{"kind": "vc_redist", "platform": p} for p in self._vc_redist]
        out.extend({"kind": "msi", "id_prefix": b.id_prefix, "output": b.msi_filename} for b in self._msi_builders)
        return out

    def build(self, ctx: ScriptContext, target_dir: Path) -> Path:
        if not self._msi_builders and not self._vc_redist:
            raise ValidationError(code=f"{MODULE}.incomplete", message="bundle chain is empty")
        target = Path(target_dir)
        for b in self._msi_builders:
            b.build(ctx, target / "msi" / b.id_prefix)
        return write_build_manifest(
            ctx,
            target,
            module=MODULE,
            name=self.id_prefix,
            payload={
                "kind": "wix_bundle",
                "output": f"{self.name}-{self.version}.exe",
                "name": self.name,
                "version": self.version,
                "manufacturer": self.manufacturer,
                "upgrade_code": self.upgrade_code,
                "chain": self.chain(),
            },
        )


def wix_bundle_builder(ctx: ScriptContext, id_prefix: str, name: str, version: str, manufacturer: str) -> WiXBundleBuilder:
    """Create a builder for a WiX bundle installer."""
    return WiXBundleBuilder(
        require_str(id_prefix, "id_prefix", module=MODULE),
        require_str(name, "name", module=MODULE),
        require_str(version, "version", module=MODULE),
        require_str(manufacturer, "manufacturer", module=MODULE),
    )


def add_vc_redistributable(ctx: ScriptContext, builder: WiXBundleBuilder, platform: str) -> None:
    require_type(builder, WiXBundleBuilder, "builder", module=MODULE).add_vc_redistributable(platform)


def add_wix_msi_builder(ctx: ScriptContext, builder: WiXBundleBuilder, msi_builder: WiXMSIBuilder) -> None:
    require_type(msi_builder, WiXMSIBuilder, "msi_builder", module=MODULE)
    require_type(builder, WiXBundleBuilder, "builder", module=MODULE).add_msi_builder(msi_builder)


def build(ctx: ScriptContext, builder: WiXBundleBuilder, target_dir: str) -> str:
    b = require_type(builder, WiXBundleBuilder, "builder", module=MODULE)
    return str(b.build(ctx, Path(require_str(target_dir, "target_dir", module=MODULE))))


def register(env) -> None:
    env.add_function(MODULE, "WiXBundleBuilder", wix_bundle_builder)
    env.add_function(MODULE, "wix_bundle_builder_add_vc_redistributable", add_vc_redistributable)
    env.add_function(MODULE, "wix_bundle_builder_add_wix_msi_builder", add_wix_msi_builder)
    env.add_function(MODULE, "wix_bundle_builder_build", build)
