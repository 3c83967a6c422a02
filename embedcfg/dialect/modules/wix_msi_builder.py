"""
Builds a simple MSI installing a set of files into Program Files.
"""

from __future__ import annotations

import hashlib
import re
import uuid
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, Iterable

from embedcfg.core.errors import ValidationError
from embedcfg.dialect.context import ScriptContext
from embedcfg.dialect.values import ScriptValue

from ._build import require_str, require_type, write_build_manifest
from .file_resource import FileManifest

MODULE = "wix_msi_builder"

WIX_NAMESPACE = "http://schemas.microsoft.com/wix/2006/wi"

_ID_PREFIX_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_.]*$")

# Optional attributes settable from scripts.
SETTABLE_ATTRIBUTES = (
    "banner_bmp_path",
    "dialog_bmp_path",
    "eula_rtf_path",
    "help_url",
    "license_path",
    "msi_filename",
    "package_description",
    "package_keywords",
    "product_icon_path",
    "upgrade_code",
)


class WiXMSIBuilder(ScriptValue):
    TYPE = "WiXMSIBuilder"

    def __init__(self, id_prefix: str, product_name: str, product_version: str, product_manufacturer: str) -> None:
        super().__init__()
        self.id_prefix = id_prefix
        self.product_name = product_name
        self.product_version = product_version
        self.product_manufacturer = product_manufacturer
        self._attributes: Dict[str, str] = {}
        self._program_files = FileManifest()

    @property
    def program_files(self) -> FileManifest:
        return self._program_files

    def set_attribute(self, key: str, value: str) -> None:
        self.check_mutable("modify")
        if key not in SETTABLE_ATTRIBUTES:
            raise ValidationError(
                code=f"{MODULE}.invalid",
                message=f"Unknown attribute: {key}",
                data={"allowed": list(SETTABLE_ATTRIBUTES)},
            )
        self._attributes[key] = value

    def add_program_files_manifest(self, manifest: FileManifest) -> None:
        self.check_mutable("add program files to")
        self._program_files.add_manifest(manifest)

    def owned_values(self) -> Iterable[ScriptValue]:
        return [self._program_files]

    @property
    def msi_filename(self) -> str:
        return self._attributes.get("msi_filename") or f"{self.product_name}-{self.product_version}.msi"

    @property
    def upgrade_code(self) -> str:
        explicit = self._attributes.get("upgrade_code")
        if explicit:
            return explicit
        # Stable across builds of the same product.
        return str(uuid.uuid5(uuid.NAMESPACE_DNS, f"{self.id_prefix}.{self.product_name}.upgrade_code")).upper()

    def _component_id(self, rel: str) -> str:
        # `a-b` and `a_b` sanitize alike; the digest keeps ids distinct.
        digest = hashlib.sha1(rel.encode("utf-8")).hexdigest()[:8]
        return f"{self.id_prefix}.file." + re.sub(r"[^A-Za-z0-9_.]", "_", rel) + "." + digest

    def to_wxs(self) -> str:
        ET.register_namespace("", WIX_NAMESPACE)
        ns = "{%s}" % WIX_NAMESPACE
        root = ET.Element(ns + "Wix")
        product = ET.SubElement(
            root,
            ns + "Product",
            {
                "Id": "*",
                "Name": self.product_name,
                "Version": self.product_version,
                "Manufacturer": self.product_manufacturer,
                "Language": "1033",
                "UpgradeCode": self.upgrade_code,
            },
        )
        package = {"InstallerVersion": "500", "Compressed": "yes", "InstallScope": "perMachine"}
        if "package_description" in self._attributes:
            package["Description"] = self._attributes["package_description"]
        if "package_keywords" in self._attributes:
            package["Keywords"] = self._attributes["package_keywords"]
        ET.SubElement(product, ns + "Package", package)
        ET.SubElement(product, ns + "MediaTemplate", {"EmbedCab": "yes"})

        target = ET.SubElement(product, ns + "Directory", {"Id": "TARGETDIR", "Name": "SourceDir"})
        pf = ET.SubElement(target, ns + "Directory", {"Id": "ProgramFiles64Folder"})
        install_dir = ET.SubElement(pf, ns + "Directory", {"Id": "INSTALLDIR", "Name": self.product_name})

        feature = ET.SubElement(product, ns + "Feature", {"Id": "MainProgram", "Title": "Application", "Level": "1"})
        for rel, _content in self._program_files.entries():
            cid = self._component_id(rel)
            component = ET.SubElement(install_dir, ns + "Component", {"Id": cid, "Guid": "*"})
            ET.SubElement(component, ns + "File", {"Id": cid, "Source": "program_files/" + rel, "KeyPath": "yes"})
            ET.SubElement(feature, ns + "ComponentRef", {"Id": cid})

        ET.indent(root)
        return ET.tostring(root, encoding="unicode", xml_declaration=True) + "\n"

    def build(self, ctx: ScriptContext, target_dir: Path) -> Path:
        target = Path(target_dir)
        self._program_files.install(target / "program_files")
        wxs_path = target / "wxs" / "main.wxs"
        wxs_path.parent.mkdir(parents=True, exist_ok=True)
        wxs_path.write_text(self.to_wxs(), encoding="utf-8")
        return write_build_manifest(
            ctx,
            target,
            module=MODULE,
            name=self.id_prefix,
            payload={
                "kind": "wix_msi",
                "output": self.msi_filename,
                "wxs": [str(wxs_path)],
                "attributes": dict(sorted(self._attributes.items())),
                "upgrade_code": self.upgrade_code,
                "program_files": self._program_files.paths(),
            },
        )


def wix_msi_builder(
    ctx: ScriptContext, id_prefix: str, product_name: str, product_version: str, product_manufacturer: str
) -> WiXMSIBuilder:
    """Create a builder for an MSI installing files into Program Files."""
    id_prefix = require_str(id_prefix, "id_prefix", module=MODULE)
    if not _ID_PREFIX_RE.match(id_prefix):
        raise ValidationError(code=f"{MODULE}.invalid", message=f"Invalid id_prefix: {id_prefix!r}")
    return WiXMSIBuilder(
        id_prefix,
        require_str(product_name, "product_name", module=MODULE),
        require_str(product_version, "product_version", module=MODULE),
        require_str(product_manufacturer, "product_manufacturer", module=MODULE),
    )


def set_attribute(ctx: ScriptContext, builder: WiXMSIBuilder, key: str, value: str) -> None:
    require_type(builder, WiXMSIBuilder, "builder", module=MODULE).set_attribute(
        require_str(key, "key", module=MODULE), require_str(value, "value", module=MODULE)
    )


def add_program_files_manifest(ctx: ScriptContext, builder: WiXMSIBuilder, manifest: FileManifest) -> None:
    """Install the manifest's files into the product's Program Files directory."""
    require_type(manifest, FileManifest, "manifest", module=MODULE)
    require_type(builder, WiXMSIBuilder, "builder", module=MODULE).add_program_files_manifest(manifest)


def build(ctx: ScriptContext, builder: WiXMSIBuilder, target_dir: str) -> str:
    b = require_type(builder, WiXMSIBuilder, "builder", module=MODULE)
    return str(b.build(ctx, Path(require_str(target_dir, "target_dir", module=MODULE))))


def register(env) -> None:
    env.add_function(MODULE, "WiXMSIBuilder", wix_msi_builder)
    env.add_function(MODULE, "wix_msi_builder_set", set_attribute)
    env.add_function(MODULE, "wix_msi_builder_add_program_files_manifest", add_program_files_manifest)
    env.add_function(MODULE, "wix_msi_builder_build", build)
