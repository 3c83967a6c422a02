from __future__ import annotations

import glob as _glob
import os
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, List, Optional, Tuple, Union

from embedcfg.core.errors import ValidationError
from embedcfg.dialect.context import ScriptContext
from embedcfg.dialect.values import ScriptValue

from ._build import require_str, require_type

MODULE = "file_resource"


def normalize_install_path(path: str) -> str:
    """
    Validate a manifest-relative path and return it in posix form.
    """
    p = PurePosixPath(path.replace("\\", "/"))
    if not path or p.is_absolute() or ".." in p.parts or str(p) in (".", ""):
        raise ValidationError(code=f"{MODULE}.invalid_path", message=f"Invalid relative path: {path!r}")
    return str(p)


class FileContent(ScriptValue):
    """A file's bytes plus install metadata."""

    TYPE = "FileContent"

    def __init__(self, filename: str, data: bytes, executable: bool = False) -> None:
        super().__init__()
        self._filename = filename
        self._data = data
        self._executable = executable

    @property
    def filename(self) -> str:
        return self._filename

    @property
    def data(self) -> bytes:
        return self._data

    @property
    def executable(self) -> bool:
        return self._executable

    def set_executable(self, executable: bool) -> None:
        self.check_mutable("change")
        self._executable = bool(executable)


class FileManifest(ScriptValue):
    """
    Relative install paths mapped to file contents.
    """

    TYPE = "FileManifest"

    def __init__(self) -> None:
        super().__init__()
        self._entries: Dict[str, FileContent] = {}

    def add_file(self, content: FileContent, directory: Optional[str] = None) -> str:
        self.check_mutable("add files to")
        rel = content.filename if not directory else f"{directory.rstrip('/')}/{content.filename}"
        rel = normalize_install_path(rel)
        self._entries[rel] = content
        return rel

    def add_manifest(self, other: "FileManifest", prefix: Optional[str] = None) -> None:
        self.check_mutable("add files to")
        for rel, content in other.entries():
            target = normalize_install_path(f"{prefix.rstrip('/')}/{rel}") if prefix else rel
            self._entries[target] = content

    def entries(self) -> List[Tuple[str, FileContent]]:
        return sorted(self._entries.items())

    def paths(self) -> List[str]:
        return sorted(self._entries.keys())

    def owned_values(self) -> Iterable[ScriptValue]:
        return list(self._entries.values())

    def install(self, dest: Union[str, Path], replace: bool = True) -> List[Path]:
        """
        Materialize the manifest under `dest`. Installing does not mutate the manifest,
        so frozen manifests can be installed too.
        """
        dest_dir = Path(dest)
        written: List[Path] = []
        for rel, content in self.entries():
            out = dest_dir.joinpath(*rel.split("/"))
            if out.exists() and not replace:
                raise FileExistsError(f"{MODULE}: destination exists (replace=false): {out}")
            out.parent.mkdir(parents=True, exist_ok=True)
            out.write_bytes(content.data)
            if content.executable:
                out.chmod(out.stat().st_mode | 0o111)
            written.append(out)
        return written


def file_content(
    ctx: ScriptContext,
    path: Optional[str] = None,
    filename: Optional[str] = None,
    content: Optional[Union[str, bytes]] = None,
    executable: bool = False,
) -> FileContent:
    """Create a FileContent from a filesystem path or from inline content."""
    if path is not None and content is not None:
        raise ValidationError(code=f"{MODULE}.invalid", message="path and content are mutually exclusive")
    if path is not None:
        src = Path(require_str(path, "path", module=MODULE))
        if not src.is_file():
            raise ValidationError(code=f"{MODULE}.missing", message=f"File not found: {src}", data={"path": str(src)})
        data = src.read_bytes()
        name = filename or src.name
        if not executable:
            executable = os.access(src, os.X_OK)
    elif content is not None:
        data = content.encode("utf-8") if isinstance(content, str) else content
        if not isinstance(data, bytes):
            raise ValidationError(code=f"{MODULE}.invalid", message="content must be a string or bytes")
        name = require_str(filename, "filename", module=MODULE)
    else:
        raise ValidationError(code=f"{MODULE}.invalid", message="one of path or content is required")
    if "/" in name or "\\" in name:
        raise ValidationError(code=f"{MODULE}.invalid", message=f"filename must not contain path separators: {name!r}")
    return FileContent(name, data, bool(executable))


def file_manifest(ctx: ScriptContext) -> FileManifest:
    """Create an empty FileManifest."""
    return FileManifest()


def file_manifest_add_file(
    ctx: ScriptContext, manifest: FileManifest, content: FileContent, directory: Optional[str] = None
) -> str:
    """Add a FileContent to a manifest, optionally under a directory."""
    require_type(manifest, FileManifest, "manifest", module=MODULE)
    require_type(content, FileContent, "content", module=MODULE)
    return manifest.add_file(content, directory)


def file_manifest_add_manifest(
    ctx: ScriptContext, manifest: FileManifest, other: FileManifest, prefix: Optional[str] = None
) -> None:
    """Merge another manifest's entries into `manifest`."""
    require_type(manifest, FileManifest, "manifest", module=MODULE)
    require_type(other, FileManifest, "other", module=MODULE)
    manifest.add_manifest(other, prefix)


def file_manifest_install(ctx: ScriptContext, manifest: FileManifest, path: str, replace: bool = True) -> Tuple[str, ...]:
    """Write a manifest's files below `path`."""
    require_type(manifest, FileManifest, "manifest", module=MODULE)
    written = manifest.install(require_str(path, "path", module=MODULE), replace=replace)
    ctx.log("files_installed", module=MODULE, data={"path": path, "count": len(written)})
    return tuple(str(p) for p in written)


def glob(
    ctx: ScriptContext,
    include: Union[str, Iterable[str]],
    exclude: Optional[Iterable[str]] = None,
    strip_prefix: Optional[str] = None,
) -> FileManifest:
    """Build a FileManifest from files matching glob patterns."""
    includes = [include] if isinstance(include, str) else list(include)
    excluded = set()
    for pattern in exclude or ():
        excluded.update(_glob.glob(pattern, recursive=True))

    manifest = FileManifest()
    for pattern in includes:
        for match in sorted(_glob.glob(pattern, recursive=True)):
            if match in excluded or not os.path.isfile(match):
                continue
            rel = match
            if strip_prefix:
                if not match.startswith(strip_prefix):
                    raise ValidationError(
                        code=f"{MODULE}.invalid",
                        message=f"{match} does not start with strip_prefix {strip_prefix}",
                    )
                rel = match[len(strip_prefix):].lstrip("/\\")
            parent, _, _ = rel.replace("\\", "/").rpartition("/")
            content = file_content(ctx, path=match)
            manifest.add_file(content, parent or None)
    return manifest


def register(env) -> None:
    env.add_function(MODULE, "FileContent", file_content)
    env.add_function(MODULE, "FileManifest", file_manifest)
    env.add_function(MODULE, "file_manifest_add_file", file_manifest_add_file)
    env.add_function(MODULE, "file_manifest_add_manifest", file_manifest_add_manifest)
    env.add_function(MODULE, "file_manifest_install", file_manifest_install)
    env.add_function(MODULE, "glob", glob)
