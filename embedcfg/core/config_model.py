from __future__ import annotations

import sys
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .errors import ValidationError


class RawAllocator(Enum):
    SYSTEM = "system"
    JEMALLOC = "jemalloc"
    RUST = "rust"


def default_raw_allocator() -> RawAllocator:
    # jemalloc is not available for the msvc targets.
    if sys.platform.startswith("win"):
        return RawAllocator.SYSTEM
    return RawAllocator.JEMALLOC


class RunModeKind(Enum):
    NOOP = "noop"
    REPL = "repl"
    MODULE = "module"
    EVAL = "eval"
    FILE = "file"


_RUN_MODE_PAYLOAD_KEYS = {
    RunModeKind.MODULE: "module",
    RunModeKind.EVAL: "code",
    RunModeKind.FILE: "path",
}


@dataclass(frozen=True)
class RunMode:
    """
    What the embedded interpreter does once initialized.

    `payload` holds the module name, code text or file path for the variants
    that need one and must be None for the others.
    """

    kind: RunModeKind
    payload: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.kind, RunModeKind):
            raise ValidationError(code="run_mode.invalid", message=f"Unknown run mode: {self.kind!r}")
        needs_payload = self.kind in _RUN_MODE_PAYLOAD_KEYS
        if needs_payload and not isinstance(self.payload, str):
            raise ValidationError(
                code="run_mode.invalid",
                message=f"Run mode {self.kind.value} requires a string {_RUN_MODE_PAYLOAD_KEYS[self.kind]}",
            )
        if not needs_payload and self.payload is not None:
            raise ValidationError(code="run_mode.invalid", message=f"Run mode {self.kind.value} takes no payload")

    @classmethod
    def noop(cls) -> "RunMode":
        return cls(RunModeKind.NOOP)

    @classmethod
    def repl(cls) -> "RunMode":
        return cls(RunModeKind.REPL)

    @classmethod
    def module(cls, module: str) -> "RunMode":
        return cls(RunModeKind.MODULE, module)

    @classmethod
    def eval(cls, code: str) -> "RunMode":
        return cls(RunModeKind.EVAL, code)

    @classmethod
    def file(cls, path: str) -> "RunMode":
        return cls(RunModeKind.FILE, path)

    @classmethod
    def from_dict(cls, raw: Any) -> "RunMode":
        if isinstance(raw, str):
            raw = {"kind": raw}
        if not isinstance(raw, dict):
            raise ValidationError(code="run_mode.invalid", message="run_mode must be a string or an object")
        kind_raw = raw.get("kind")
        try:
            kind = RunModeKind(kind_raw)
        except ValueError:
            raise ValidationError(
                code="run_mode.invalid",
                message=f"Unknown run mode: {kind_raw!r}",
                data={"allowed": [k.value for k in RunModeKind]},
            ) from None
        extra = set(raw.keys()) - {"kind", _RUN_MODE_PAYLOAD_KEYS.get(kind, "kind")}
        if extra:
            raise ValidationError(
                code="run_mode.invalid",
                message=f"Unexpected keys for run mode {kind.value}: {', '.join(sorted(extra))}",
            )
        key = _RUN_MODE_PAYLOAD_KEYS.get(kind)
        return cls(kind, raw.get(key) if key else None)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"kind": self.kind.value}
        key = _RUN_MODE_PAYLOAD_KEYS.get(self.kind)
        if key:
            out[key] = self.payload
        return out


class TerminfoKind(Enum):
    DYNAMIC = "dynamic"
    NONE = "none"
    STATIC = "static"


@dataclass(frozen=True)
class TerminfoResolution:
    """How the embedded interpreter locates terminfo databases."""

    kind: TerminfoKind
    path: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.kind, TerminfoKind):
            raise ValidationError(code="terminfo.invalid", message=f"Unknown terminfo resolution: {self.kind!r}")
        if self.kind is TerminfoKind.STATIC and not isinstance(self.path, str):
            raise ValidationError(code="terminfo.invalid", message="Static terminfo resolution requires a path")
        if self.kind is not TerminfoKind.STATIC and self.path is not None:
            raise ValidationError(code="terminfo.invalid", message=f"Terminfo resolution {self.kind.value} takes no path")

    @classmethod
    def dynamic(cls) -> "TerminfoResolution":
        return cls(TerminfoKind.DYNAMIC)

    @classmethod
    def none(cls) -> "TerminfoResolution":
        return cls(TerminfoKind.NONE)

    @classmethod
    def static(cls, path: str) -> "TerminfoResolution":
        return cls(TerminfoKind.STATIC, path)

    @classmethod
    def from_dict(cls, raw: Any) -> "TerminfoResolution":
        if isinstance(raw, str):
            raw = {"kind": raw}
        if not isinstance(raw, dict):
            raise ValidationError(code="terminfo.invalid", message="terminfo_resolution must be a string or an object")
        try:
            kind = TerminfoKind(raw.get("kind"))
        except ValueError:
            raise ValidationError(
                code="terminfo.invalid",
                message=f"Unknown terminfo resolution: {raw.get('kind')!r}",
                data={"allowed": [k.value for k in TerminfoKind]},
            ) from None
        return cls(kind, raw.get("path"))

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"kind": self.kind.value}
        if self.path is not None:
            out["path"] = self.path
        return out


_BOOL_FIELDS = (
    "isolated",
    "site_import",
    "user_site_directory",
    "use_environment",
    "inspect",
    "interactive",
    "legacy_windows_fs_encoding",
    "legacy_windows_stdio",
    "write_bytecode",
    "buffered_stdio",
    "parser_debug",
    "quiet",
    "filesystem_importer",
    "sys_frozen",
    "sys_meipass",
)
_INT_FIELDS = ("optimize_level", "bytes_warning", "verbose")
_OPTIONAL_STR_FIELDS = ("stdio_encoding_name", "stdio_encoding_errors", "write_modules_directory_env")


@dataclass(frozen=True)
class EmbeddedPythonConfig:
    """
    Describes how the Python interpreter embedded in a built binary is initialized.

    Integer levels are stored as given; values outside their logical domain are
    clamped when rendered, not rejected here.
    """

    isolated: bool = False
    stdio_encoding_name: Optional[str] = None
    stdio_encoding_errors: Optional[str] = None
    optimize_level: int = 0
    sys_paths: Tuple[str, ...] = ()
    bytes_warning: int = 0
    site_import: bool = False
    user_site_directory: bool = False
    use_environment: bool = False
    inspect: bool = False
    interactive: bool = False
    legacy_windows_fs_encoding: bool = False
    legacy_windows_stdio: bool = False
    write_bytecode: bool = False
    buffered_stdio: bool = True
    parser_debug: bool = False
    quiet: bool = False
    verbose: int = 0
    raw_allocator: RawAllocator = field(default_factory=default_raw_allocator)
    filesystem_importer: bool = False
    sys_frozen: bool = False
    sys_meipass: bool = False
    terminfo_resolution: TerminfoResolution = field(default_factory=TerminfoResolution.dynamic)
    write_modules_directory_env: Optional[str] = None
    run_mode: RunMode = field(default_factory=RunMode.repl)

    def __post_init__(self) -> None:
        # Accept any iterable of paths but store an immutable tuple.
        if not isinstance(self.sys_paths, tuple):
            object.__setattr__(self, "sys_paths", tuple(self.sys_paths))
        for p in self.sys_paths:
            if not isinstance(p, str):
                raise ValidationError(code="config.invalid", message="sys_paths entries must be strings")

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "EmbeddedPythonConfig":
        if not isinstance(raw, dict):
            raise ValidationError(code="config.invalid", message="Embedded Python config must be an object")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(raw.keys()) - known)
        if unknown:
            raise ValidationError(
                code="config.invalid",
                message=f"Unknown config keys: {', '.join(unknown)}",
                data={"unknown": unknown},
            )

        kwargs: Dict[str, Any] = {}
        for name in _BOOL_FIELDS:
            if name in raw:
                if not isinstance(raw[name], bool):
                    raise ValidationError(code="config.invalid", message=f"{name} must be a boolean")
                kwargs[name] = raw[name]
        for name in _INT_FIELDS:
            if name in raw:
                v = raw[name]
                if isinstance(v, bool) or not isinstance(v, int):
                    raise ValidationError(code="config.invalid", message=f"{name} must be an integer")
                kwargs[name] = v
        for name in _OPTIONAL_STR_FIELDS:
            if name in raw:
                v = raw[name]
                if v is not None and not isinstance(v, str):
                    raise ValidationError(code="config.invalid", message=f"{name} must be a string or null")
                kwargs[name] = v

        if "sys_paths" in raw:
            paths = raw["sys_paths"]
            if paths is None:
                paths = []
            if not isinstance(paths, list):
                raise ValidationError(code="config.invalid", message="sys_paths must be an array of strings")
            kwargs["sys_paths"] = tuple(paths)

        if "raw_allocator" in raw:
            try:
                kwargs["raw_allocator"] = RawAllocator(raw["raw_allocator"])
            except ValueError:
                raise ValidationError(
                    code="config.invalid",
                    message=f"Unknown raw_allocator: {raw['raw_allocator']!r}",
                    data={"allowed": [a.value for a in RawAllocator]},
                ) from None
        if "terminfo_resolution" in raw:
            kwargs["terminfo_resolution"] = TerminfoResolution.from_dict(raw["terminfo_resolution"])
        if "run_mode" in raw:
            kwargs["run_mode"] = RunMode.from_dict(raw["run_mode"])

        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for f in fields(self):
            v = getattr(self, f.name)
            if isinstance(v, (RunMode, TerminfoResolution)):
                v = v.to_dict()
            elif isinstance(v, RawAllocator):
                v = v.value
            elif isinstance(v, tuple):
                v = list(v)
            out[f.name] = v
        return out
