"""
Render an `EmbeddedPythonConfig` as Rust source constructing a
`pyembed::OxidizedPythonInterpreterConfig`.
"""

from __future__ import annotations

import os
from typing import List, Optional, Tuple, Union

from embedcfg.core.config_model import (
    EmbeddedPythonConfig,
    RawAllocator,
    RunMode,
    RunModeKind,
    TerminfoKind,
    TerminfoResolution,
)

from .literal import (
    NONE,
    Bool,
    Call,
    CaseTable,
    EnumCase,
    Macro,
    Node,
    Seq,
    Str,
    Struct,
    path_buf,
    render,
    some,
)


PathLike = Union[str, "os.PathLike[str]"]

# Out-of-domain levels select the strictest case.
OPTIMIZATION_LEVELS: CaseTable[int] = CaseTable(
    "pyembed::OptimizationLevel",
    {0: "Zero", 1: "One", 2: "Two"},
    fallback="Two",
)

BYTES_WARNING_LEVELS: CaseTable[int] = CaseTable(
    "pyembed::BytesWarning",
    {0: "None", 1: "Warn", 2: "Raise"},
    fallback="Raise",
)

PROFILES: CaseTable[bool] = CaseTable(
    "pyembed::PythonInterpreterProfile",
    {True: "Isolated", False: "Python"},
    fallback="Isolated",
)

RAW_ALLOCATORS: CaseTable[RawAllocator] = CaseTable(
    "pyembed::PythonRawAllocator",
    {
        RawAllocator.SYSTEM: "system()",
        RawAllocator.JEMALLOC: "jemalloc()",
        RawAllocator.RUST: "rust()",
    },
    fallback="system()",
)

TERMINFO_KINDS: CaseTable[TerminfoKind] = CaseTable(
    "pyembed::TerminfoResolution",
    {TerminfoKind.DYNAMIC: "Dynamic", TerminfoKind.NONE: "None", TerminfoKind.STATIC: "Static"},
    fallback="Dynamic",
)

RUN_MODE_KINDS: CaseTable[RunModeKind] = CaseTable(
    "pyembed::PythonRunMode",
    {
        RunModeKind.NOOP: "None",
        RunModeKind.REPL: "Repl",
        RunModeKind.MODULE: "Module",
        RunModeKind.EVAL: "Eval",
        RunModeKind.FILE: "File",
    },
    fallback="None",
)

# PythonInterpreterConfig fields this layer never sets.
_UNSET_INTERPRETER_FIELDS = (
    "allocator",
    "configure_locale",
    "coerce_c_locale",
    "coerce_c_locale_warn",
    "development_mode",
    "isolated",
    "parse_argv",
    "utf8_mode",
    "argv",
    "base_exec_prefix",
    "base_executable",
    "base_prefix",
    "check_hash_pycs_mode",
    "configure_c_stdio",
    "dump_refs",
    "exec_prefix",
    "executable",
    "fault_handler",
    "filesystem_encoding",
    "filesystem_errors",
    "hash_seed",
    "home",
    "import_time",
    "install_signal_handlers",
    "malloc_stats",
    "prefix",
    "program_name",
    "python_path_env",
    "pathconfig_warnings",
    "pycache_prefix",
    "run_command",
    "run_filename",
    "run_module",
    "tracemalloc",
    "warn_options",
    "show_alloc_count",
    "show_ref_count",
    "skip_first_source_line",
    "x_options",
)


def optimization_case(level: object) -> EnumCase:
    return OPTIMIZATION_LEVELS.lookup(level)


def bytes_warning_case(level: object) -> EnumCase:
    return BYTES_WARNING_LEVELS.lookup(level)


def _optional_string(value: Optional[str]) -> Node:
    if value is None:
        return NONE
    return some(Str(value, owned=True))


def _search_paths(paths: Tuple[str, ...]) -> Node:
    # An empty list means "unset", not "no paths".
    if not paths:
        return NONE
    return some(Seq(tuple(path_buf(p) for p in paths)))


def terminfo_node(terminfo: TerminfoResolution) -> Node:
    case = TERMINFO_KINDS.lookup(terminfo.kind)
    if case.case != "Static":
        return case
    if terminfo.path is None:
        return EnumCase(TERMINFO_KINDS.enum_path, TERMINFO_KINDS.fallback)
    return Call(case.render(), (Str(terminfo.path, owned=True),))


def run_mode_node(run_mode: RunMode) -> Node:
    case = RUN_MODE_KINDS.lookup(run_mode.kind)
    path = case.render()
    if run_mode.kind is RunModeKind.MODULE:
        return Struct(path, (("module", Str(run_mode.payload or "", owned=True)),), inline=True)
    if run_mode.kind is RunModeKind.EVAL:
        return Struct(path, (("code", Str(run_mode.payload or "", owned=True)),), inline=True)
    if run_mode.kind is RunModeKind.FILE:
        return Struct(path, (("path", path_buf(run_mode.payload or "")),), inline=True)
    return case


def interpreter_config_node(config: EmbeddedPythonConfig) -> Struct:
    fields: List[Tuple[str, Node]] = [("profile", PROFILES.lookup(bool(config.isolated)))]
    fields.extend((name, NONE) for name in _UNSET_INTERPRETER_FIELDS)
    fields.extend(
        [
            ("stdio_encoding", _optional_string(config.stdio_encoding_name)),
            ("stdio_errors", _optional_string(config.stdio_encoding_errors)),
            ("optimization_level", some(optimization_case(config.optimize_level))),
            ("module_search_paths", _search_paths(config.sys_paths)),
            ("bytes_warning", some(bytes_warning_case(config.bytes_warning))),
            ("site_import", some(Bool(config.site_import))),
            ("user_site_directory", some(Bool(config.user_site_directory))),
            ("use_environment", some(Bool(config.use_environment))),
            ("inspect", some(Bool(config.inspect))),
            ("interactive", some(Bool(config.interactive))),
            ("legacy_windows_fs_encoding", some(Bool(config.legacy_windows_fs_encoding))),
            ("legacy_windows_stdio", some(Bool(config.legacy_windows_stdio))),
            ("write_bytecode", some(Bool(config.write_bytecode))),
            ("buffered_stdio", some(Bool(config.buffered_stdio))),
            ("parser_debug", some(Bool(config.parser_debug))),
            ("quiet", some(Bool(config.quiet))),
            ("verbose", some(Bool(config.verbose != 0))),
        ]
    )
    return Struct("pyembed::PythonInterpreterConfig", tuple(fields))


def python_config_node(config: EmbeddedPythonConfig, embedded_resources_path: PathLike) -> Struct:
    resources = os.fspath(embedded_resources_path)
    fields: List[Tuple[str, Node]] = [
        ("interpreter_config", interpreter_config_node(config)),
        ("raw_allocator", some(RAW_ALLOCATORS.lookup(config.raw_allocator))),
        ("oxidized_importer", Bool(True)),
        ("filesystem_importer", Bool(config.filesystem_importer)),
        ("packed_resources", some(Macro("include_bytes", (Str(resources),)))),
        ("extra_extension_modules", NONE),
        ("argvb", Bool(False)),
        ("sys_frozen", Bool(config.sys_frozen)),
        ("sys_meipass", Bool(config.sys_meipass)),
        ("terminfo_resolution", terminfo_node(config.terminfo_resolution)),
        ("write_modules_directory_env", _optional_string(config.write_modules_directory_env)),
        ("run", run_mode_node(config.run_mode)),
    ]
    return Struct("pyembed::OxidizedPythonInterpreterConfig", tuple(fields))


def derive_python_config(config: EmbeddedPythonConfig, embedded_resources_path: PathLike) -> str:
    """
    Obtain the Rust source code to construct an OxidizedPythonInterpreterConfig.

    `embedded_resources_path` is embedded with `include_bytes!` at the time the
    generated crate is compiled; it is rendered verbatim.
    """
    return render(python_config_node(config, embedded_resources_path))
