from __future__ import annotations

from typing import Dict, List, Optional

from embedcfg.trace.trace_emitter import TraceEmitter
from embedcfg.trace.trace_store_jsonl import MemoryTraceStore

from .context import ScriptContext, populate_environment
from .environment import Environment
from .modules import (
    code_signing,
    file_resource,
    macos_application_bundle_builder,
    snapcraft,
    wix_bundle_builder,
    wix_installer,
    wix_msi_builder,
)


# Modules are independent of each other; order only affects listing.
DIALECT_MODULES = (
    code_signing,
    file_resource,
    macos_application_bundle_builder,
    snapcraft,
    wix_bundle_builder,
    wix_installer,
    wix_msi_builder,
)


def register_dialect(env: Environment) -> None:
    """
    Register the build-script dialect's functions into `env`.
    """
    for module in DIALECT_MODULES:
        module.register(env)


def new_environment(trace: Optional[TraceEmitter] = None, *, run_id: str = "run_script") -> Environment:
    """
    Fresh environment for one script evaluation: dialect registered, new context bound.
    """
    if trace is None:
        trace = TraceEmitter(store=MemoryTraceStore(), run_id=run_id)
    env = Environment()
    register_dialect(env)
    populate_environment(env, ScriptContext(trace))
    return env


def list_dialect_functions() -> List[Dict[str, str]]:
    env = Environment()
    register_dialect(env)
    return [{"name": f.name, "module": f.module, "doc": f.doc} for f in env.functions()]
