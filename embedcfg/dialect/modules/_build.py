from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

from embedcfg.core.errors import ValidationError
from embedcfg.dialect.context import ScriptContext


def require_str(value: Any, name: str, *, module: str) -> str:
    if not isinstance(value, str) or not value:
        raise ValidationError(code=f"{module}.invalid", message=f"{name} must be a non-empty string")
    return value


def require_type(value: Any, cls: type, name: str, *, module: str) -> Any:
    if not isinstance(value, cls):
        raise ValidationError(
            code=f"{module}.invalid",
            message=f"{name} must be a {getattr(cls, 'TYPE', cls.__name__)}, got {type(value).__name__}",
        )
    return value


def write_build_manifest(
    ctx: ScriptContext,
    target_dir: str | Path,
    *,
    module: str,
    name: str,
    payload: Dict[str, Any],
) -> Path:
    """
    Write `<name>.build.json` describing what the packaging backend should produce.

    Code signers active in the context are recorded so the backend can sign
    the produced artifacts.
    """
    target = Path(target_dir)
    target.mkdir(parents=True, exist_ok=True)
    doc = dict(payload)
    doc["code_signers"] = [s.describe() for s in ctx.code_signers if hasattr(s, "describe")]
    out = target / f"{name}.build.json"
    out.write_text(json.dumps(doc, ensure_ascii=False, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    ctx.log("build_finished", module=module, message=f"Wrote {out.name}", data={"path": str(out)})
    return out
