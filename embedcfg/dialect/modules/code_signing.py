"""
Code signing dialect functions.

Signers describe where signing material lives; signing itself is done by the
packaging backends, which receive the activated signers in build manifests.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, Optional

from embedcfg.core.errors import ValidationError
from embedcfg.dialect.context import ScriptContext
from embedcfg.dialect.values import ScriptValue

from ._build import require_str, require_type

MODULE = "code_signing"

_SHA1_RE = re.compile(r"^[0-9a-fA-F]{40}$")
_SECRET_KEYS = ("password",)


class CodeSigner(ScriptValue):
    TYPE = "CodeSigner"

    def __init__(self, kind: str, params: Dict[str, Any]) -> None:
        super().__init__()
        self.kind = kind
        self._params = dict(params)

    @property
    def params(self) -> Dict[str, Any]:
        return dict(self._params)

    def describe(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"kind": self.kind}
        for k, v in sorted(self._params.items()):
            out[k] = "<redacted>" if k in _SECRET_KEYS and v else v
        return out


def code_signer_from_pfx_file(ctx: ScriptContext, path: str, password: Optional[str] = None) -> CodeSigner:
    """Signer backed by a PFX (PKCS #12) file."""
    path = require_str(path, "path", module=MODULE)
    if password is not None and not isinstance(password, str):
        raise ValidationError(code=f"{MODULE}.invalid", message="password must be a string")
    if not Path(path).is_file():
        raise ValidationError(code=f"{MODULE}.pfx_missing", message=f"PFX file not found: {path}", data={"path": path})
    return CodeSigner("pfx_file", {"path": path, "password": password or ""})


def code_signer_from_pem_files(ctx: ScriptContext, cert_path: str, key_path: str) -> CodeSigner:
    """Signer backed by PEM encoded certificate and private key files."""
    cert_path = require_str(cert_path, "cert_path", module=MODULE)
    key_path = require_str(key_path, "key_path", module=MODULE)
    for p in (cert_path, key_path):
        if not Path(p).is_file():
            raise ValidationError(code=f"{MODULE}.pem_missing", message=f"PEM file not found: {p}", data={"path": p})
    return CodeSigner("pem_files", {"cert_path": cert_path, "key_path": key_path})


def code_signer_from_windows_store_sha1_thumbprint(ctx: ScriptContext, thumbprint: str, store: str = "my") -> CodeSigner:
    """Signer resolved from the Windows certificate store by SHA-1 thumbprint."""
    thumbprint = require_str(thumbprint, "thumbprint", module=MODULE)
    if not _SHA1_RE.match(thumbprint):
        raise ValidationError(
            code=f"{MODULE}.invalid",
            message="thumbprint must be 40 hex characters",
            data={"thumbprint": thumbprint},
        )
    store = require_str(store, "store", module=MODULE)
    return CodeSigner("windows_store_sha1_thumbprint", {"thumbprint": thumbprint.lower(), "store": store})


def code_signer_from_windows_store_auto(ctx: ScriptContext) -> CodeSigner:
    """Signer picking the first code signing certificate in the Windows user store."""
    return CodeSigner("windows_store_auto", {})


def code_signer_activate(ctx: ScriptContext, signer: CodeSigner) -> None:
    """Register a signer for every artifact built afterwards."""
    require_type(signer, CodeSigner, "signer", module=MODULE)
    ctx.add_code_signer(signer)


def register(env) -> None:
    env.add_function(MODULE, "code_signer_from_pfx_file", code_signer_from_pfx_file)
    env.add_function(MODULE, "code_signer_from_pem_files", code_signer_from_pem_files)
    env.add_function(
        MODULE, "code_signer_from_windows_store_sha1_thumbprint", code_signer_from_windows_store_sha1_thumbprint
    )
    env.add_function(MODULE, "code_signer_from_windows_store_auto", code_signer_from_windows_store_auto)
    env.add_function(MODULE, "code_signer_activate", code_signer_activate)
