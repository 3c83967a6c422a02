from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, List, Tuple

from embedcfg.core.errors import BindingError, ContextNotFound
from embedcfg.trace.trace_emitter import TraceEmitter

from .values import ScriptValue

if TYPE_CHECKING:
    from .environment import Environment


# Not a valid identifier, so scripts can never define or shadow it.
ENVIRONMENT_CONTEXT_SYMBOL = "<embedcfg:context>"


class ScriptContext(ScriptValue):
    """
    Global state accumulated while evaluating one build script.

    Created per evaluation, mutated by dialect functions, frozen together with
    its environment. The trace sink is not script state and keeps accepting
    events after freezing.
    """

    TYPE = "EmbedContext"

    def __init__(self, trace: TraceEmitter) -> None:
        super().__init__()
        self.trace = trace
        self._code_signers: List[ScriptValue] = []

    @property
    def code_signers(self) -> Tuple[ScriptValue, ...]:
        return tuple(self._code_signers)

    def add_code_signer(self, signer: ScriptValue) -> None:
        self.check_mutable("register a code signer with")
        self._code_signers.append(signer)
        self.trace.emit(
            "code_signer_activated",
            message="Code signer activated",
            data={"type": signer.TYPE, "index": len(self._code_signers) - 1},
        )

    def owned_values(self) -> Iterable[ScriptValue]:
        return list(self._code_signers)

    def log(self, event_type: str, **kwargs: Any) -> None:
        self.trace.emit(event_type, **kwargs)


def bind(env: "Environment", context: ScriptContext) -> None:
    """
    Install `context` into `env` under the reserved symbol.

    An environment holds exactly one context; the assignment is rejected if one
    is already bound or the environment is frozen.
    """
    if not isinstance(context, ScriptContext):
        raise BindingError(code="context.invalid", message=f"Expected ScriptContext, got {type(context).__name__}")
    if env.get(ENVIRONMENT_CONTEXT_SYMBOL) is not None:
        raise BindingError(
            code="context.already_bound",
            message="A context is already bound to this environment",
            data={"symbol": ENVIRONMENT_CONTEXT_SYMBOL},
        )
    env.set(ENVIRONMENT_CONTEXT_SYMBOL, context)


def resolve(env: "Environment") -> ScriptContext:
    value = env.get(ENVIRONMENT_CONTEXT_SYMBOL)
    if not isinstance(value, ScriptContext):
        raise ContextNotFound(
            code="context.not_found",
            message="unable to resolve context (this should never happen: dialect used before the context was bound)",
            data={"symbol": ENVIRONMENT_CONTEXT_SYMBOL},
        )
    return value


def populate_environment(env: "Environment", context: ScriptContext) -> None:
    """
    Populate an environment with the variables needed to support the dialect.
    """
    bind(env, context)
    context.log("context_bound", message="Context bound", data={"symbol": ENVIRONMENT_CONTEXT_SYMBOL})
