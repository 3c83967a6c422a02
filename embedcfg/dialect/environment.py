from __future__ import annotations

import re
from typing import Any, Callable, Dict, List, Optional

from embedcfg.core.errors import BindingError, FunctionNotFound

from .context import ENVIRONMENT_CONTEXT_SYMBOL, ScriptContext, resolve
from .values import NativeFunction, ScriptValue, freeze_all, is_allowed_value


_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class Environment:
    """
    Namespace a build script is evaluated in.

    Holds script values by name. `freeze()` is terminal: afterwards no binding
    can change and every reachable value is immutable, so the environment can
    be shared across evaluations without locking.
    """

    def __init__(self, name: str = "global") -> None:
        self._name = name
        self._values: Dict[str, Any] = {}
        self._frozen = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def frozen(self) -> bool:
        return self._frozen

    def set(self, name: str, value: Any) -> None:
        if self._frozen:
            raise BindingError(
                code="environment.frozen",
                message=f"Cannot set {name!r}: environment {self._name} is frozen",
                data={"name": name},
            )
        if not is_allowed_value(value):
            raise BindingError(
                code="environment.invalid_value",
                message=f"Cannot bind {name!r} to a {type(value).__name__}",
                data={"name": name},
            )
        self._values[name] = value

    def define(self, name: str, value: Any) -> None:
        """Bind a script-visible name."""
        if not isinstance(name, str) or not _IDENTIFIER_RE.match(name):
            raise BindingError(code="environment.invalid_name", message=f"Invalid identifier: {name!r}")
        self.set(name, value)

    def get(self, name: str) -> Optional[Any]:
        return self._values.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def names(self) -> List[str]:
        return sorted(self._values.keys())

    def add_function(self, module: str, name: str, impl: Callable[..., Any]) -> NativeFunction:
        fn = NativeFunction(module, name, impl)
        self.define(name, fn)
        return fn

    def functions(self) -> List[NativeFunction]:
        return [v for k, v in sorted(self._values.items()) if isinstance(v, NativeFunction)]

    def call(self, name: str, *args: Any, **kwargs: Any) -> Any:
        """
        Invoke a dialect function the way the evaluator does, passing it the bound context.
        """
        fn = self._values.get(name)
        if not isinstance(fn, NativeFunction):
            raise FunctionNotFound(code="function.unknown", message=f"Unknown function: {name}", data={"name": name})
        context = resolve(self)
        context.log("dialect_call", module=fn.module, function=fn.name)
        return fn.invoke(context, *args, **kwargs)

    def freeze(self) -> None:
        if self._frozen:
            return
        roots = [v for v in self._values.values() if isinstance(v, ScriptValue)]
        count = freeze_all(*roots)
        self._frozen = True
        context = self._values.get(ENVIRONMENT_CONTEXT_SYMBOL)
        if isinstance(context, ScriptContext):
            context.log("environment_frozen", message="Environment frozen", data={"environment": self._name, "values": count})
