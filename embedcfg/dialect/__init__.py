from .context import ENVIRONMENT_CONTEXT_SYMBOL, ScriptContext, bind, populate_environment, resolve
from .environment import Environment
from .registrar import DIALECT_MODULES, list_dialect_functions, new_environment, register_dialect
from .values import ListValue, NativeFunction, ScriptValue, freeze_all

__all__ = [
  "DIALECT_MODULES",
  "ENVIRONMENT_CONTEXT_SYMBOL",
  "Environment",
  "ListValue",
  "NativeFunction",
  "ScriptContext",
  "ScriptValue",
  "bind",
  "freeze_all",
  "list_dialect_functions",
  "new_environment",
  "populate_environment",
  "register_dialect",
  "resolve",
]
