from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class EmbedError(Exception):
    code: str
    message: str
    data: dict[str, Any] | None = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class ValidationError(EmbedError):
    pass


class BindingError(EmbedError):
    pass


class ContextNotFound(EmbedError):
    """
    Raised when an environment has no ScriptContext bound.

    Always a registration-order bug (dialect functions invoked before
    `bind`), never caused by script input.
    """


class FrozenValueError(EmbedError):
    pass


class FreezeError(EmbedError):
    pass


class FunctionNotFound(EmbedError):
    pass
