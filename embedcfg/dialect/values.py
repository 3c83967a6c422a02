"""
Values held by a scripting environment.

Every value exposes the values it owns so an environment can be frozen
recursively. Freezing is all-or-nothing: reachable values are checked first
and nothing is frozen if one of them refuses.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Iterator, List

from embedcfg.core.errors import FreezeError, FrozenValueError


# Plain Python values an environment may hold directly; all immutable.
IMMUTABLE_TYPES = (str, bytes, int, float, bool, type(None))


class ScriptValue:
    TYPE = "value"

    def __init__(self) -> None:
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def owned_values(self) -> Iterable["ScriptValue"]:
        return ()

    def can_freeze(self) -> bool:
        return True

    def freeze(self) -> None:
        """Freeze this value only; use `freeze_all` for reachable values."""
        self._frozen = True

    def check_mutable(self, operation: str = "modify") -> None:
        if self._frozen:
            raise FrozenValueError(
                code="value.frozen",
                message=f"Cannot {operation} frozen {self.TYPE}",
                data={"type": self.TYPE},
            )

    def __repr__(self) -> str:
        state = "frozen" if self._frozen else "mutable"
        return f"<{self.TYPE} {state}>"


def is_allowed_value(value: Any) -> bool:
    return isinstance(value, ScriptValue) or isinstance(value, IMMUTABLE_TYPES)


def reachable_values(*roots: ScriptValue) -> List[ScriptValue]:
    seen: set[int] = set()
    out: List[ScriptValue] = []
    stack = list(roots)
    while stack:
        v = stack.pop()
        if id(v) in seen:
            continue
        seen.add(id(v))
        out.append(v)
        stack.extend(c for c in v.owned_values() if isinstance(c, ScriptValue))
    return out


def freeze_all(*roots: ScriptValue) -> int:
    """
    Freeze `roots` and everything reachable from them. Returns the number of values visited.

    Raises FreezeError (freezing nothing) if a reachable value cannot be frozen.
    """
    values = reachable_values(*roots)
    for v in values:
        if not v.frozen and not v.can_freeze():
            raise FreezeError(
                code="value.unfreezable",
                message=f"Value of type {v.TYPE} cannot be frozen",
                data={"type": v.TYPE},
            )
    for v in values:
        v.freeze()

    mutable = sorted({v.TYPE for v in reachable_values(*roots) if not v.frozen})
    if mutable:
        raise FreezeError(
            code="value.mutable_after_freeze",
            message="Mutable values remain reachable after freeze",
            data={"types": mutable},
        )
    return len(values)


class ListValue(ScriptValue):
    TYPE = "list"

    def __init__(self, items: Iterable[Any] = ()) -> None:
        super().__init__()
        self._items: List[Any] = []
        for item in items:
            self.append(item)

    def append(self, item: Any) -> None:
        self.check_mutable("append to")
        if not is_allowed_value(item):
            raise TypeError(f"list items must be script values, got {type(item).__name__}")
        self._items.append(item)

    def owned_values(self) -> Iterable[ScriptValue]:
        return [i for i in self._items if isinstance(i, ScriptValue)]

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, index: int) -> Any:
        return self._items[index]


class NativeFunction(ScriptValue):
    """
    An extension function installed by a dialect module.

    The callable receives the evaluation's ScriptContext as its first argument.
    """

    TYPE = "builtin_function"

    def __init__(self, module: str, name: str, impl: Callable[..., Any]) -> None:
        super().__init__()
        self.module = module
        self.name = name
        self._impl = impl

    @property
    def doc(self) -> str:
        doc = (self._impl.__doc__ or "").strip()
        return doc.splitlines()[0] if doc else ""

    def invoke(self, context: Any, *args: Any, **kwargs: Any) -> Any:
        return self._impl(context, *args, **kwargs)

    def __repr__(self) -> str:
        return f"<{self.TYPE} {self.module}.{self.name}>"
