"""
Typed emitter for Rust literal expressions.

Rendered source is built as a small tree of nodes and printed in one pass.
Every string literal is printed on a single line, so a rendered tree can be
re-indented line by line without touching string contents.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Generic, Hashable, Optional, Tuple, TypeVar


INDENT = "    "

_RAW_HASH_RUN_RE = re.compile(r'"(#*)')

# rustc rejects raw strings delimited by more `#`.
MAX_RAW_STRING_HASHES = 255


class Node:
    def render(self, level: int = 0) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class Bool(Node):
    value: bool

    def render(self, level: int = 0) -> str:
        return "true" if self.value else "false"


def _is_control(ch: str) -> bool:
    o = ord(ch)
    return o < 0x20 or o == 0x7F or 0x80 <= o < 0xA0


def _is_surrogate(ch: str) -> bool:
    return 0xD800 <= ord(ch) <= 0xDFFF


def _escape_char(ch: str) -> str:
    if ch == "\\":
        return "\\\\"
    if ch == '"':
        return '\\"'
    if ch == "\n":
        return "\\n"
    if ch == "\r":
        return "\\r"
    if ch == "\t":
        return "\\t"
    if ch == "\0":
        return "\\0"
    if _is_surrogate(ch):
        # Rust source is UTF-8; lone surrogates have no representation.
        return "\\u{fffd}"
    if _is_control(ch):
        return "\\u{%x}" % ord(ch)
    return ch


def raw_string_hashes(value: str) -> int:
    """Number of `#` needed so `value` cannot close a raw string early."""
    longest = -1
    for m in _RAW_HASH_RUN_RE.finditer(value):
        longest = max(longest, len(m.group(1)))
    return longest + 1


def string_literal(value: str) -> str:
    """
    Render `value` as a Rust string literal that always parses.

    Plain text uses `"..."`; text with quotes or backslashes uses a raw string
    with enough `#` delimiters, or is escaped when that would exceed
    `MAX_RAW_STRING_HASHES`; text with control characters or lone surrogates
    is escaped.
    """
    if any(_is_control(ch) or _is_surrogate(ch) for ch in value):
        return '"' + "".join(_escape_char(ch) for ch in value) + '"'
    if '"' not in value and "\\" not in value:
        return '"' + value + '"'
    count = raw_string_hashes(value)
    if count > MAX_RAW_STRING_HASHES:
        return '"' + "".join(_escape_char(ch) for ch in value) + '"'
    hashes = "#" * count
    return 'r' + hashes + '"' + value + '"' + hashes


@dataclass(frozen=True)
class Str(Node):
    """A string literal; `owned` appends `.to_string()` for `String` fields."""

    value: str
    owned: bool = False

    def render(self, level: int = 0) -> str:
        lit = string_literal(self.value)
        return lit + ".to_string()" if self.owned else lit


@dataclass(frozen=True)
class EnumCase(Node):
    enum_path: str
    case: str

    def render(self, level: int = 0) -> str:
        return f"{self.enum_path}::{self.case}"


@dataclass(frozen=True)
class Optional_(Node):
    """`Some(value)` or `None` when value is missing."""

    value: Optional[Node] = None

    def render(self, level: int = 0) -> str:
        if self.value is None:
            return "None"
        return f"Some({self.value.render(level)})"


NONE = Optional_()


def some(value: Node) -> Optional_:
    return Optional_(value)


@dataclass(frozen=True)
class Call(Node):
    func: str
    args: Tuple[Node, ...] = ()

    def render(self, level: int = 0) -> str:
        return f"{self.func}(" + ", ".join(a.render(level) for a in self.args) + ")"


@dataclass(frozen=True)
class Macro(Node):
    name: str
    args: Tuple[Node, ...] = ()

    def render(self, level: int = 0) -> str:
        return f"{self.name}!(" + ", ".join(a.render(level) for a in self.args) + ")"


@dataclass(frozen=True)
class Seq(Node):
    """An ordered `vec![...]`."""

    items: Tuple[Node, ...] = ()

    def render(self, level: int = 0) -> str:
        return "vec![" + ", ".join(i.render(level) for i in self.items) + "]"


@dataclass(frozen=True)
class Struct(Node):
    """
    A struct expression (or struct-like enum variant).

    Block structs print one field per line; inline structs print as
    `Path { a: x, b: y }`.
    """

    path: str
    fields: Tuple[Tuple[str, Node], ...] = ()
    inline: bool = False

    def render(self, level: int = 0) -> str:
        if self.inline:
            body = ", ".join(f"{name}: {value.render(level)}" for name, value in self.fields)
            return f"{self.path} {{ {body} }}"
        inner = INDENT * (level + 1)
        lines = [f"{self.path} {{"]
        for name, value in self.fields:
            lines.append(f"{inner}{name}: {value.render(level + 1)},")
        lines.append(INDENT * level + "}")
        return "\n".join(lines)


K = TypeVar("K", bound=Hashable)


@dataclass(frozen=True)
class CaseTable(Generic[K]):
    """
    Finite mapping from logical values to enum cases.

    Values outside `cases` map to `fallback` instead of failing.
    """

    enum_path: str
    cases: Dict[K, str]
    fallback: str

    def __post_init__(self) -> None:
        if not self.fallback:
            raise ValueError(f"{self.enum_path}: a fallback case is required")

    def case_name(self, value: object) -> str:
        try:
            return self.cases.get(value, self.fallback)  # type: ignore[arg-type]
        except TypeError:
            # Unhashable input is out of domain as well.
            return self.fallback

    def lookup(self, value: object) -> EnumCase:
        return EnumCase(self.enum_path, self.case_name(value))


def render(node: Node) -> str:
    return node.render(0)


def path_buf(path: str) -> Call:
    return Call("std::path::PathBuf::from", (Str(path),))
