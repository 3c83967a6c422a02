from __future__ import annotations

from pathlib import Path

from .literal import INDENT


_HEADER = (
    "/// Obtain the default Python configuration\n"
    "///\n"
    "/// The crate is compiled with a default Python configuration embedded\n"
    "/// in the crate. This function will return an instance of that\n"
    "/// configuration.\n"
    "pub fn default_python_config<'a>() -> pyembed::OxidizedPythonInterpreterConfig<'a> {\n"
)


def indent_lines(text: str, prefix: str = INDENT) -> str:
    # Blank lines stay blank so the output carries no trailing whitespace.
    return "\n".join(prefix + line if line.strip() else "" for line in text.split("\n"))


def format_default_python_config(python_config_rs: str) -> str:
    """
    Wrap a rendered config expression in the `default_python_config()` function.

    A function is used instead of a const because the config needs heap
    allocations (`String`, `Vec`, `PathBuf`).
    """
    return _HEADER + indent_lines(python_config_rs.rstrip("\n")) + "\n}\n"


def write_default_python_config(path: Path, python_config_rs: str) -> Path:
    """
    Write a standalone .rs file containing `default_python_config()`.

    The file is created or truncated. OS errors propagate to the caller.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="\n") as f:
        f.write(format_default_python_config(python_config_rs))
    return path
