import re
import unittest
from pathlib import Path

from embedcfg.core.config_model import (
    EmbeddedPythonConfig,
    RawAllocator,
    RunMode,
    TerminfoResolution,
)
from embedcfg.render.renderer import (
    bytes_warning_case,
    derive_python_config,
    optimization_case,
    run_mode_node,
    terminfo_node,
)
from embedcfg.render.literal import render
from rust_literals import decode_string_literal


_FIELD_RE = re.compile(r"^\s*(\w+): (.*),$")


def _fields(rendered: str) -> dict:
    out = {}
    for line in rendered.splitlines():
        m = _FIELD_RE.match(line)
        if m:
            out[m.group(1)] = m.group(2)
    return out


def _balanced(text: str) -> bool:
    # Literals rendered by the tests below contain no brackets.
    stack = []
    pairs = {")": "(", "]": "[", "}": "{"}
    for ch in text:
        if ch in "([{":
            stack.append(ch)
        elif ch in pairs:
            if not stack or stack.pop() != pairs[ch]:
                return False
    return not stack


class TestEnumCases(unittest.TestCase):
    def test_optimization_levels_clamp_to_two(self) -> None:
        self.assertEqual(render(optimization_case(0)), "pyembed::OptimizationLevel::Zero")
        self.assertEqual(render(optimization_case(1)), "pyembed::OptimizationLevel::One")
        self.assertEqual(render(optimization_case(2)), "pyembed::OptimizationLevel::Two")
        self.assertEqual(render(optimization_case(5)), "pyembed::OptimizationLevel::Two")
        self.assertEqual(render(optimization_case(-1)), "pyembed::OptimizationLevel::Two")

    def test_bytes_warning_levels_clamp_to_raise(self) -> None:
        self.assertEqual(render(bytes_warning_case(0)), "pyembed::BytesWarning::None")
        self.assertEqual(render(bytes_warning_case(1)), "pyembed::BytesWarning::Warn")
        self.assertEqual(render(bytes_warning_case(2)), "pyembed::BytesWarning::Raise")
        self.assertEqual(render(bytes_warning_case(9)), "pyembed::BytesWarning::Raise")

    def test_terminfo(self) -> None:
        self.assertEqual(render(terminfo_node(TerminfoResolution.dynamic())), "pyembed::TerminfoResolution::Dynamic")
        self.assertEqual(render(terminfo_node(TerminfoResolution.none())), "pyembed::TerminfoResolution::None")
        self.assertEqual(
            render(terminfo_node(TerminfoResolution.static("/usr/share/terminfo"))),
            'pyembed::TerminfoResolution::Static("/usr/share/terminfo".to_string())',
        )

    def test_run_modes(self) -> None:
        self.assertEqual(render(run_mode_node(RunMode.noop())), "pyembed::PythonRunMode::None")
        self.assertEqual(render(run_mode_node(RunMode.repl())), "pyembed::PythonRunMode::Repl")
        self.assertEqual(
            render(run_mode_node(RunMode.module("app.main"))),
            'pyembed::PythonRunMode::Module { module: "app.main".to_string() }',
        )
        self.assertEqual(
            render(run_mode_node(RunMode.file("/app/main.dat"))),
            'pyembed::PythonRunMode::File { path: std::path::PathBuf::from("/app/main.dat") }',
        )

    def test_eval_code_stays_on_one_line(self) -> None:
        code = 'import sys\nprint("hi \\\\ there")\n'
        out = render(run_mode_node(RunMode.eval(code)))
        self.assertNotIn("\n", out)
        prefix = "pyembed::PythonRunMode::Eval { code: "
        suffix = ".to_string() }"
        self.assertTrue(out.startswith(prefix))
        self.assertTrue(out.endswith(suffix))
        self.assertEqual(decode_string_literal(out[len(prefix) : -len(suffix)]), code)


class TestDerivePythonConfig(unittest.TestCase):
    def test_isolated_file_run_mode(self) -> None:
        config = EmbeddedPythonConfig(
            isolated=True,
            optimize_level=5,
            sys_paths=(),
            raw_allocator=RawAllocator.SYSTEM,
            run_mode=RunMode.file("/app/main.dat"),
        )
        out = derive_python_config(config, "/build/packed-resources")

        self.assertIn("profile: pyembed::PythonInterpreterProfile::Isolated", out)
        self.assertIn("optimization_level: Some(pyembed::OptimizationLevel::Two)", out)
        self.assertIn("module_search_paths: None", out)
        self.assertIn(
            'run: pyembed::PythonRunMode::File { path: std::path::PathBuf::from("/app/main.dat") }',
            out,
        )
        self.assertIn('packed_resources: Some(include_bytes!("/build/packed-resources"))', out)
        self.assertIn("raw_allocator: Some(pyembed::PythonRawAllocator::system())", out)
        self.assertTrue(out.startswith("pyembed::OxidizedPythonInterpreterConfig {\n"))
        self.assertTrue(out.endswith("\n}"))
        self.assertTrue(_balanced(out))

    def test_defaults(self) -> None:
        config = EmbeddedPythonConfig(raw_allocator=RawAllocator.JEMALLOC)
        f = _fields(derive_python_config(config, Path("res")))

        self.assertEqual(f["profile"], "pyembed::PythonInterpreterProfile::Python")
        self.assertEqual(f["stdio_encoding"], "None")
        self.assertEqual(f["stdio_errors"], "None")
        self.assertEqual(f["optimization_level"], "Some(pyembed::OptimizationLevel::Zero)")
        self.assertEqual(f["bytes_warning"], "Some(pyembed::BytesWarning::None)")
        self.assertEqual(f["buffered_stdio"], "Some(true)")
        self.assertEqual(f["write_bytecode"], "Some(false)")
        self.assertEqual(f["verbose"], "Some(false)")
        self.assertEqual(f["raw_allocator"], "Some(pyembed::PythonRawAllocator::jemalloc())")
        self.assertEqual(f["oxidized_importer"], "true")
        self.assertEqual(f["argvb"], "false")
        self.assertEqual(f["extra_extension_modules"], "None")
        self.assertEqual(f["terminfo_resolution"], "pyembed::TerminfoResolution::Dynamic")
        self.assertEqual(f["write_modules_directory_env"], "None")
        self.assertEqual(f["run"], "pyembed::PythonRunMode::Repl")
        self.assertEqual(f["home"], "None")
        self.assertEqual(f["x_options"], "None")

    def test_paths_and_strings(self) -> None:
        config = EmbeddedPythonConfig(
            stdio_encoding_name="utf-8",
            stdio_encoding_errors="strict",
            sys_paths=("$ORIGIN/lib", "$ORIGIN/extra"),
            verbose=2,
            write_modules_directory_env="PYOXIDIZER_WRITE_MODULES_DIR",
            raw_allocator=RawAllocator.RUST,
        )
        f = _fields(derive_python_config(config, "res"))

        self.assertEqual(f["stdio_encoding"], 'Some("utf-8".to_string())')
        self.assertEqual(f["stdio_errors"], 'Some("strict".to_string())')
        self.assertEqual(
            f["module_search_paths"],
            'Some(vec![std::path::PathBuf::from("$ORIGIN/lib"), std::path::PathBuf::from("$ORIGIN/extra")])',
        )
        self.assertEqual(f["verbose"], "Some(true)")
        self.assertEqual(f["write_modules_directory_env"], 'Some("PYOXIDIZER_WRITE_MODULES_DIR".to_string())')
        self.assertEqual(f["raw_allocator"], "Some(pyembed::PythonRawAllocator::rust())")

    def test_windows_resources_path_uses_raw_string(self) -> None:
        config = EmbeddedPythonConfig(raw_allocator=RawAllocator.SYSTEM)
        out = derive_python_config(config, "C:\\build\\packed-resources")
        self.assertIn('packed_resources: Some(include_bytes!(r"C:\\build\\packed-resources"))', out)

    def test_quoted_module_name_round_trips(self) -> None:
        config = EmbeddedPythonConfig(
            raw_allocator=RawAllocator.SYSTEM,
            run_mode=RunMode.module('weird"#name'),
        )
        f = _fields(derive_python_config(config, "res"))
        prefix = "pyembed::PythonRunMode::Module { module: "
        suffix = ".to_string() }"
        lit = f["run"][len(prefix) : -len(suffix)]
        self.assertEqual(decode_string_literal(lit), 'weird"#name')

    def test_rendering_is_deterministic(self) -> None:
        config = EmbeddedPythonConfig(sys_paths=("a", "b"), raw_allocator=RawAllocator.SYSTEM)
        self.assertEqual(derive_python_config(config, "res"), derive_python_config(config, "res"))


if __name__ == "__main__":
    unittest.main()
