import io
import json
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path

from embedcfg.cli.main import main as embedcfg_main


class TestEmbedcfgCli(unittest.TestCase):
    def _write_config(self, td: str, text: str, name: str = "python.yml") -> Path:
        p = Path(td) / name
        p.write_text(text, encoding="utf-8")
        return p

    def test_render_to_stdout(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            cfg = self._write_config(td, "isolated: true\nraw_allocator: system\nrun_mode: noop\n")
            buf = io.StringIO()
            with redirect_stdout(buf):
                rc = embedcfg_main(["render", "--config", str(cfg), "--resources", "packed"])
        self.assertEqual(rc, 0)
        out = buf.getvalue()
        self.assertIn("pub fn default_python_config<'a>()", out)
        self.assertIn("        profile: pyembed::PythonInterpreterProfile::Isolated,", out)
        self.assertIn("        run: pyembed::PythonRunMode::None,", out)

    def test_render_expression_only(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            cfg = self._write_config(td, "raw_allocator: rust\n")
            buf = io.StringIO()
            with redirect_stdout(buf):
                rc = embedcfg_main(["render", "--config", str(cfg), "--resources", "packed", "--expression"])
        self.assertEqual(rc, 0)
        self.assertTrue(buf.getvalue().startswith("pyembed::OxidizedPythonInterpreterConfig {"))

    def test_render_to_file_with_trace(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            cfg = self._write_config(td, "optimize_level: 2\nraw_allocator: system\n")
            out = Path(td) / "gen" / "default_python_config.rs"
            trace = Path(td) / "trace.jsonl"
            err = io.StringIO()
            with redirect_stderr(err):
                rc = embedcfg_main(
                    [
                        "render",
                        "--config",
                        str(cfg),
                        "--resources",
                        "packed",
                        "--output",
                        str(out),
                        "--trace",
                        str(trace),
                        "--run-id",
                        "r9",
                    ]
                )
            self.assertEqual(rc, 0)
            self.assertIn("OK: wrote", err.getvalue())
            self.assertIn("Some(pyembed::OptimizationLevel::Two)", out.read_text(encoding="utf-8"))
            events = [json.loads(l) for l in trace.read_text(encoding="utf-8").splitlines() if l.strip()]
            self.assertEqual([e["event_type"] for e in events], ["config_written"])
            self.assertEqual(events[0]["run_id"], "r9")

            buf = io.StringIO()
            with redirect_stdout(buf):
                rc = embedcfg_main(["show-trace", "--trace", str(trace), "--event-type", "config_written"])
            self.assertEqual(rc, 0)
            self.assertEqual(json.loads(buf.getvalue().strip())["data"]["path"], str(out))

    def test_invalid_config_reports_schema_errors(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            cfg = self._write_config(td, "isolated: maybe\n")
            buf = io.StringIO()
            with redirect_stdout(buf):
                rc = embedcfg_main(["render", "--config", str(cfg), "--resources", "packed"])
        self.assertEqual(rc, 1)
        self.assertIn("config.schema_invalid", buf.getvalue())
        self.assertIn("isolated", buf.getvalue())

    def test_missing_config_file(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            buf = io.StringIO()
            with redirect_stdout(buf):
                rc = embedcfg_main(["show-config", "--config", str(Path(td) / "none.yml")])
        self.assertEqual(rc, 1)

    def test_show_config_applies_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            cfg = self._write_config(td, json.dumps({"quiet": True}), name="python.json")
            buf = io.StringIO()
            with redirect_stdout(buf):
                rc = embedcfg_main(["show-config", "--config", str(cfg)])
        self.assertEqual(rc, 0)
        data = json.loads(buf.getvalue())
        self.assertTrue(data["quiet"])
        self.assertTrue(data["buffered_stdio"])
        self.assertEqual(data["run_mode"], {"kind": "repl"})

    def test_list_functions_outputs_json(self) -> None:
        buf = io.StringIO()
        with redirect_stdout(buf):
            rc = embedcfg_main(["list-functions", "--json"])
        self.assertEqual(rc, 0)
        names = [f["name"] for f in json.loads(buf.getvalue())]
        self.assertIn("code_signer_activate", names)
        self.assertIn("wix_bundle_builder_build", names)


if __name__ == "__main__":
    unittest.main()
