import json
import tempfile
import unittest
from pathlib import Path

from embedcfg.core.config_loader import config_from_dict, load_config, validate_config_dict
from embedcfg.core.config_model import RunMode, TerminfoResolution
from embedcfg.core.errors import ValidationError


class TestConfigLoader(unittest.TestCase):
    def test_yaml_config_loads(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "python.yml"
            p.write_text(
                "\n".join(
                    [
                        "isolated: true",
                        "optimize_level: 1",
                        "sys_paths:",
                        "  - $ORIGIN/lib",
                        "raw_allocator: system",
                        "terminfo_resolution: none",
                        "run_mode:",
                        "  kind: module",
                        "  module: myapp.__main__",
                    ]
                )
                + "\n",
                encoding="utf-8",
            )
            c = load_config(p)
        self.assertTrue(c.isolated)
        self.assertEqual(c.optimize_level, 1)
        self.assertEqual(c.sys_paths, ("$ORIGIN/lib",))
        self.assertEqual(c.terminfo_resolution, TerminfoResolution.none())
        self.assertEqual(c.run_mode, RunMode.module("myapp.__main__"))

    def test_json_config_loads(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "python.json"
            p.write_text(json.dumps({"run_mode": {"kind": "eval", "code": "import app"}}), encoding="utf-8")
            c = load_config(p)
        self.assertEqual(c.run_mode, RunMode.eval("import app"))

    def test_empty_file_yields_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "empty.yml"
            p.write_text("", encoding="utf-8")
            c = load_config(p)
        self.assertEqual(c.run_mode, RunMode.repl())

    def test_missing_file(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            with self.assertRaises(FileNotFoundError):
                load_config(Path(td) / "nope.yml")

    def test_schema_errors_are_collected(self) -> None:
        errors = validate_config_dict({"isolated": "yes", "bogus": 1})
        self.assertEqual(len(errors), 2)
        self.assertTrue(any(e.startswith("isolated: ") for e in errors))

        with self.assertRaises(ValidationError) as cm:
            config_from_dict({"raw_allocator": "tcmalloc"})
        self.assertEqual(cm.exception.code, "config.schema_invalid")
        self.assertTrue(cm.exception.data["errors"])

    def test_static_terminfo_requires_object_form(self) -> None:
        self.assertTrue(validate_config_dict({"terminfo_resolution": "static"}))
        self.assertEqual(
            validate_config_dict({"terminfo_resolution": {"kind": "static", "path": "/usr/share/terminfo"}}),
            [],
        )


if __name__ == "__main__":
    unittest.main()
