import unittest

from embedcfg.core.config_model import (
    EmbeddedPythonConfig,
    RawAllocator,
    RunMode,
    RunModeKind,
    TerminfoKind,
    TerminfoResolution,
)
from embedcfg.core.errors import EmbedError, ValidationError


class TestRunMode(unittest.TestCase):
    def test_payload_must_match_kind(self) -> None:
        with self.assertRaises(ValidationError) as cm:
            RunMode(RunModeKind.MODULE)
        self.assertEqual(cm.exception.code, "run_mode.invalid")
        with self.assertRaises(ValidationError):
            RunMode(RunModeKind.REPL, "x")

    def test_from_dict_accepts_string_and_object(self) -> None:
        self.assertEqual(RunMode.from_dict("noop"), RunMode.noop())
        self.assertEqual(RunMode.from_dict({"kind": "eval", "code": "print(1)"}), RunMode.eval("print(1)"))
        self.assertEqual(RunMode.from_dict({"kind": "file", "path": "main.py"}).payload, "main.py")

    def test_from_dict_rejects_mismatched_payload_key(self) -> None:
        with self.assertRaises(ValidationError):
            RunMode.from_dict({"kind": "module", "code": "x"})
        with self.assertRaises(ValidationError):
            RunMode.from_dict({"kind": "shell"})

    def test_to_dict(self) -> None:
        self.assertEqual(RunMode.module("app").to_dict(), {"kind": "module", "module": "app"})
        self.assertEqual(RunMode.repl().to_dict(), {"kind": "repl"})


class TestTerminfoResolution(unittest.TestCase):
    def test_static_requires_path(self) -> None:
        with self.assertRaises(ValidationError) as cm:
            TerminfoResolution(TerminfoKind.STATIC)
        self.assertEqual(cm.exception.code, "terminfo.invalid")
        with self.assertRaises(ValidationError):
            TerminfoResolution(TerminfoKind.NONE, "/x")

    def test_from_dict(self) -> None:
        self.assertEqual(TerminfoResolution.from_dict("none").kind, TerminfoKind.NONE)
        t = TerminfoResolution.from_dict({"kind": "static", "path": "/usr/share/terminfo"})
        self.assertEqual(t.to_dict(), {"kind": "static", "path": "/usr/share/terminfo"})


class TestEmbeddedPythonConfig(unittest.TestCase):
    def test_defaults(self) -> None:
        c = EmbeddedPythonConfig()
        self.assertFalse(c.isolated)
        self.assertTrue(c.buffered_stdio)
        self.assertEqual(c.sys_paths, ())
        self.assertEqual(c.run_mode, RunMode.repl())
        self.assertEqual(c.terminfo_resolution, TerminfoResolution.dynamic())
        self.assertIsInstance(c.raw_allocator, RawAllocator)

    def test_sys_paths_are_stored_as_tuple(self) -> None:
        c = EmbeddedPythonConfig(sys_paths=["a", "b"])
        self.assertEqual(c.sys_paths, ("a", "b"))
        with self.assertRaises(ValidationError):
            EmbeddedPythonConfig(sys_paths=["a", 1])

    def test_out_of_range_levels_are_kept(self) -> None:
        c = EmbeddedPythonConfig.from_dict({"optimize_level": 7, "bytes_warning": -3})
        self.assertEqual(c.optimize_level, 7)
        self.assertEqual(c.bytes_warning, -3)

    def test_from_dict_type_checks(self) -> None:
        for bad in ({"isolated": "yes"}, {"optimize_level": True}, {"stdio_encoding_name": 3}, {"sys_paths": "a"}):
            with self.assertRaises(ValidationError) as cm:
                EmbeddedPythonConfig.from_dict(bad)
            self.assertEqual(cm.exception.code, "config.invalid")

    def test_from_dict_rejects_unknown_keys(self) -> None:
        with self.assertRaises(ValidationError) as cm:
            EmbeddedPythonConfig.from_dict({"isolated": True, "bogus": 1})
        self.assertEqual(cm.exception.data, {"unknown": ["bogus"]})

    def test_to_dict_round_trip(self) -> None:
        c = EmbeddedPythonConfig(
            isolated=True,
            sys_paths=("$ORIGIN/lib",),
            raw_allocator=RawAllocator.RUST,
            terminfo_resolution=TerminfoResolution.static("/t"),
            run_mode=RunMode.module("app"),
        )
        d = c.to_dict()
        self.assertEqual(d["raw_allocator"], "rust")
        self.assertEqual(d["sys_paths"], ["$ORIGIN/lib"])
        self.assertEqual(EmbeddedPythonConfig.from_dict(d), c)

    def test_error_string_includes_code(self) -> None:
        e = ValidationError(code="config.invalid", message="bad")
        self.assertIsInstance(e, EmbedError)
        self.assertEqual(str(e), "config.invalid: bad")


if __name__ == "__main__":
    unittest.main()
