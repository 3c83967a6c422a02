import tempfile
import unittest
from pathlib import Path

from embedcfg.trace import MemoryTraceStore, Replay, TraceEmitter, TraceStoreJSONL


class TestTrace(unittest.TestCase):
    def test_emitter_fills_envelope(self) -> None:
        store = MemoryTraceStore()
        TraceEmitter(store=store, run_id="r1").emit("build_finished", module="snapcraft", data={"n": 1})
        (event,) = store.events
        self.assertEqual(event["run_id"], "r1")
        self.assertEqual(event["event_type"], "build_finished")
        self.assertEqual(event["module"], "snapcraft")
        self.assertTrue(event["ts"].endswith("Z"))
        self.assertNotIn("message", event)

    def test_jsonl_round_trip_and_filters(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "nested" / "trace.jsonl"
            store_a = TraceStoreJSONL(p)
            a = TraceEmitter(store=store_a, run_id="a")
            b = TraceEmitter(store=TraceStoreJSONL(p), run_id="b")
            a.emit("context_bound")
            b.emit("context_bound")
            a.emit("environment_frozen", data={"path": Path("x")})
            self.assertEqual(store_a.written, 2)

            replay = Replay(p)
            self.assertEqual(len(list(replay.iter_events())), 3)
            self.assertEqual([e["run_id"] for e in replay.iter_events(event_type="context_bound")], ["a", "b"])
            self.assertEqual(
                [e["event_type"] for e in replay.tail(1, run_id="a")],
                ["environment_frozen"],
            )
            self.assertEqual(replay.tail(0), [])
            self.assertEqual(list(replay.iter_events(run_id="a"))[-1]["data"], {"path": "x"})

    def test_missing_trace_reads_empty(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            self.assertEqual(list(Replay(Path(td) / "none.jsonl").iter_events()), [])

    def test_corrupt_line_names_location(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "t.jsonl"
            p.write_text('{"event_type": "ok"}\n{not json\n', encoding="utf-8")
            with self.assertRaises(ValueError) as cm:
                list(Replay(p).iter_events())
            self.assertIn("t.jsonl:2", str(cm.exception))


if __name__ == "__main__":
    unittest.main()
