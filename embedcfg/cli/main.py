from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

import yaml

from embedcfg.core.config_loader import load_config
from embedcfg.core.errors import EmbedError
from embedcfg.dialect.registrar import list_dialect_functions
from embedcfg.render.emitter import format_default_python_config, write_default_python_config
from embedcfg.render.renderer import derive_python_config
from embedcfg.trace.replay import Replay
from embedcfg.trace.trace_emitter import TraceEmitter
from embedcfg.trace.trace_store_jsonl import TraceStoreJSONL


def _format_cli_error(e: Exception) -> str:
    """
    Print-friendly error formatting for CLI commands.
    - Always includes code/message (via __str__) when it's an EmbedError
    - Includes structured `data` payload when present (e.g. schema errors)
    """
    if isinstance(e, EmbedError) and isinstance(e.data, dict) and e.data:
        return str(e) + "\n" + json.dumps(e.data, ensure_ascii=False, indent=2)
    return str(e)


def cmd_render(args: argparse.Namespace) -> int:
    config = load_config(Path(args.config))
    rendered = derive_python_config(config, args.resources)

    if args.output:
        out = write_default_python_config(Path(args.output), rendered)
        if args.trace:
            trace = TraceEmitter(store=TraceStoreJSONL(Path(args.trace)), run_id=args.run_id)
            trace.emit(
                "config_written",
                message="Wrote default_python_config()",
                data={"path": str(out), "config": str(args.config), "resources": str(args.resources)},
            )
        print(f"OK: wrote {out}", file=sys.stderr)
    elif args.expression:
        print(rendered)
    else:
        print(format_default_python_config(rendered), end="")
    return 0


def cmd_show_config(args: argparse.Namespace) -> int:
    config = load_config(Path(args.config))
    print(json.dumps(config.to_dict(), ensure_ascii=False, indent=2))
    return 0


def cmd_list_functions(args: argparse.Namespace) -> int:
    funcs = list_dialect_functions()
    if args.json:
        print(json.dumps(funcs, ensure_ascii=False, indent=2))
    else:
        for f in funcs:
            line = "{module}.{name}".format(**f)
            print(line + " - " + f["doc"] if f["doc"] else line)
    return 0


def cmd_show_trace(args: argparse.Namespace) -> int:
    replay = Replay(Path(args.trace))
    filters = {"event_type": args.event_type, "run_id": args.run_id}
    if args.tail is not None and args.tail >= 0:
        events = replay.tail(args.tail, **filters)
    else:
        events = list(replay.iter_events(**filters))

    if args.pretty:
        for e in events:
            print(json.dumps(e, ensure_ascii=False, indent=2))
    else:
        for e in events:
            print(json.dumps(e, ensure_ascii=False))
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="embedcfg", description="Embedded Python config compiler")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_render = sub.add_parser("render", help="Render a config file as Rust source")
    p_render.add_argument("--config", required=True, help="Path to embedded Python config (YAML or JSON)")
    p_render.add_argument("--resources", required=True, help="Path of the packed resources file (embedded via include_bytes!)")
    p_render.add_argument("--output", help="Write default_python_config() to this .rs file instead of stdout")
    p_render.add_argument("--expression", action="store_true", help="Print only the config expression (stdout mode)")
    p_render.add_argument("--trace", help="Trace output path (jsonl)")
    p_render.add_argument("--run-id", default="run_cli", help="Run ID for trace correlation")
    p_render.set_defaults(func=cmd_render)

    p_show = sub.add_parser("show-config", help="Validate a config file and print it with defaults applied")
    p_show.add_argument("--config", required=True, help="Path to embedded Python config (YAML or JSON)")
    p_show.set_defaults(func=cmd_show_config)

    p_funcs = sub.add_parser("list-functions", help="List build-script dialect functions")
    p_funcs.add_argument("--json", action="store_true", help="Output JSON")
    p_funcs.set_defaults(func=cmd_list_functions)

    p_show_trace = sub.add_parser("show-trace", help="Show trace events from a JSONL file")
    p_show_trace.add_argument("--trace", required=True, help="Trace path (jsonl)")
    p_show_trace.add_argument("--event-type", help="Filter by event_type")
    p_show_trace.add_argument("--run-id", help="Filter by run_id")
    p_show_trace.add_argument("--tail", type=int, help="Show only last N events")
    p_show_trace.add_argument("--pretty", action="store_true", help="Pretty-print each event as JSON")
    p_show_trace.set_defaults(func=cmd_show_trace)

    ns = parser.parse_args(argv)
    try:
        return int(ns.func(ns))
    except (EmbedError, OSError, ValueError, yaml.YAMLError) as e:
        print(_format_cli_error(e))
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
