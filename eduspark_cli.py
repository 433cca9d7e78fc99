#!/usr/bin/env python3
"""EduSpark diagram CLI - validate, inspect and render generated diagrams."""

import argparse
import json
import sys

from eduspark_core import DiagramFormatError, Window, create_renderer, parse_diagram, render_svg
from eduspark_core.validation import validate_diagram, validation_summary
from eduspark_server.settings import configure_logging, settings


def _json_out(data, code=0):
    print(json.dumps(data))
    sys.exit(code)


def _load(args):
    """Read and parse the diagram file named on the command line."""
    try:
        with open(args.file, encoding="utf-8") as fh:
            data = json.load(fh)
    except OSError as e:
        _json_out({"status": "error", "error": f"Cannot read {args.file}: {e.strerror}"}, 1)
    except json.JSONDecodeError as e:
        _json_out({"status": "error", "error": f"Invalid JSON in {args.file}: {e}"}, 1)
    try:
        return parse_diagram(data, args.type)
    except DiagramFormatError as e:
        _json_out({"status": "error", "error": str(e)}, 1)


def _parse_move(value):
    """Parse NODE=LEFT,TOP into (node_id, left, top)."""
    node_id, sep, coords = value.partition("=")
    parts = coords.split(",")
    if not sep or not node_id or len(parts) != 2:
        raise argparse.ArgumentTypeError(f"expected NODE=LEFT,TOP, got {value!r}")
    try:
        return node_id, float(parts[0]), float(parts[1])
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected numeric LEFT,TOP, got {coords!r}")


def _mount(args):
    """Mount the diagram in a headless window and apply any --move gestures."""
    diagram = _load(args)
    window = Window(args.width, args.height)
    renderer = create_renderer(
        diagram,
        canvas_width=settings.canvas_width,
        canvas_height=settings.canvas_height,
    )
    renderer.mount(window)
    for node_id, left, top in args.move or []:
        if renderer.drag_node(node_id, left, top) is None:
            renderer.unmount()
            _json_out({"status": "error", "error": f"Unknown node: {node_id}"}, 1)
    return renderer


# ── Commands ─────────────────────────────────────────────────────────────────

def cmd_validate(args):
    issues = validate_diagram(_load(args))
    summary = validation_summary(issues)
    _json_out({
        "status": "ok" if summary["valid"] else "invalid",
        "issues": [issue.to_dict() for issue in issues],
        "summary": summary,
    }, 0 if summary["valid"] else 2)


def cmd_inspect(args):
    renderer = _mount(args)
    state = renderer.snapshot()
    renderer.unmount()
    _json_out({"status": "ok", **state})


def cmd_render(args):
    renderer = _mount(args)
    svg = render_svg(renderer)
    renderer.unmount()
    if args.output:
        with open(args.output, "w", encoding="utf-8") as fh:
            fh.write(svg)
        _json_out({"status": "ok", "output": args.output})
    sys.stdout.write(svg)


def cmd_serve(args):
    import uvicorn
    from eduspark_server.main import app
    uvicorn.run(app, host=args.host, port=args.port)


def main():
    parser = argparse.ArgumentParser(description="EduSpark diagram CLI")
    parser.add_argument("--log-level", default=None)
    sub = parser.add_subparsers(dest="command", required=True)

    def diagram_parser(name):
        p = sub.add_parser(name)
        p.add_argument("file")
        p.add_argument("--type", default=None,
                       choices=["concept-map-data", "mind-map-data", "flowchart-data"])
        return p

    diagram_parser("validate")

    for name in ("inspect", "render"):
        p = diagram_parser(name)
        p.add_argument("--width", type=float, default=settings.viewport_width)
        p.add_argument("--height", type=float, default=settings.viewport_height)
        p.add_argument("--move", type=_parse_move, action="append", metavar="NODE=LEFT,TOP")
        if name == "render":
            p.add_argument("--output", "-o", default=None)

    p = sub.add_parser("serve")
    p.add_argument("--host", default=settings.host)
    p.add_argument("--port", type=int, default=settings.port)

    args = parser.parse_args()
    # Keep stdout clean for JSON/SVG output unless asked otherwise
    default_level = None if args.command == "serve" else "WARNING"
    configure_logging(args.log_level or default_level)

    cmd_map = {
        "validate": cmd_validate,
        "inspect": cmd_inspect,
        "render": cmd_render,
        "serve": cmd_serve,
    }
    cmd_map[args.command](args)


if __name__ == "__main__":
    main()
