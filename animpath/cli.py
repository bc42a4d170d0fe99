#!/usr/bin/env python3
"""
Command-line interface for animation path documents.

Usage
-----
::

    # Create a default two-node document
    python -m animpath new -o path.json

    # Show nodes, lengths and tool states
    python -m animpath info path.json

    # Export a polyline of the object path
    python -m animpath export path.json --density 200 -o points.json

    # Even out traversal speed by arc length
    python -m animpath redistribute path.json -o even.json
"""

import argparse
import json
import logging
import sys

from .core import AnimPathException, configure_logging
from .document import PathDocument


def main(args=None):
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        prog="animpath",
        description="Inspect and edit animation path documents",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m animpath new -o path.json
  python -m animpath info path.json
  python -m animpath export path.json --density 200 --even -o points.json
  python -m animpath redistribute path.json -o even.json
"""
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging"
    )

    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version and exit"
    )

    subparsers = parser.add_subparsers(dest="command")

    new_parser = subparsers.add_parser("new", help="Create a default document")
    new_parser.add_argument(
        "-o", "--output",
        default="path.json",
        help="Output path (default: path.json)"
    )
    new_parser.add_argument(
        "--nodes",
        type=int,
        default=2,
        help="Total node count, evenly split between the endpoints (default: 2)"
    )

    info_parser = subparsers.add_parser("info", help="Summarize a document")
    info_parser.add_argument("document", help="Path document JSON")

    export_parser = subparsers.add_parser("export", help="Export a sampled polyline")
    export_parser.add_argument("document", help="Path document JSON")
    export_parser.add_argument(
        "-o", "--output",
        help="Output JSON path (default: print to stdout)"
    )
    export_parser.add_argument(
        "--density",
        type=int,
        help="Number of sampled points (default: document export_sampling)"
    )
    export_parser.add_argument(
        "--even",
        action="store_true",
        help="Space points evenly by arc length instead of by time"
    )
    export_parser.add_argument(
        "--rotation",
        action="store_true",
        help="Export the rotation path instead of the object path"
    )

    redistribute_parser = subparsers.add_parser(
        "redistribute", help="Recompute node timestamps from arc length"
    )
    redistribute_parser.add_argument("document", help="Path document JSON")
    redistribute_parser.add_argument(
        "-o", "--output",
        help="Output path (default: overwrite input)"
    )

    parsed = parser.parse_args(args)

    if parsed.version:
        from . import __version__
        print(f"animpath {__version__}")
        return 0

    configure_logging(logging.DEBUG if parsed.verbose else logging.WARNING)

    commands = {
        "new": cmd_new,
        "info": cmd_info,
        "export": cmd_export,
        "redistribute": cmd_redistribute,
    }
    if parsed.command not in commands:
        parser.print_help()
        return 1

    try:
        return commands[parsed.command](parsed)
    except AnimPathException as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_new(args):
    """Create a document."""
    doc = PathDocument()
    for _ in range(max(args.nodes - 2, 0)):
        # Split the longest section in time
        timestamps = doc.path_timestamps()
        gaps = [b - a for a, b in zip(timestamps, timestamps[1:])]
        doc.add_node_between(gaps.index(max(gaps)))

    doc.save(args.output)
    print(f"Saved {doc.nodes_count}-node document: {args.output}")
    return 0


def cmd_info(args):
    """Print document summary."""
    doc = PathDocument.load(args.document)

    print(f"\n{'='*50}")
    print(f"Path Document: {args.document}")
    print(f"{'='*50}")

    if doc.is_halted:
        print(f"\nHALTED: {doc.halt_reason}")
        return 1

    print(f"\n  Nodes:          {doc.nodes_count}")
    print(f"  Tangent mode:   {doc.tangent_mode.value}")
    print(f"  Rotation mode:  {doc.rotation_mode.value}")
    if doc.target_position is not None:
        tx, ty, tz = doc.target_position
        print(f"  Target:         ({tx:.3f}, {ty:.3f}, {tz:.3f})")
    print(f"  Length:         {doc.linear_length():.4f}")
    print(f"  Chord length:   {doc.object_path.chord_length():.4f}")

    print(f"\n  {'#':>3}  {'time':>8}  {'position':<30} ease  tilt")
    ease_state = doc.ease_tool_state
    tilt_state = doc.tilt_tool_state
    for i, timestamp in enumerate(doc.path_timestamps()):
        x, y, z = doc.node_position(i)
        position = f"({x:.3f}, {y:.3f}, {z:.3f})"
        ease = f"{doc.node_ease_value(i):.3f}" if ease_state[i] else "-"
        tilt = f"{doc.node_tilt_value(i):.3f}" if tilt_state[i] else "-"
        print(f"  {i:>3}  {timestamp:>8.4f}  {position:<30} {ease:<5} {tilt}")

    return 0


def cmd_export(args):
    """Export a polyline."""
    doc = PathDocument.load(args.document)
    density = args.density or doc.settings.export_sampling

    if args.even:
        path = doc.rotation_path if args.rotation else doc.object_path
        points = path.sample_evenly_spaced(density, doc.settings.path_length_sampling * 10)
    elif args.rotation:
        points = doc.sample_rotation_path_for_points(density)
    else:
        points = doc.sample_for_points(density)

    payload = {"points": points.tolist()}
    if args.output:
        with open(args.output, 'w') as f:
            json.dump(payload, f, indent=2)
        print(f"Exported {len(points)} points: {args.output}")
    else:
        print(json.dumps(payload))
    return 0


def cmd_redistribute(args):
    """Redistribute timestamps and save."""
    doc = PathDocument.load(args.document)
    before = doc.path_timestamps()
    after = doc.redistribute_timestamps()

    output = args.output or args.document
    doc.save(output)

    print(f"\nRedistributed {len(after)} nodes:")
    for old, new in zip(before, after):
        print(f"  {old:.4f} -> {new:.4f}")
    print(f"\nSaved: {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
