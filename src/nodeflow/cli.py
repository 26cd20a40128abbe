"""
CLI tool for the node execution runtime.

Provides terminal access to:
- Listing and searching node types
- Running a single node
- Running a workflow file

Output is JSON on stdout; the exit code is 1 when the result is an error.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from nodeflow import __version__
from nodeflow.bootstrap import build_dispatcher, build_registry, build_workflow_executor
from nodeflow.observability import setup_logging
from workflow_runtime import parse_workflow


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def _parse_object(raw: Optional[str], name: str) -> Dict[str, Any]:
    """Parse a JSON object argument; '@file.json' reads it from a file."""
    if not raw:
        return {}
    if raw.startswith("@"):
        raw = Path(raw[1:]).read_text()
    value = json.loads(raw)
    if not isinstance(value, dict):
        raise ValueError(f"--{name} must be a JSON object")
    return value


def _definition_summary(definition) -> Dict[str, Any]:
    return {
        "type": definition.node_type,
        "displayName": definition.display_name,
        "category": definition.category,
        "description": definition.description,
    }


def cmd_nodes(args: argparse.Namespace) -> int:
    """List node types, grouped by category."""
    registry = build_registry()
    grouped = registry.group_by_category()

    if args.category:
        grouped = {k: v for k, v in grouped.items() if k == args.category}
        if not grouped:
            print(f"Unknown category: {args.category}", file=sys.stderr)
            return 1

    _print_json({
        category: [_definition_summary(d) for d in definitions]
        for category, definitions in grouped.items()
    })
    return 0


def cmd_search(args: argparse.Namespace) -> int:
    """Search node types."""
    registry = build_registry()
    _print_json([_definition_summary(d) for d in registry.search(args.term)])
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    """Run a single node."""
    try:
        config = _parse_object(args.config, "config")
        inputs = _parse_object(args.input, "input")
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    dispatcher = build_dispatcher()
    result = asyncio.run(dispatcher.execute(args.node_type, config, inputs))
    _print_json(result.to_dict())
    return 1 if result.is_error else 0


def cmd_workflow(args: argparse.Namespace) -> int:
    """Run a workflow file."""
    try:
        workflow = parse_workflow(json.loads(Path(args.file).read_text()))
        input_data = _parse_object(args.input, "input")
    except (OSError, ValueError, ValidationError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    executor = build_workflow_executor()
    result = asyncio.run(executor.execute(workflow, input_data))
    _print_json(result.to_dict())
    return 0 if result.is_success else 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="nodeflow",
        description="Node execution runtime CLI",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # nodes command
    nodes_parser = subparsers.add_parser("nodes", help="List node types by category")
    nodes_parser.add_argument("--category", help="Only show this category")

    # search command
    search_parser = subparsers.add_parser("search", help="Search node types")
    search_parser.add_argument("term", help="Text matched against type, name, description, category")

    # run command
    run_parser = subparsers.add_parser("run", help="Execute one node")
    run_parser.add_argument("node_type", help="Node type, e.g. json_parser")
    run_parser.add_argument("--config", help="Node config as JSON (or @file.json)")
    run_parser.add_argument("--input", help="Node input as JSON (or @file.json)")

    # workflow command
    workflow_parser = subparsers.add_parser("workflow", help="Execute a workflow file")
    workflow_parser.add_argument("file", help="Workflow JSON file")
    workflow_parser.add_argument("--input", help="Per-node input keyed by node id, as JSON")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(stream=sys.stderr)

    if args.command == "nodes":
        return cmd_nodes(args)
    elif args.command == "search":
        return cmd_search(args)
    elif args.command == "run":
        return cmd_run(args)
    elif args.command == "workflow":
        return cmd_workflow(args)
    else:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
