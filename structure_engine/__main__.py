"""CLI entry point for structure-engine.

Commands:
    inspect   Build the control tree for a schema and print it
    defaults  Print the default instance of a schema's root type
    resolve   Print the definition a ``$ref`` points to
    check     Report structural problems in a schema document
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from structure_engine.config import get_log_level
from structure_engine.controller import create_controller
from structure_engine.controls import render_text_tree, structure_control, to_jsonable
from structure_engine.core.log import get_logger, setup_logging
from structure_engine.defaults import extract_structure_defaults
from structure_engine.resolver import RefResolver, resolve_extends
from structure_engine.schema import SchemaLoadError, load_schema
from structure_engine.validation import validate_schema_document

# Load environment variables from .env file
load_dotenv()

logger = get_logger("cli")


def _dump(data: Any) -> str:
    return json.dumps(to_jsonable(data), indent=2, ensure_ascii=False)


# =============================================================================
# Commands
# =============================================================================


def cmd_inspect(args: argparse.Namespace) -> int:
    """Handle the inspect command."""
    schema = load_schema(args.schema)

    value = None
    if args.value:
        try:
            value = json.loads(args.value.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Cannot read value file {args.value}: {e}")
            return 1

    controller = create_controller(value)
    control = structure_control(
        schema,
        controller,
        read_only=True if args.read_only else None,
        locale=args.locale,
    )
    snapshot = control.snapshot()
    if args.format == "json":
        print(snapshot.model_dump_json(indent=2))
    else:
        print(render_text_tree(snapshot))

    # Tuple and const normalization may have rewritten the value.
    if controller.value != value:
        logger.info("Initial value was normalized while building controls")
    controller.dispose()
    return 0


def cmd_defaults(args: argparse.Namespace) -> int:
    """Handle the defaults command."""
    schema = load_schema(args.schema)
    print(_dump(extract_structure_defaults(schema)))
    return 0


def cmd_resolve(args: argparse.Namespace) -> int:
    """Handle the resolve command."""
    schema = load_schema(args.schema)
    resolver = RefResolver(schema)
    definition = resolver.resolve(args.ref)
    if definition is None:
        logger.error(f"Reference does not resolve: {args.ref}")
        return 1
    if args.merge_extends:
        result = resolve_extends(definition, schema, resolver)
        for error in result.errors:
            logger.warning(f"{error.path}: {error.message}")
        definition = result.merged
    print(_dump(definition))
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    """Handle the check command."""
    schema = load_schema(args.schema)
    problems = validate_schema_document(schema)
    for problem in problems:
        print(f"{problem.path or '/'}: {problem.message}")
    if problems:
        logger.error(f"Found {len(problems)} problem(s) in {args.schema}")
        return 1
    logger.info(f"No problems found in {args.schema}")
    return 0


# =============================================================================
# Parser
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="structure-engine",
        description="Build editor control trees from JSON Structure schemas",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Logging level (default: STRUCTURE_LOG_LEVEL or WARNING)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    inspect_parser = subparsers.add_parser(
        "inspect",
        help="Print the control tree for a schema",
    )
    inspect_parser.add_argument(
        "schema",
        type=str,
        help="Schema file path or http(s) URL",
    )
    inspect_parser.add_argument(
        "--value",
        "-v",
        type=Path,
        default=None,
        help="JSON file holding the initial value",
    )
    inspect_parser.add_argument(
        "--locale",
        "-l",
        type=str,
        default=None,
        help="Locale for labels (default: STRUCTURE_LOCALE)",
    )
    inspect_parser.add_argument(
        "--read-only",
        action="store_true",
        help="Build a read-only tree",
    )
    inspect_parser.add_argument(
        "--format",
        "-f",
        type=str,
        default="tree",
        choices=["tree", "json"],
        help="Output format (default: tree)",
    )

    defaults_parser = subparsers.add_parser(
        "defaults",
        help="Print the default instance of the root type",
    )
    defaults_parser.add_argument("schema", type=str, help="Schema file path or URL")

    resolve_parser = subparsers.add_parser(
        "resolve",
        help="Print the definition a $ref points to",
    )
    resolve_parser.add_argument("schema", type=str, help="Schema file path or URL")
    resolve_parser.add_argument(
        "ref",
        type=str,
        help="Reference such as '#/definitions/Person' or 'Person'",
    )
    resolve_parser.add_argument(
        "--merge-extends",
        action="store_true",
        help="Fold $extends bases into the result",
    )

    check_parser = subparsers.add_parser(
        "check",
        help="Report structural problems in a schema document",
    )
    check_parser.add_argument("schema", type=str, help="Schema file path or URL")

    return parser


COMMANDS = {
    "inspect": cmd_inspect,
    "defaults": cmd_defaults,
    "resolve": cmd_resolve,
    "check": cmd_check,
}


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 1

    setup_logging(get_log_level(args.log_level))
    try:
        return COMMANDS[args.command](args)
    except SchemaLoadError as e:
        source = f" ({e.source})" if e.source else ""
        logger.error(f"{e}{source}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
