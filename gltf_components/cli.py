"""CLI entry point for gltf-components.

This module acts as the central entry point for the project's CLI tools.
Each command builds its own argument parser and returns an exit code.
"""

import argparse
import json
import sys
from pathlib import Path

from dotenv import load_dotenv

from gltf_components.config import (
    EnvVar,
    get_environment,
    get_environment_info,
    get_log_level,
    get_schema_path,
    list_environment_variables,
)
from gltf_components.core import get_logger, setup_logging
from gltf_components.export import (
    ExportContext,
    export_extensions,
    prepare_scene_for_export,
)
from gltf_components.scene import (
    count_outdated_components,
    dump_scene_file,
    load_scene_file,
    migrate_all_components,
)
from gltf_components.schema import (
    ComponentSchemaError,
    SchemaDocument,
    load_schema_document,
)

# Load environment variables from .env file
load_dotenv()

logger = get_logger("cli")


def _add_config_argument(parser: argparse.ArgumentParser, positional: bool = False) -> None:
    help_text = "Schema document (default: $GLTF_COMPONENTS_CONFIG or the bundled one)"
    if positional:
        parser.add_argument("config", type=Path, nargs="?", default=None, help=help_text)
    else:
        parser.add_argument("--config", "-c", type=Path, default=None, help=help_text)


def _load_schema(path: Path | None) -> SchemaDocument:
    schema_path = get_schema_path(path)
    logger.debug(f"Loading schema document from {schema_path}")
    return load_schema_document(schema_path)


# =============================================================================
# Schema Commands
# =============================================================================


def cmd_check(args: argparse.Namespace) -> int:
    """Handle the check command."""
    try:
        schema = _load_schema(args.config)
    except (ComponentSchemaError, OSError) as e:
        logger.error(f"Failed to load schema document: {e}")
        return 1

    issues = schema.check()
    for issue in issues:
        print(issue)

    if issues:
        logger.error(f"{len(issues)} issue(s) found")
        return 1

    print(f"OK: {len(schema.components)} components, {len(schema.types)} types")
    return 0


def cmd_components(args: argparse.Namespace) -> int:
    """Handle the components command."""
    try:
        schema = _load_schema(args.config)
    except (ComponentSchemaError, OSError) as e:
        logger.error(f"Failed to load schema document: {e}")
        return 1

    if args.node:
        names = schema.get_components_for_node(args.node)
    else:
        names = list(schema.components)

    for name in names:
        definition = schema.components[name]
        tags = []
        if definition.multiple:
            tags.append("multiple")
        if definition.nodes:
            tags.append("nodes: " + ", ".join(definition.nodes))
        suffix = f"  ({'; '.join(tags)})" if tags else ""
        print(f"{name}{suffix}")
    return 0


# =============================================================================
# Scene Commands
# =============================================================================


def cmd_status(args: argparse.Namespace) -> int:
    """Handle the status command. Exits 1 when components are outdated."""
    try:
        schema = _load_schema(args.config)
        scene = load_scene_file(args.scene, schema)
        outdated = count_outdated_components(scene.nodes(), schema)
    except (ComponentSchemaError, OSError) as e:
        logger.error(f"Status check failed: {e}")
        return 1

    total = sum(len(node.components) for node in scene.nodes())
    print(f"{outdated} of {total} components outdated in {args.scene}")
    return 1 if outdated else 0


def cmd_migrate(args: argparse.Namespace) -> int:
    """Handle the migrate command."""
    try:
        schema = _load_schema(args.config)
        scene = load_scene_file(args.scene, schema)
    except (ComponentSchemaError, OSError) as e:
        logger.error(f"Failed to load scene: {e}")
        return 1

    report = migrate_all_components(scene.nodes(), schema)
    print(
        f"updated: {len(report.updated)}, deleted: {len(report.deleted)}, "
        f"unchanged: {len(report.kept)}, failed: {len(report.failed)}"
    )
    for component, error in report.failed:
        print(f"  failed {component.name}: {error}")

    if args.dry_run:
        return 1 if report.has_failures else 0

    output = args.output or args.scene
    dump_scene_file(scene, output)
    logger.info(f"Wrote migrated scene to {output}")
    return 1 if report.has_failures else 0


def cmd_export(args: argparse.Namespace) -> int:
    """Handle the export command."""
    try:
        schema = _load_schema(args.config)
        scene = load_scene_file(args.scene, schema)
        context = ExportContext.for_scene(scene, extension_name=args.extension)
        prepare_scene_for_export(scene, context)
    except (ComponentSchemaError, OSError) as e:
        logger.error(f"Export failed: {e}")
        return 1

    text = json.dumps(export_extensions(scene, context.extension_name), indent=2)
    if args.output:
        args.output.write_text(text + "\n", encoding="utf-8")
        logger.info(f"Wrote extensions to {args.output}")
    else:
        print(text)
    return 0


# =============================================================================
# Environment Command
# =============================================================================


def cmd_env(args: argparse.Namespace) -> int:
    """Handle the env command."""
    for env_var in list_environment_variables(args.category):
        info = get_environment_info(env_var)
        value = get_environment(env_var)
        print(f"{info.name}={value if value is not None else ''}")
        print(f"    [{info.category}] {info.description}")
    return 0


# =============================================================================
# Parser
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser with every sub-command."""
    parser = argparse.ArgumentParser(
        prog="gltf-components",
        description="Component schema tools: check schemas, migrate and export scenes",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    check_parser = subparsers.add_parser(
        "check",
        help="Check a schema document for missing, malformed or circular types",
    )
    _add_config_argument(check_parser, positional=True)
    check_parser.set_defaults(func=cmd_check)

    components_parser = subparsers.add_parser(
        "components",
        help="List the components a schema document defines",
    )
    _add_config_argument(components_parser, positional=True)
    components_parser.add_argument(
        "--node",
        "-n",
        type=str,
        default=None,
        help="Only components attachable to this node kind",
    )
    components_parser.set_defaults(func=cmd_components)

    status_parser = subparsers.add_parser(
        "status",
        help="Count components that drifted from the schema document",
    )
    status_parser.add_argument("scene", type=Path, help="Scene JSON file")
    _add_config_argument(status_parser)
    status_parser.set_defaults(func=cmd_status)

    migrate_parser = subparsers.add_parser(
        "migrate",
        help="Migrate every component of a scene to the schema document",
    )
    migrate_parser.add_argument("scene", type=Path, help="Scene JSON file")
    _add_config_argument(migrate_parser)
    migrate_parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=None,
        help="Output file (default: overwrite the scene file)",
    )
    migrate_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would change without writing",
    )
    migrate_parser.set_defaults(func=cmd_migrate)

    export_parser = subparsers.add_parser(
        "export",
        help="Write the glTF extension data of every node in a scene",
    )
    export_parser.add_argument("scene", type=Path, help="Scene JSON file")
    _add_config_argument(export_parser)
    export_parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=None,
        help="Output file (prints to stdout if not specified)",
    )
    export_parser.add_argument(
        "--extension",
        "-e",
        type=str,
        default=None,
        help="glTF extension name (default: $GLTF_EXTENSION_NAME)",
    )
    export_parser.set_defaults(func=cmd_export)

    env_parser = subparsers.add_parser("env", help="Show configuration variables")
    env_parser.add_argument(
        "--category",
        type=str,
        default=None,
        choices=sorted({v.value.category for v in EnvVar}),
        help="Only variables of this category",
    )
    env_parser.set_defaults(func=cmd_env)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(get_log_level())
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
