"""Command-line interface for the material pipeline."""

import argparse
import logging
import os
import sys

import yaml

from .config import PipelineConfig
from .core import setup_logging
from .graph import (
    GraphCommitError,
    MemoryDocument,
    TemplateNotFoundError,
    assign_surface_pattern,
    derive_tile_pattern,
)

logger = logging.getLogger("material_pipeline")

EXIT_USER_ERROR = 1
EXIT_NO_TEMPLATE = 2
EXIT_COMMIT_FAILED = 3


def _parse_tint(text: str):
    parts = [p.strip() for p in text.replace(";", ",").split(",")]
    if len(parts) != 3:
        raise argparse.ArgumentTypeError(f"tint must be R,G,B (got '{text}')")
    try:
        values = tuple(int(p) for p in parts)
    except ValueError:
        raise argparse.ArgumentTypeError(f"tint components must be integers (got '{text}')")
    if any(not 0 <= v <= 255 for v in values):
        raise argparse.ArgumentTypeError(f"tint components must be in 0-255 (got '{text}')")
    return values


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="materialbrew",
        description="Texture folder to material graph pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  materialbrew scan ./textures/rock_wall
  materialbrew scan ./library --library --sizes
  materialbrew init-document scene.yaml
  materialbrew apply ./textures/rock_wall -d scene.yaml --width-cm 200 --tiles 4 2
  materialbrew read rock_wall -d scene.yaml
  materialbrew pattern -d scene.yaml --width-cm 120 --height-cm 60 --div-x 4 --div-y 2
  materialbrew --generate-config
        """
    )
    parser.add_argument("--config", "-c", help="Path to config YAML")
    parser.add_argument("--log-level",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    parser.add_argument("--log-file", help="Also log to this rotating file")
    parser.add_argument("--generate-config", action="store_true",
                        help="Generate default config.yaml (at --config if given)")

    sub = parser.add_subparsers(dest="command")

    p_scan = sub.add_parser("scan", help="Classify the textures of a folder")
    p_scan.add_argument("folder")
    p_scan.add_argument("--library", action="store_true",
                        help="Treat FOLDER as a library root and scan every material folder")
    p_scan.add_argument("--sizes", action="store_true",
                        help="Read pixel sizes from image headers")
    p_scan.add_argument("--no-progress", action="store_true")

    p_apply = sub.add_parser("apply", help="Apply a folder to a material of a document")
    p_apply.add_argument("folder")
    p_apply.add_argument("--document", "-d", required=True, help="Document YAML")
    p_apply.add_argument("--name", "-n", help="Material name (default: folder name)")
    p_apply.add_argument("--width-cm", type=float)
    p_apply.add_argument("--height-cm", type=float)
    p_apply.add_argument("--rotation", type=float, help="Rotation in degrees")
    p_apply.add_argument("--tint", type=_parse_tint, help="Albedo tint as R,G,B (0-255)")
    p_apply.add_argument("--tiles", type=int, nargs=2, metavar=("DIV_X", "DIV_Y"),
                         default=(0, 0), help="Derive and assign a tile pattern")
    p_apply.add_argument("--force", action="store_true",
                         help="Apply even when nothing would change")
    p_apply.add_argument("--dry-run", action="store_true",
                         help="Print the resolved assignment without writing")

    p_read = sub.add_parser("read", help="Read a material back from a document")
    p_read.add_argument("name")
    p_read.add_argument("--document", "-d", required=True, help="Document YAML")

    p_pattern = sub.add_parser("pattern", help="Create or reuse a tile pattern")
    p_pattern.add_argument("--document", "-d", required=True, help="Document YAML")
    p_pattern.add_argument("--width-cm", type=float, required=True)
    p_pattern.add_argument("--height-cm", type=float, required=True)
    p_pattern.add_argument("--div-x", type=int, default=0)
    p_pattern.add_argument("--div-y", type=int, default=0)
    p_pattern.add_argument("--assign", metavar="MATERIAL",
                           help="Also set the pattern on this material")

    p_init = sub.add_parser("init-document", help="Create a document with a generic template")
    p_init.add_argument("path")
    p_init.add_argument("--template-name", default="Generic")
    p_init.add_argument("--force", action="store_true", help="Overwrite an existing file")

    return parser


def _fail(message: str, code: int = EXIT_USER_ERROR):
    logger.error(message)
    print(f"Error: {message}")
    sys.exit(code)


def _load_document(path: str) -> MemoryDocument:
    if not os.path.isfile(path):
        _fail(f"Document not found: {path}")
    try:
        return MemoryDocument.load(path)
    except ValueError as exc:
        _fail(f"Invalid document: {exc}")


def _dump(data) -> None:
    yaml.safe_dump(data, sys.stdout, default_flow_style=False, sort_keys=False,
                   allow_unicode=True)


def _cmd_scan(args, config):
    from .pipeline import MaterialPipeline
    if not os.path.isdir(args.folder):
        _fail(f"Folder not found: {args.folder}")
    pipeline = MaterialPipeline(config)
    if args.library:
        scans = pipeline.scan_library(args.folder, with_sizes=args.sizes,
                                      show_progress=not args.no_progress)
    else:
        scans = [pipeline.scan(args.folder, with_sizes=args.sizes)]
    _dump([s.to_dict() for s in scans])


def _cmd_apply(args, config):
    from .pipeline import MaterialPipeline
    if not os.path.isdir(args.folder):
        _fail(f"Folder not found: {args.folder}")
    if args.force:
        config.apply.skip_noop = False
    pipeline = MaterialPipeline(config)
    assignment = pipeline.plan(
        args.folder,
        width_cm=args.width_cm,
        height_cm=args.height_cm,
        rotation_deg=args.rotation,
        tint=args.tint,
        tiles=args.tiles,
    )
    if args.dry_run:
        _dump(assignment.to_dict())
        return

    document = _load_document(args.document)
    try:
        report = pipeline.apply(document, assignment, args.name)
    except TemplateNotFoundError as exc:
        _fail(str(exc), EXIT_NO_TEMPLATE)
    except GraphCommitError as exc:
        _fail(f"Commit failed, nothing was written: {exc}", EXIT_COMMIT_FAILED)
    except ValueError as exc:
        _fail(str(exc))
    document.save(args.document)
    print(report.summary())


def _cmd_read(args, config):
    from .pipeline import MaterialPipeline
    document = _load_document(args.document)
    readback = MaterialPipeline(config).read(document, args.name)
    if readback is None:
        _fail(f"Material not found: {args.name}")
    _dump(readback.to_dict())


def _cmd_pattern(args, config):
    document = _load_document(args.document)
    graph = None
    if args.assign:
        graph = document.find_graph(args.assign)
        if graph is None:
            _fail(f"Material not found: {args.assign}")
    try:
        handle = derive_tile_pattern(document, args.width_cm, args.height_cm,
                                     args.div_x, args.div_y, config)
    except ValueError as exc:
        _fail(str(exc))
    if handle is None:
        print("No divisions requested; no pattern created")
        return
    if graph is not None:
        try:
            assign_surface_pattern(graph, handle.name)
        except GraphCommitError as exc:
            _fail(str(exc), EXIT_COMMIT_FAILED)
    document.save(args.document)
    print(handle.name)


def _cmd_init_document(args, config):
    if os.path.exists(args.path) and not args.force:
        _fail(f"{args.path} already exists (use --force to overwrite)")
    MemoryDocument.with_generic_template(args.template_name).save(args.path)
    print(f"Created {args.path}")


_COMMANDS = {
    "scan": _cmd_scan,
    "apply": _cmd_apply,
    "read": _cmd_read,
    "pattern": _cmd_pattern,
    "init-document": _cmd_init_document,
}


def main(argv=None):
    """Parse CLI arguments and dispatch to a sub-command."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.generate_config:
        dest = args.config or "config.yaml"
        if os.path.isdir(dest):
            dest = os.path.join(dest, "config.yaml")
        PipelineConfig().to_yaml(dest)
        logger.info("Generated default %s", dest)
        print(f"Generated default {dest}")
        return

    if not args.command:
        parser.print_help()
        sys.exit(EXIT_USER_ERROR)

    # Ensure early validation warnings from from_yaml() are visible on stderr
    # before the full logging is configured.
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")

    if args.config:
        if not os.path.exists(args.config):
            _fail(f"Config file not found: {args.config}")
        try:
            config = PipelineConfig.from_yaml(args.config)
        except ValueError as e:
            _fail(f"Invalid config: {e}")
    else:
        config = PipelineConfig()

    if args.log_level:
        config.log_level = args.log_level
    if args.log_file:
        config.log_file = args.log_file
    setup_logging(config.log_level, config.log_file or None)

    _COMMANDS[args.command](args, config)


if __name__ == "__main__":
    main()
