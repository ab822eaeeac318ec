"""CLI entry point for pdfraster."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from pdfraster import __version__, logger
from pdfraster.dependencies import ensure_cli_dependencies_for_convert, ensure_cli_dependencies_for_serve
from pdfraster.exceptions import PackageError
from pdfraster.logging import configure_logging
from pdfraster.settings import Settings, get_settings
from pdfraster.typing.models import ConversionResponse


def build_parser() -> argparse.ArgumentParser:
    """Create the command-line parser.

    Returns:
        argparse.ArgumentParser: The configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="pdfraster")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP service")
    serve_parser.add_argument("--host", default=None, help="Override HOST")
    serve_parser.add_argument("--port", type=int, default=None, help="Override PORT")

    convert_parser = subparsers.add_parser("convert", help="Rasterize a local PDF and upload its pages")
    convert_parser.add_argument("--input", required=True, type=Path, dest="input_path")
    convert_parser.add_argument("--format", default="png", dest="image_format")
    convert_parser.add_argument("--pages", default=None)
    convert_parser.add_argument("--scale", default="1.0")
    convert_parser.add_argument("--password", default=None)

    return parser


def _serve(args: argparse.Namespace, settings: Settings) -> int:
    """Run uvicorn with the application factory."""
    import uvicorn

    from pdfraster.api import create_app

    host = args.host or settings.host
    port = args.port or settings.port
    logger.info("Starting server", extra={"host": host, "port": port})
    uvicorn.run(create_app(settings), host=host, port=port, log_config=None)
    return 0


async def _convert(args: argparse.Namespace, settings: Settings) -> ConversionResponse:
    """Run the conversion pipeline against the configured store."""
    from pdfraster.converter import build_conversion_options, convert_document
    from pdfraster.storage import S3ObjectStore

    options = build_conversion_options(
        format=args.image_format,
        scale=args.scale,
        password=args.password,
        pages=args.pages,
    )
    data = args.input_path.read_bytes()
    store = S3ObjectStore.from_settings(settings)
    keys = await convert_document(data, options, store, settings)
    return ConversionResponse(images=keys)


def main() -> int:
    """Run the CLI.

    Returns:
        int: Exit code (0 for success, 1 for error).
    """
    settings = get_settings()
    configure_logging(settings=settings)

    parser = build_parser()
    args = parser.parse_args()

    if args.command == "serve":
        ensure_cli_dependencies_for_serve()
        return _serve(args, settings)

    if args.command != "convert":
        parser.print_help()
        return 0

    ensure_cli_dependencies_for_convert()
    try:
        response = asyncio.run(_convert(args, settings))
    except PackageError:
        logger.exception("Conversion failed")
        return 1
    except OSError:
        logger.exception("Could not read input file", extra={"input_path": str(args.input_path)})
        return 1
    except KeyboardInterrupt:
        logger.info("Conversion aborted by user")
        return 130

    sys.stdout.write(response.model_dump_json() + "\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
