"""Berlin CLI — berlin build / berlin watch.

Entry point for the ``berlin`` command-line interface.
"""

from __future__ import annotations

import argparse
import sys


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the berlin CLI."""
    parser = argparse.ArgumentParser(
        prog="berlin",
        description="Incremental static-site builder.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # berlin build
    build_parser = subparsers.add_parser(
        "build",
        help="Build the site once",
    )
    build_parser.add_argument("root", nargs="?", default=".", help="Site root directory")
    build_parser.add_argument("--config", dest="config_path", help="Config file path")
    build_parser.add_argument("--output", help="Output directory")

    # berlin watch
    watch_parser = subparsers.add_parser(
        "watch",
        help="Build, then rebuild on every change",
    )
    watch_parser.add_argument("root", nargs="?", default=".", help="Site root directory")
    watch_parser.add_argument("--config", dest="config_path", help="Config file path")
    watch_parser.add_argument("--output", help="Output directory")
    watch_parser.add_argument(
        "--watch",
        dest="extra_paths",
        action="append",
        default=[],
        metavar="PATH",
        help="Additional path to watch (repeatable)",
    )
    watch_parser.add_argument(
        "--serve", action="store_true", help="Serve the output directory over HTTP",
    )
    watch_parser.add_argument("--host", help="Bind address when serving")
    watch_parser.add_argument("--port", type=int, help="Bind port when serving")
    watch_parser.add_argument(
        "--manual", action="store_true", help="Rebuild only when Enter is pressed",
    )

    return parser


def _get_version() -> str:
    """Get the package version."""
    from berlin import __version__

    return __version__


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    from berlin._errors import BerlinError
    from berlin.app import build, watch

    try:
        if args.command == "build":
            report = build(root=args.root, config_path=args.config_path, output=args.output)
            if not report.ok:
                sys.exit(1)
        elif args.command == "watch":
            watch(
                root=args.root,
                config_path=args.config_path,
                extra_paths=args.extra_paths,
                serve=args.serve,
                manual=args.manual,
                output=args.output,
                host=args.host,
                port=args.port,
            )
    except BerlinError as exc:
        print(f"error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
