"""CLI entry point for resfs: browse embedded resources as a read-only filesystem."""

import argparse
import logging
import os
import sys

from decoder import GzipDecoder
from overlay import ResourceOverlay
from provider import ResourceProvider, ProviderError, ProviderNotFoundError
from provider_package import load_provider
from provider_zip import ZipProvider

logger = logging.getLogger(__name__)


def load_source(source: str) -> ResourceProvider:
    """Return a provider for a .zip archive path or an importable package name."""
    if source.lower().endswith(".zip"):
        if not os.path.exists(source):
            raise ProviderNotFoundError(f"{source} not found")
        return ZipProvider(source)
    return load_provider(source)


def build_overlay(args) -> ResourceOverlay:
    """Build the overlay described by the command line."""
    overlay = ResourceOverlay(
        "", load_source(args.source),
        ignore_missing_providers=args.ignore_missing,
    )
    try:
        for folder in args.mount:
            overlay.mount(folder)
        for name in args.add:
            if name.lower().endswith(".zip"):
                try:
                    overlay.add_provider(load_source(name))
                except ProviderNotFoundError:
                    if not args.ignore_missing:
                        raise
                    logger.debug("%s not found, using the home provider", name)
            elif overlay.add_provider_by_name(name) is None:
                raise ValueError(f"Cannot load provider {name}")
    except (ProviderError, ValueError):
        close_providers(overlay)
        raise
    if args.gunzip:
        overlay.set_decoder(GzipDecoder())
    return overlay


def close_providers(overlay: ResourceOverlay):
    for bundle in overlay.bundles:
        bundle.provider.close()


def cmd_cat(overlay: ResourceOverlay, args) -> int:
    text = overlay.read_normalized(args.path) if args.normalize else overlay.read(args.path)
    if text is None:
        print(f"Error: {args.path} not found", file=sys.stderr)
        return 1
    sys.stdout.write(text)
    return 0


def cmd_ls(overlay: ResourceOverlay, args) -> int:
    for name in overlay.list_names(args.base):
        print(name)
    return 0


def cmd_exists(overlay: ResourceOverlay, args) -> int:
    found = overlay.folder_exists(args.path) if args.folder else overlay.exists(args.path)
    return 0 if found else 1


def cmd_keys(overlay: ResourceOverlay, args) -> int:
    for bundle in overlay.bundles:
        for key in bundle.keys:
            print(key)
    return 0


COMMANDS = {
    "cat": cmd_cat,
    "ls": cmd_ls,
    "exists": cmd_exists,
    "keys": cmd_keys,
}


def make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="resfs: read-only filesystem over embedded resources"
    )
    parser.add_argument("source", help="Home provider: a .zip archive or a package name")
    parser.add_argument("-m", "--mount", action="append", default=[],
                        help="Mount a folder on the home provider (repeatable)")
    parser.add_argument("-a", "--add", action="append", default=[],
                        help="Add another provider after the home one (repeatable)")
    parser.add_argument("--ignore-missing", action="store_true",
                        help="Use the home provider when an added provider is missing")
    parser.add_argument("--gunzip", action="store_true",
                        help="Resources are stored gzipped; decompress on read")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output")

    sub = parser.add_subparsers(dest="command")

    p = sub.add_parser("cat", help="Print a file")
    p.add_argument("path", help="File to print")
    p.add_argument("--normalize", action="store_true", help="Convert CRLF to LF")

    p = sub.add_parser("ls", help="List names under a folder")
    p.add_argument("base", nargs="?", default="/", help="Folder to list")

    p = sub.add_parser("exists", help="Exit 0 if the path exists, 1 otherwise")
    p.add_argument("path", help="Path to test")
    p.add_argument("--folder", action="store_true", help="Test for a folder instead of a file")

    sub.add_parser("keys", help="Print every storage key")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = make_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    overlay = None
    try:
        overlay = build_overlay(args)
        return COMMANDS[args.command](overlay, args)
    except (ProviderError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        if overlay is not None:
            close_providers(overlay)


if __name__ == "__main__":
    sys.exit(main())
