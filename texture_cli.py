"""Headless access to a Bonzomatic texture manifest."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from texture_manager import OperationResult, TextureManager

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format=LOG_FORMAT)


def _report(result: OperationResult) -> int:
    if result.ok:
        print(result.message)
        return 0
    print(result.message, file=sys.stderr)
    return 1


def _lookup(manager: TextureManager, name: str) -> Optional[int]:
    index = manager.catalog.find(name)
    if index is None:
        print(f"Texture '{name}' not found.", file=sys.stderr)
    return index


def list_textures(manager: TextureManager, _args: argparse.Namespace) -> int:
    if not len(manager.catalog):
        print("No textures found.")
        return 0
    print(f"Textures in {manager.root}:")
    for entry in manager.catalog:
        mark = "x" if entry.active else " "
        print(f"[{mark}] {entry.uniform_name} -> {entry.relative_path}")
    return 0


def enable_texture(manager: TextureManager, args: argparse.Namespace) -> int:
    index = _lookup(manager, args.name)
    if index is None:
        return 1
    return _report(manager.set_active(index, True))


def disable_texture(manager: TextureManager, args: argparse.Namespace) -> int:
    index = _lookup(manager, args.name)
    if index is None:
        return 1
    return _report(manager.set_active(index, False))


def rename_texture(manager: TextureManager, args: argparse.Namespace) -> int:
    index = _lookup(manager, args.name)
    if index is None:
        return 1
    return _report(manager.set_uniform_name(index, args.new_name))


def repath_texture(manager: TextureManager, args: argparse.Namespace) -> int:
    index = _lookup(manager, args.name)
    if index is None:
        return 1
    return _report(manager.set_relative_path(index, args.path))


def import_textures(manager: TextureManager, args: argparse.Namespace) -> int:
    code = 0
    for source in args.sources:
        result = manager.import_file(source)
        code |= _report(result)
        if result.ok and result.detail is not None:
            for problem in result.detail.errors:
                print(f"  {problem}", file=sys.stderr)
    return code


def export_textures(manager: TextureManager, args: argparse.Namespace) -> int:
    return _report(manager.export(args.destination))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage the textures of a Bonzomatic installation.")
    parser.add_argument("--root", default=".", help="Bonzomatic root folder (contains config.json)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug details to stderr")
    subparsers = parser.add_subparsers(dest="command", required=True)

    ls = subparsers.add_parser("list", help="List declared and discovered textures")
    ls.set_defaults(func=list_textures)

    enable = subparsers.add_parser("enable", help="Declare a texture in config.json")
    enable.add_argument("name", help="Uniform name, e.g. texClouds")
    enable.set_defaults(func=enable_texture)

    disable = subparsers.add_parser("disable", help="Remove a texture from config.json")
    disable.add_argument("name", help="Uniform name")
    disable.set_defaults(func=disable_texture)

    rename = subparsers.add_parser("rename", help="Change the uniform name of a texture")
    rename.add_argument("name", help="Current uniform name")
    rename.add_argument("new_name", help="New uniform name")
    rename.set_defaults(func=rename_texture)

    repath = subparsers.add_parser("repath", help="Point a texture at another file")
    repath.add_argument("name", help="Uniform name")
    repath.add_argument("path", help="Path relative to the root")
    repath.set_defaults(func=repath_texture)

    imp = subparsers.add_parser("import", help="Copy images or extract texture packs into textures/")
    imp.add_argument("sources", nargs="+", help="Image files (.png/.jpg/.jpeg) or .zip packs")
    imp.set_defaults(func=import_textures)

    exp = subparsers.add_parser("export", help="Write the enabled textures to a zip pack")
    exp.add_argument("destination", nargs="?", default=None, help="Output zip (default: texture_pack.zip in the root)")
    exp.set_defaults(func=export_textures)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)
    configure_logging(args.verbose)
    root = Path(args.root).expanduser()
    if not root.is_dir():
        print(f"Root folder not found: {root}", file=sys.stderr)
        return 1
    manager = TextureManager(root.resolve())
    loaded = manager.reconcile()
    if not loaded.ok:
        return _report(loaded)
    return args.func(manager, args)


if __name__ == "__main__":
    sys.exit(main())
