#!/usr/bin/env python3
"""
CLI to inspect an EasyLoader content package without running its code.

Features:
- Indexes sprites, parses Localization.csv and the deck files, assembles animations
- Registers everything against an in-memory registry, so the package is left untouched
- --json: print the full report (counts, keys, diagnostics) as JSON
- --strict: also fail when the package only has warnings
- --config: read loader settings from a JSON file (default: EASYLOADER_* environment variables)
- --verbose: show the loader's log output on stderr

Exit code 1 when the package has errors (or warnings with --strict), 2 on usage errors.
"""

import argparse
import json
import logging
import sys
import textwrap
from pathlib import Path

from modules.content_loader import (
    ContentLoaderError,
    InMemoryContentRegistry,
    LoaderConfig,
    LoadReport,
    PluginPackage,
    resolve_package,
)
from modules.content_loader.package import MANIFEST_NAME, find_child


class HelpOnErrorArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        sys.stderr.write(f"Error: {message}\n\n")
        self.print_help(sys.stderr)
        raise SystemExit(2)


def load_loader_config(path: str | None) -> LoaderConfig:
    if path:
        return LoaderConfig.load(Path(path).expanduser())
    return LoaderConfig.from_env()


def package_namespace(root: Path) -> str:
    # Inspection also works on bare content folders without a manifest.
    if find_child(root, MANIFEST_NAME).is_file():
        return PluginPackage.from_directory(root).unique_name
    return root.name


def inspect_package(root: Path, config: LoaderConfig) -> dict:
    namespace = package_namespace(root)
    registry = InMemoryContentRegistry(namespace)
    report = LoadReport(package=namespace)
    content = resolve_package(root, registry, config, report)
    result = report.summary()
    result["counts"] = registry.counts()
    result["counts"]["localization_keys"] = len(content.localization.table)
    result["sprites"] = sorted(content.sprites)
    result["decks"] = sorted(content.decks)
    result["animations"] = {
        deck: {name: len(entry.frames) for name, entry in sorted(entries.items())}
        for deck, entries in sorted(content.animations.items())
    }
    result["valid"] = report.is_valid
    return result


def print_text(result: dict) -> None:
    print(f"Package: {result['package']}")
    for name, count in result["counts"].items():
        print(f"  {name}: {count}")
    if result["decks"]:
        print("Decks:")
        for deck in result["decks"]:
            animations = result["animations"].get(deck, {})
            listed = ", ".join(f"{name} ({frames})" for name, frames in animations.items()) or "no animations"
            print(f"  {deck}: {listed}")
    if result["diagnostics"]:
        print("Diagnostics:")
        for entry in result["diagnostics"]:
            subject = f" {entry['subject']}:" if entry["subject"] else ""
            print(f"  {entry['severity']:<7} [{entry['kind']}]{subject} {entry['message']}")


def main(argv=None) -> int:
    parser = HelpOnErrorArgumentParser(
        prog="pack_inspect_cli",
        formatter_class=argparse.RawTextHelpFormatter,
        description=textwrap.dedent(
            """
            Resolve an EasyLoader content package and report what it contains.

            Examples:
              pack_inspect_cli mods/example_pack
              pack_inspect_cli mods/example_pack --json
              pack_inspect_cli ./MyPack --strict --config loader.json
            """
        ).strip(),
    )

    parser.add_argument("package", type=str, help="Path to the package directory.")
    parser.add_argument("--json", action="store_true", help="Print the report as JSON.")
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Also exit with status 1 when the package has warnings.",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="JSON file with loader settings. Defaults to EASYLOADER_* environment variables.",
    )
    parser.add_argument("--verbose", action="store_true", help="Print loader log output to stderr.")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.CRITICAL,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    root = Path(args.package).expanduser()
    if not root.is_dir():
        parser.error(f"'{root}' is not a directory")

    try:
        config = load_loader_config(args.config)
        result = inspect_package(root.resolve(), config)
    except (ContentLoaderError, FileNotFoundError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(result, indent=2, ensure_ascii=False))
    else:
        print_text(result)

    if not result["valid"]:
        return 1
    if args.strict and any(entry["severity"] == "warning" for entry in result["diagnostics"]):
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
