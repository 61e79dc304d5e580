#!/usr/bin/env python3
"""Fingerprint a static directory outside the server and write a manifest.

Runs the same pipeline create_app() runs at startup: renames every file
under ROOT to name-<digest>.ext and writes the asset map and import map to
asset-manifest.json next to ROOT (or --manifest). The manifest is kept
out of ROOT so a later run does not fingerprint it.

Usage:
    python3 scripts/fingerprint_assets.py static
    python3 scripts/fingerprint_assets.py static --external react=https://esm.sh/react@18
    python3 scripts/fingerprint_assets.py static --dry-run
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from asset_errors import AssetPipelineError  # noqa: E402
from assets import build_asset_state, write_manifest  # noqa: E402


def parse_externals(values: list[str]) -> list[tuple[str, str]]:
    externals = []
    for value in values:
        name, sep, url = value.partition("=")
        if not sep or not name or not url:
            raise argparse.ArgumentTypeError(f"--external expects name=url, got {value!r}")
        externals.append((name, url))
    return externals


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("root", type=Path, help="static asset directory")
    parser.add_argument("--prefix", default="/static", help="url prefix the directory is served under")
    parser.add_argument("--external", action="append", default=[], metavar="NAME=URL",
                        help="external module prepended to the import map (repeatable)")
    parser.add_argument("--manifest", type=Path, default=None, help="manifest path (default: asset-manifest.json beside ROOT)")
    parser.add_argument("--length", type=int, default=8, help="digest length in hex characters")
    parser.add_argument("--dry-run", action="store_true", help="list current names without renaming")
    args = parser.parse_args(argv)

    try:
        externals = parse_externals(args.external)
    except argparse.ArgumentTypeError as exc:
        parser.error(str(exc))

    try:
        state = build_asset_state(
            args.root,
            externals,
            url_prefix=args.prefix,
            fingerprint=not args.dry_run,
            length=args.length,
        )
    except AssetPipelineError as exc:
        print(f"[fingerprint] {exc}", file=sys.stderr)
        return 1

    print(f"[fingerprint] {len(state.asset_map)} asset(s) under {args.root}:")
    for original, served in state.asset_map.items():
        print(f"  {original} -> {served}")
    print(f"[fingerprint] import map: {state.import_map.document}")

    if not args.dry_run:
        manifest_path = write_manifest(state, args.manifest or args.root.parent / "asset-manifest.json")
        print(f"[fingerprint] Generated {manifest_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
