#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Main entry point for the macaron_extract package.

Provides a unified CLI for single-file and tree-wide extraction.
"""

import argparse
import os
import sys
from typing import List, Optional


def _run_extract(args) -> int:
    from .config import load_config
    from .core.transform import extract_file

    config = load_config(args.config)
    if args.package is not None:
        config.package = args.package
    if args.no_tree_shake:
        config.tree_shake = False
    if args.keep_relocated:
        config.prune_relocated = False

    result = extract_file(args.file, config)
    if not result.changed:
        print(f"No style calls found in {args.file}", file=sys.stderr)
        if args.stdout:
            sys.stdout.write(result.code)
        return 0

    if args.stdout:
        sys.stdout.write(f"# --- {result.module_id} ---\n")
        sys.stdout.write(result.auxiliary_code)
        sys.stdout.write(f"# --- {args.file} ---\n")
        sys.stdout.write(result.code)
        return 0

    out_dir = os.path.abspath(args.out_dir or os.path.dirname(os.path.abspath(args.file)))
    os.makedirs(out_dir, exist_ok=True)
    main_path = os.path.join(out_dir, os.path.basename(args.file))
    if os.path.abspath(args.file) == main_path and not args.in_place:
        print(f"Refusing to overwrite {args.file}; pass --out-dir or --in-place", file=sys.stderr)
        return 1
    aux_path = os.path.join(out_dir, result.module_id.lstrip(".").rsplit(".", 1)[-1] + ".py")

    with open(aux_path, "w", encoding="utf-8") as f:
        f.write(result.auxiliary_code)
    with open(main_path, "w", encoding="utf-8") as f:
        f.write(result.code)

    print(f"Extracted {len(result.sites)} style calls ({result.to_dict()['num_bindings']} relocated bindings)")
    print("Wrote:")
    print(" -", main_path)
    print(" -", aux_path)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="macaron_extract: move style calls into an auxiliary module",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Print both modules for one file
  python -m macaron_extract.main extract --file app/button.py --stdout

  # Write the rewritten file and its auxiliary module to ./out
  python -m macaron_extract.main extract --file app/button.py --out-dir out

  # Whole source tree
  python -m macaron_extract.main batch --root ./app --out ./out
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    extract_parser = subparsers.add_parser("extract", help="Extract style calls from one file")
    extract_parser.add_argument("--file", required=True, help="Python source file")
    extract_parser.add_argument("--out-dir", default=None, help="Output directory (default: next to the file)")
    extract_parser.add_argument("--config", default=None, help="YAML config path")
    extract_parser.add_argument("--package", default=None, help="Package of the auxiliary module ('.' for relative)")
    extract_parser.add_argument("--stdout", action="store_true", help="Print instead of writing files")
    extract_parser.add_argument("--in-place", action="store_true", help="Allow overwriting the source file")
    extract_parser.add_argument("--no-tree-shake", action="store_true", help="Keep unreferenced relocated code")
    extract_parser.add_argument("--keep-relocated", action="store_true", help="Do not prune relocated code from the program")

    batch_parser = subparsers.add_parser("batch", help="Extract style calls from a source tree")
    batch_parser.add_argument("--root", required=True, help="Source tree")
    batch_parser.add_argument("--out", required=True, help="Output directory")
    batch_parser.add_argument("--config", default=None, help="YAML config path")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        if args.command == "extract":
            return _run_extract(args)
        if args.command == "batch":
            from .batch.batch_runner import main as batch_main
            batch_argv = ["--root", args.root, "--out", args.out]
            if args.config:
                batch_argv.extend(["--config", args.config])
            return batch_main(batch_argv)
    except (OSError, ValueError, SyntaxError) as e:
        # DeclarationShapeError is a ValueError
        print(f"Error: {type(e).__name__}: {e}", file=sys.stderr)
        return 1

    parser.print_help()
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
