#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Runs the extraction pass over every module of a source tree.

Outputs (under --out):
  - <rel path>.py             rewritten module
  - <module id>.py            auxiliary module, next to it
  - summary.csv
  - summary.jsonl
  - aggregate.json
"""

from __future__ import annotations

import argparse
import csv
import json
import os
import time
from datetime import datetime
from typing import Dict, List, Optional

from ..config.config_loader import ExtractionConfig, load_config
from ..core.shape import DeclarationShapeError
from ..core.transform import extract_source

_SKIP_DIRS = {"__pycache__", "node_modules", ".git", "venv", ".venv", "env", "build", "dist"}


def iter_source_files(root: str, ext: str = ".py") -> List[str]:
    out: List[str] = []
    for cur, dirs, files in os.walk(root):
        dirs[:] = sorted(d for d in dirs if not d.startswith(".") and d not in _SKIP_DIRS)
        for file in sorted(files):
            if file.endswith(ext):
                out.append(os.path.join(cur, file))
    return out


def _mentions_module(source: str, module: str) -> bool:
    top = module.split(".", 1)[0]
    return f"import {top}" in source or f"from {top}" in source


def process_file(path: str, root: str, out_dir: str, config: ExtractionConfig) -> Dict:
    rel_path = os.path.relpath(path, root).replace("\\", "/")
    row: Dict = {"file": rel_path, "status": "skipped", "num_sites": 0}

    try:
        with open(path, "r", encoding="utf-8") as f:
            source = f.read()
    except (UnicodeDecodeError, IOError) as e:
        row.update(status="error", error=f"{type(e).__name__}: {e}")
        return row

    if not _mentions_module(source, config.source_module):
        return row

    t0 = time.monotonic()
    try:
        result = extract_source(source, rel_path, config)
    except (SyntaxError, DeclarationShapeError) as e:
        row.update(status="error", error=f"{type(e).__name__}: {e}")
        return row
    row["elapsed_ms"] = int((time.monotonic() - t0) * 1000)

    if not result.changed:
        row["status"] = "unchanged"
        return row

    summary = result.to_dict()
    row.update(
        status="extracted",
        module_id=result.module_id,
        num_sites=summary["num_sites"],
        num_bindings=summary["num_bindings"],
        num_styles=summary["num_styles"],
        num_pruned=summary["num_pruned"],
    )

    target = os.path.join(out_dir, rel_path)
    os.makedirs(os.path.dirname(target), exist_ok=True)
    with open(target, "w", encoding="utf-8") as f:
        f.write(result.code)
    aux_name = result.module_id.lstrip(".").rsplit(".", 1)[-1] + ".py"
    aux_path = os.path.join(os.path.dirname(target), aux_name)
    with open(aux_path, "w", encoding="utf-8") as f:
        f.write(result.auxiliary_code)
    row["output"] = target
    row["auxiliary_output"] = aux_path
    return row


def batch_extract(root: str, out_dir: str, config: Optional[ExtractionConfig] = None) -> Dict:
    """Extract every module under ``root``; returns the aggregate record."""
    config = config or ExtractionConfig()
    root = os.path.abspath(root)
    out_dir = os.path.abspath(out_dir)
    os.makedirs(out_dir, exist_ok=True)

    jsonl_path = os.path.join(out_dir, "summary.jsonl")
    csv_path = os.path.join(out_dir, "summary.csv")
    agg_path = os.path.join(out_dir, "aggregate.json")

    rows: List[Dict] = []
    files = iter_source_files(root)
    with open(jsonl_path, "w", encoding="utf-8") as jf:
        for idx, path in enumerate(files, 1):
            # outputs live under out_dir; never feed them back in
            if os.path.abspath(path).startswith(out_dir + os.sep):
                continue
            row = process_file(path, root, out_dir, config)
            rows.append(row)
            jf.write(json.dumps(row, ensure_ascii=False) + "\n")
            if row["status"] in ("extracted", "error"):
                print(f"[{idx}/{len(files)}] {row['status']}: {row['file']}")

    fieldnames = sorted({k for r in rows for k in r.keys()})
    with open(csv_path, "w", encoding="utf-8", newline="") as cf:
        w = csv.DictWriter(cf, fieldnames=fieldnames)
        w.writeheader()
        for r in rows:
            w.writerow(r)

    def _count(status: str) -> int:
        return sum(1 for r in rows if r.get("status") == status)

    agg = {
        "root": root,
        "num_files": len(rows),
        "num_extracted": _count("extracted"),
        "num_unchanged": _count("unchanged"),
        "num_skipped": _count("skipped"),
        "num_errors": _count("error"),
        "total_sites": sum(r.get("num_sites", 0) for r in rows),
        "total_bindings": sum(r.get("num_bindings", 0) for r in rows),
        "config": config.to_dict(),
        "generated_at": datetime.now().isoformat(timespec="seconds"),
        "out_dir": out_dir,
    }
    with open(agg_path, "w", encoding="utf-8") as f:
        json.dump(agg, f, ensure_ascii=False, indent=2)
    return agg


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--root", required=True, help="Source tree to process")
    ap.add_argument("--out", required=True, help="Output directory")
    ap.add_argument("--config", default=None, help="YAML config (default: $MACARON_EXTRACT_CONFIG or ./macaron.yaml)")
    args = ap.parse_args(argv)

    config = load_config(args.config)
    agg = batch_extract(args.root, args.out, config)

    print(f"Processed {agg['num_files']} files: {agg['num_extracted']} extracted, {agg['num_errors']} errors")
    print("Wrote:")
    for name in ("summary.csv", "summary.jsonl", "aggregate.json"):
        print(" -", os.path.join(agg["out_dir"], name))
    return 1 if agg["num_errors"] else 0


if __name__ == "__main__":
    raise SystemExit(main())
