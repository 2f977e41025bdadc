"""Output formatting helpers for the CLI."""

from __future__ import annotations

import json
import sys
from typing import Any

import yaml


def print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def print_table(headers: list[str], rows: list[list[Any]]) -> None:
    """Print rows as aligned text columns. Nothing is printed for no rows."""
    if not rows:
        return

    str_rows = [[str(v) for v in row] for row in rows]
    widths = [max(len(h), *(len(row[i]) for row in str_rows)) for i, h in enumerate(headers)]

    print("  ".join(h.ljust(widths[i]) for i, h in enumerate(headers)))
    print("  ".join("-" * w for w in widths))
    for row in str_rows:
        print("  ".join(val.ljust(widths[i]) for i, val in enumerate(row)))


def print_object(data: dict[str, Any], *, json_mode: bool = False) -> None:
    """Print one object as JSON or as ``key: value`` lines."""
    if json_mode:
        print_json(data)
        return
    for k, v in data.items():
        print(f"{k}: {v}")


def print_document(data: dict[str, Any], fmt: str) -> None:
    """Print a document as JSON or YAML."""
    if fmt == "yaml":
        print(yaml.dump(data, default_flow_style=False, sort_keys=False), end="")
    else:
        print_json(data)


def print_error(msg: str) -> None:
    print(f"Error: {msg}", file=sys.stderr)
