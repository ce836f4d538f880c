"""Inspect the documented values of a single chart."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Sequence

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from chart_docs.document import DocumentBuildError, DocumentModel, SortOrder
from chart_docs.generate.builder import BuildSettings, ChartModelBuilder
from chart_docs.generate.chart import ChartError


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chart-docs values",
        description=(
            "Print the document model built from a chart's values.yaml and "
            "its annotations."
        ),
    )
    parser.add_argument(
        "chart_dir",
        type=Path,
        help="Chart directory holding Chart.yaml and values.yaml.",
    )
    parser.add_argument(
        "--sort-values-order",
        choices=[order.value for order in SortOrder],
        default=SortOrder.ALPHANUM.value,
        help="Order of value rows (defaults to alphanum).",
    )
    parser.add_argument(
        "--document-dependency-values",
        action="store_true",
        help="Merge the values of local dependency charts.",
    )
    parser.add_argument(
        "--format",
        choices=("table", "json"),
        default="table",
        help="Output format (defaults to a table).",
    )
    parser.add_argument(
        "--show-hidden",
        action="store_true",
        help="Include entries marked hidden (table output only).",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    builder = ChartModelBuilder(
        BuildSettings(
            sort_order=SortOrder.from_value(args.sort_values_order),
            document_dependency_values=args.document_dependency_values,
        )
    )
    try:
        chart = builder.load(args.chart_dir)
        document = builder.build(chart)
    except (ChartError, DocumentBuildError) as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1

    if args.format == "json":
        sys.stdout.write(json.dumps(document.to_dict(), indent=2) + "\n")
        return 0

    console = Console()
    console.print(_values_table(document, show_hidden=args.show_hidden))
    return 0


def _values_table(document: DocumentModel, *, show_hidden: bool) -> Table:
    title = document.name or "values"
    table = Table(title=title, box=box.SIMPLE, expand=False)
    table.add_column("Key", overflow="fold")
    table.add_column("Type")
    table.add_column("Default", overflow="fold")
    table.add_column("Description", overflow="fold")
    table.add_column("Section")

    for entry, hidden in _leaves(document, show_hidden):
        table.add_row(
            Text(entry.path, style="dim" if hidden else ""),
            Text(entry.type),
            Text(entry.default),
            Text(entry.description),
            Text(entry.section or ""),
        )
    return table


def _leaves(document: DocumentModel, show_hidden: bool):
    if not show_hidden:
        for entry in document.rows():
            yield entry, False
        return
    stack = [(entry, entry.hidden) for entry in reversed(document.entries)]
    while stack:
        entry, hidden = stack.pop()
        if entry.is_leaf or entry.description:
            yield entry, hidden
        stack.extend(
            (child, hidden or child.hidden)
            for child in reversed(entry.children)
        )


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
