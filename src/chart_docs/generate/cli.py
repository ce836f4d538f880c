"""CLI entry point for README generation."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence

from chart_docs.core import config_templates
from chart_docs.core import workspace as workspace_mod
from chart_docs.core.config_templates import ConfigTemplateError
from chart_docs.core.files import find_chart_dirs
from chart_docs.core.logging import configure_logger
from chart_docs.core.workspace import WorkspaceError
from chart_docs.document import SortOrder

from .config import (
    CONFIG_FILENAME,
    ConfigOverrides,
    GenerateConfigError,
    load_config,
)
from .executor import ExecutionSummary, GenerationStatus, run_generation


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chart-docs generate",
        description=(
            "Generate Markdown README files for every chart found under the "
            "search root."
        ),
        epilog=(
            "Run `chart-docs generate config init` to scaffold the default "
            "chart_docs.toml template."
        ),
    )
    parser.add_argument(
        "--chart-search-root",
        type=Path,
        help=(
            "Directory scanned for charts (defaults to the current "
            "directory)."
        ),
    )
    parser.add_argument(
        "--chart",
        dest="charts",
        action="append",
        type=Path,
        metavar="DIR",
        help="Generate only for this chart directory (repeatable).",
    )
    parser.add_argument(
        "--ignore-file",
        help="Ignore file name, relative to the search root.",
    )
    parser.add_argument(
        "--output-file",
        help="README file name written next to each Chart.yaml.",
    )
    parser.add_argument(
        "--template-file",
        help="Chart-local template file name used when present.",
    )
    parser.add_argument(
        "--sort-values-order",
        choices=[order.value for order in SortOrder],
        help="Order of value rows: file order or natural alphanumeric.",
    )
    parser.add_argument(
        "--document-dependency-values",
        action="store_true",
        default=None,
        help="Merge the values of local dependency charts into the tables.",
    )
    parser.add_argument(
        "--exclude-dependency",
        dest="exclude_dependencies",
        action="append",
        metavar="NAME",
        help="Dependency name or alias never merged (repeatable).",
    )
    parser.add_argument(
        "--jobs",
        type=int,
        help="Number of charts rendered concurrently.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the rendered Markdown instead of writing files.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help=(
            "Path to a TOML config file (defaults to the workspace config "
            "directory)."
        ),
    )
    parser.add_argument(
        "--workspace",
        type=Path,
        help="Override the workspace root used for config and logs.",
    )
    parser.add_argument(
        "--log-level",
        help="Set the logging level for the run (defaults to INFO).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Mirror log records to stderr.",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args_list = list(argv) if argv is not None else list(sys.argv[1:])

    if args_list[:1] == ["config"]:
        return _handle_config(args_list[1:])

    parser = _build_parser()
    args = parser.parse_args(args_list)

    overrides = ConfigOverrides(
        search_root=args.chart_search_root,
        ignore_file=args.ignore_file,
        output_file=args.output_file,
        template_file=args.template_file,
        sort_order=(
            SortOrder.from_value(args.sort_values_order)
            if args.sort_values_order
            else None
        ),
        document_dependency_values=args.document_dependency_values,
        exclude_dependencies=args.exclude_dependencies,
        jobs=args.jobs,
        log_level=args.log_level,
    )

    try:
        load_result = load_config(
            config_path=args.config,
            overrides=overrides,
            workspace_path=args.workspace,
        )
    except GenerateConfigError as exc:
        parser.error(str(exc))

    config = load_result.config
    if args.charts:
        chart_dirs = [path.expanduser() for path in args.charts]
    else:
        try:
            chart_dirs = list(
                find_chart_dirs(
                    config.search_root, ignore_file=config.ignore_file
                )
            )
        except (FileNotFoundError, NotADirectoryError) as exc:
            parser.error(str(exc))

    logger, log_path = configure_logger(
        "chart_docs.generate",
        log_dir=load_result.layout.path_for("logs"),
        level=config.log_level,
        verbose=args.verbose,
    )
    logger.debug(
        "generate CLI invoked",
        extra={
            "config_path": (
                str(load_result.config_path)
                if load_result.config_path
                else None
            ),
        },
    )

    if not chart_dirs:
        sys.stderr.write(f"No charts found under {config.search_root}\n")
        return 0

    summary = run_generation(
        chart_dirs,
        config=config,
        logger=logger,
        dry_run=args.dry_run,
        stream=sys.stdout.write,
    )

    _print_summary(summary, log_path, dry_run=args.dry_run)
    return summary.exit_code


def _print_summary(
    summary: ExecutionSummary, log_path: Path, *, dry_run: bool
) -> None:
    label = "rendered: " if dry_run else "written:  "
    lines = [
        "generate summary:",
        "  {0} {1}".format(label, summary.written_count),
        "  unchanged: {0}".format(summary.unchanged_count),
        "  failed:    {0}".format(summary.failure_count),
        "  log file:  {0}".format(log_path),
    ]
    for outcome in summary.outcomes:
        if outcome.status is GenerationStatus.FAILED:
            lines.append(f"  error: {outcome.chart_dir}: {outcome.reason}")
    # Dry runs print Markdown on stdout; keep the summary out of it.
    target = sys.stderr if dry_run else sys.stdout
    target.write("\n".join(str(line) for line in lines) + "\n")


def _handle_config(argv: Sequence[str]) -> int:
    parser = _build_config_parser()
    args = parser.parse_args(argv)

    return _handle_config_init(args)


def _build_config_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chart-docs generate config",
        description="Manage configuration files for README generation.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser(
        "init",
        help="Write the default chart_docs.toml template.",
    )
    init_parser.add_argument(
        "--path",
        type=Path,
        help=(
            "Destination for the config TOML (defaults to the workspace "
            "config directory)."
        ),
    )
    init_parser.add_argument(
        "--workspace",
        type=Path,
        help=(
            "Workspace root override used when resolving the default config "
            "path."
        ),
    )
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite the destination if a config already exists.",
    )
    return parser


def _handle_config_init(args: argparse.Namespace) -> int:
    try:
        target = _resolve_config_target(args)
    except WorkspaceError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1

    template = config_templates.get_template("generate")
    try:
        written = template.write(target, overwrite=args.force)
    except ConfigTemplateError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1

    sys.stdout.write(f"Wrote generate config to {written}\n")
    return 0


def _resolve_config_target(args: argparse.Namespace) -> Path:
    if args.path is not None:
        candidate = args.path.expanduser()
        if not candidate.is_absolute():
            candidate = (Path.cwd() / candidate).resolve()
        return candidate

    layout = workspace_mod.ensure_workspace(path=args.workspace)
    return layout.path_for("config") / CONFIG_FILENAME


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
