"""Executor for README generation runs."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Sequence

from chart_docs.document import DocumentBuildError

from .builder import BuildSettings, ChartModelBuilder
from .chart import ChartError
from .config import GenerateConfig
from .render import RenderError, load_template, render_chart, write_output


class GenerationStatus(Enum):
    """Outcome status for a single chart."""

    WRITTEN = "written"
    UNCHANGED = "unchanged"
    DRY_RUN = "dry-run"
    FAILED = "failed"


@dataclass(frozen=True)
class GenerationOutcome:
    """Result of generating the README of one chart."""

    chart_dir: Path
    status: GenerationStatus
    output_path: Optional[Path] = None
    chart_name: Optional[str] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class ExecutionSummary:
    """Aggregated results for a generation run."""

    requested: tuple[Path, ...]
    outcomes: tuple[GenerationOutcome, ...]

    @property
    def written_count(self) -> int:
        return self._count(GenerationStatus.WRITTEN, GenerationStatus.DRY_RUN)

    @property
    def unchanged_count(self) -> int:
        return self._count(GenerationStatus.UNCHANGED)

    @property
    def failure_count(self) -> int:
        return self._count(GenerationStatus.FAILED)

    @property
    def exit_code(self) -> int:
        return 1 if self.failure_count else 0

    def _count(self, *statuses: GenerationStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status in statuses)


def run_generation(
    chart_dirs: Sequence[Path],
    *,
    config: GenerateConfig,
    logger: logging.Logger,
    dry_run: bool = False,
    stream: Optional[Callable[[str], object]] = None,
) -> ExecutionSummary:
    """Render a README for every chart in ``chart_dirs``.

    Document models are built through one shared :class:`ChartModelBuilder`
    so a dependency chart is parsed once per run. Charts are processed by up
    to ``config.jobs`` worker threads; outcomes keep the input order. With
    ``dry_run`` nothing is written and the rendered text goes to ``stream``.
    """

    requested = tuple(Path(path).expanduser().resolve() for path in chart_dirs)
    builder = ChartModelBuilder(
        BuildSettings(
            sort_order=config.sort_order,
            document_dependency_values=config.document_dependency_values,
            exclude_dependencies=config.exclude_dependencies,
        ),
        logger=logger,
    )

    logger.info(
        "Starting generation run",
        extra={
            "chart_count": len(requested),
            "jobs": config.jobs,
            "sort_order": config.sort_order.value,
            "dry_run": dry_run,
        },
    )

    def generate(chart_dir: Path) -> GenerationOutcome:
        return _generate_one(
            chart_dir,
            builder=builder,
            config=config,
            dry_run=dry_run,
            stream=stream,
        )

    if config.jobs > 1 and len(requested) > 1:
        with ThreadPoolExecutor(max_workers=config.jobs) as pool:
            outcomes = tuple(pool.map(generate, requested))
    else:
        outcomes = tuple(generate(chart_dir) for chart_dir in requested)

    for outcome in outcomes:
        _log_outcome(logger, outcome)

    summary = ExecutionSummary(requested=requested, outcomes=outcomes)
    logger.info(
        "Completed generation run",
        extra={
            "written_count": summary.written_count,
            "unchanged_count": summary.unchanged_count,
            "failure_count": summary.failure_count,
        },
    )
    return summary


def _generate_one(
    chart_dir: Path,
    *,
    builder: ChartModelBuilder,
    config: GenerateConfig,
    dry_run: bool,
    stream: Optional[Callable[[str], object]],
) -> GenerationOutcome:
    output_path = chart_dir / config.output_file
    chart_name: Optional[str] = None
    try:
        chart = builder.load(chart_dir)
        chart_name = chart.name
        document = builder.build(chart)
        text = render_chart(
            chart,
            document,
            dependencies=builder.dependencies_of(chart),
            template=load_template(chart_dir, config.template_file),
        )
    except (ChartError, DocumentBuildError, RenderError) as exc:
        return GenerationOutcome(
            chart_dir=chart_dir,
            status=GenerationStatus.FAILED,
            output_path=output_path,
            chart_name=chart_name,
            reason=str(exc),
        )

    if dry_run:
        if stream is not None:
            stream(text)
        return GenerationOutcome(
            chart_dir=chart_dir,
            status=GenerationStatus.DRY_RUN,
            output_path=output_path,
            chart_name=chart_name,
        )

    try:
        changed = write_output(output_path, text)
    except OSError as exc:
        return GenerationOutcome(
            chart_dir=chart_dir,
            status=GenerationStatus.FAILED,
            output_path=output_path,
            chart_name=chart_name,
            reason=f"Failed to write {output_path}: {exc}",
        )
    return GenerationOutcome(
        chart_dir=chart_dir,
        status=(
            GenerationStatus.WRITTEN if changed else GenerationStatus.UNCHANGED
        ),
        output_path=output_path,
        chart_name=chart_name,
    )


def _log_outcome(logger: logging.Logger, outcome: GenerationOutcome) -> None:
    extra = {
        "chart": outcome.chart_name,
        "chart_dir": str(outcome.chart_dir),
        "output_path": (
            str(outcome.output_path) if outcome.output_path else None
        ),
        "status": outcome.status.value,
    }
    if outcome.status is GenerationStatus.FAILED:
        extra["reason"] = outcome.reason
        logger.error("Failed to generate README", extra=extra)
    elif outcome.status is GenerationStatus.UNCHANGED:
        logger.info("README already up to date", extra=extra)
    else:
        logger.info("Generated README", extra=extra)
