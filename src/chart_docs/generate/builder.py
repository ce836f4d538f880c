"""Memoised document builds across a set of charts."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from chart_docs.document import (
    Dependency,
    DependencyCycle,
    DocumentModel,
    SortOrder,
    build_document,
)

from .chart import Chart, ChartDependency, load_chart

__all__ = [
    "BuildSettings",
    "ChartModelBuilder",
    "ResolvedDependency",
]


@dataclass(frozen=True)
class BuildSettings:
    """Knobs shared by every chart build in a run."""

    sort_order: SortOrder = SortOrder.ALPHANUM
    document_dependency_values: bool = False
    exclude_dependencies: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ResolvedDependency:
    """A chart dependency plus whether its values were documented."""

    dependency: ChartDependency
    path: Optional[Path]
    included: bool


class ChartModelBuilder:
    """Build each chart's document model at most once.

    Dependencies are built (and cached) before the parent that mounts them.
    Results and failures are both memoised by chart directory, so a chart
    shared by several parents is parsed once per run. Builds are serialised
    by a re-entrant lock; re-entering a chart that is still being built means
    the dependency graph has a cycle.
    """

    def __init__(
        self,
        settings: BuildSettings,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._settings = settings
        self._logger = logger or logging.getLogger("chart_docs.generate")
        self._lock = threading.RLock()
        self._charts: Dict[str, Chart] = {}
        self._results: Dict[str, Union[DocumentModel, Exception]] = {}
        self._building: List[Tuple[str, str, str]] = []

    def load(self, path: Path) -> Chart:
        """Load (once) and return the chart at ``path``."""

        key = str(Path(path).expanduser().resolve())
        with self._lock:
            chart = self._charts.get(key)
            if chart is None:
                chart = load_chart(Path(key))
                self._charts[key] = chart
            return chart

    def build(self, chart: Chart) -> DocumentModel:
        """Return the document model of ``chart``, building it if needed."""

        with self._lock:
            return self._build(chart, mount=None)

    def dependencies_of(self, chart: Chart) -> Tuple[ResolvedDependency, ...]:
        """Describe how each dependency of ``chart`` is handled."""

        resolved = []
        for dependency in chart.dependencies:
            path = dependency.locate(chart.path)
            resolved.append(
                ResolvedDependency(
                    dependency=dependency,
                    path=path,
                    included=self._includes(dependency, path),
                )
            )
        return tuple(resolved)

    def _build(self, chart: Chart, *, mount: Optional[str]) -> DocumentModel:
        key = chart.identity
        cached = self._results.get(key)
        if cached is not None:
            if isinstance(cached, Exception):
                raise cached
            return cached

        if any(entry[0] == key for entry in self._building):
            raise self._cycle_error(chart, mount or chart.name)

        self._building.append((key, chart.name, mount or chart.name))
        try:
            model = self._build_uncached(chart)
        except DependencyCycle:
            # Cycle members are still on the stack; not memoised.
            raise
        except Exception as exc:
            self._results[key] = exc
            raise
        finally:
            self._building.pop()
        self._results[key] = model
        return model

    def _build_uncached(self, chart: Chart) -> DocumentModel:
        dependencies: List[Dependency] = []
        for resolved in self.dependencies_of(chart):
            mount = resolved.dependency.mount
            if not resolved.included or resolved.path is None:
                dependencies.append(Dependency(mount=mount, include=False))
                continue
            child = self.load(resolved.path)
            dependencies.append(
                Dependency(
                    mount=mount,
                    model=self._build(child, mount=mount),
                    include=True,
                )
            )

        self._logger.debug(
            "Building document model",
            extra={
                "chart": chart.name,
                "path": str(chart.path),
                "dependency_count": len(dependencies),
            },
        )
        return build_document(
            chart.values,
            chart.values_text,
            name=chart.name,
            dependencies=dependencies,
            sort_order=self._settings.sort_order,
            logger=self._logger,
        )

    def _includes(
        self, dependency: ChartDependency, path: Optional[Path]
    ) -> bool:
        if not self._settings.document_dependency_values or path is None:
            return False
        excluded = set(self._settings.exclude_dependencies)
        return not {dependency.name, dependency.mount} & excluded

    def _cycle_error(self, chart: Chart, mount: str) -> DependencyCycle:
        start = next(
            index
            for index, entry in enumerate(self._building)
            if entry[0] == chart.identity
        )
        loop = self._building[start:]
        names = [name for _, name, _ in loop]
        mounts = [entry_mount for _, _, entry_mount in loop[1:]] + [mount]
        return DependencyCycle(".".join(mounts), chain=(*names, chart.name))
