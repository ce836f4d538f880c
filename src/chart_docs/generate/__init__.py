"""README generation for chart directories."""

from .builder import BuildSettings, ChartModelBuilder, ResolvedDependency
from .chart import Chart, ChartDependency, ChartError, load_chart
from .config import GenerateConfig, GenerateConfigError, load_config
from .executor import (
    ExecutionSummary,
    GenerationOutcome,
    GenerationStatus,
    run_generation,
)
from .render import RenderError, render_chart


__all__ = [
    "BuildSettings",
    "Chart",
    "ChartDependency",
    "ChartError",
    "ChartModelBuilder",
    "ExecutionSummary",
    "GenerateConfig",
    "GenerateConfigError",
    "GenerationOutcome",
    "GenerationStatus",
    "RenderError",
    "ResolvedDependency",
    "load_chart",
    "load_config",
    "render_chart",
    "run_generation",
]
