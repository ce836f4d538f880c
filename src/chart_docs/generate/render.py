"""Render document models into Markdown with Jinja2."""

from __future__ import annotations

import re
from importlib import resources
from pathlib import Path
from typing import Any, List, Optional, Sequence

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    Template,
    TemplateError,
)

from chart_docs.document import DocumentModel

from .builder import ResolvedDependency
from .chart import Chart

__all__ = [
    "RenderError",
    "badge",
    "build_environment",
    "chart_badges",
    "code",
    "default_template",
    "load_template",
    "md_cell",
    "render_chart",
    "write_output",
]

DEFAULT_TEMPLATE_NAME = "README.md.j2"
_TEMPLATE_PACKAGE = "chart_docs.generate.templates"
_BACKTICKS_RE = re.compile(r"`+")


class RenderError(RuntimeError):
    """Raised when a template cannot be loaded or rendered."""


def md_cell(value: Any) -> str:
    """Make ``value`` safe inside a Markdown table cell."""

    text = "" if value is None else str(value)
    text = text.replace("|", "\\|")
    lines = [line.rstrip() for line in text.strip().splitlines()]
    return "<br>".join(lines)


def code(value: Any) -> str:
    """Wrap ``value`` in an inline code span that survives inner backticks."""

    text = "" if value is None else str(value)
    if not text:
        return ""
    longest = max((len(run) for run in _BACKTICKS_RE.findall(text)), default=0)
    fence = "`" * (longest + 1)
    if longest:
        return f"{fence} {text} {fence}"
    return f"{fence}{text}{fence}"


def badge(value: Any) -> str:
    """Escape ``value`` for a shields.io static badge label."""

    text = "" if value is None else str(value)
    return text.replace("-", "--").replace("_", "__").replace(" ", "_")


def chart_badges(chart: Chart) -> List[str]:
    """Shields.io badge images for the chart's version, type and app version."""

    badges = []
    for label, value in (
        ("Version", chart.version),
        ("Type", chart.type),
        ("AppVersion", chart.app_version),
    ):
        if value:
            badges.append(
                f"![{label}: {value}](https://img.shields.io/badge/"
                f"{label}-{badge(value)}-informational?style=flat-square)"
            )
    return badges


def build_environment(search_path: Optional[Path] = None) -> Environment:
    """Return the Jinja2 environment used for README templates."""

    loader = (
        FileSystemLoader(str(search_path)) if search_path is not None else None
    )
    env = Environment(
        loader=loader,
        autoescape=False,
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=StrictUndefined,
    )
    env.filters["md_cell"] = md_cell
    env.filters["code"] = code
    env.filters["badge"] = badge
    return env


def default_template() -> Template:
    """Load the packaged README template."""

    source = (
        resources.files(_TEMPLATE_PACKAGE)
        .joinpath(DEFAULT_TEMPLATE_NAME)
        .read_text(encoding="utf-8")
    )
    try:
        return build_environment().from_string(source)
    except TemplateError as exc:  # pragma: no cover - packaged template
        raise RenderError(f"Default template is invalid: {exc}") from exc


def load_template(chart_dir: Path, template_file: str) -> Template:
    """Return the chart-local template if present, else the default one."""

    candidate = chart_dir / template_file
    if not candidate.is_file():
        return default_template()
    env = build_environment(chart_dir)
    try:
        return env.get_template(template_file)
    except TemplateError as exc:
        raise RenderError(f"Invalid template {candidate}: {exc}") from exc


def render_chart(
    chart: Chart,
    document: DocumentModel,
    *,
    dependencies: Sequence[ResolvedDependency] = (),
    template: Optional[Template] = None,
) -> str:
    """Render ``document`` for ``chart`` through ``template``."""

    active = template or default_template()
    try:
        text = active.render(
            chart=chart,
            badges=chart_badges(chart),
            document=document,
            rows=document.rows(),
            sections=document.sections(),
            dependencies=tuple(dependencies),
        )
    except TemplateError as exc:
        raise RenderError(
            f"Failed to render template for chart '{chart.name}': {exc}"
        ) from exc
    return text.rstrip("\n") + "\n"


def write_output(path: Path, text: str) -> bool:
    """Write ``text`` to ``path``; returns ``False`` when nothing changed."""

    data = text.encode("utf-8")
    if path.is_file() and path.read_bytes() == data:
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return True
