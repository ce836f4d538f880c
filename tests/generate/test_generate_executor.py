from __future__ import annotations

import logging
from pathlib import Path

import pytest

from chart_docs.document import SortOrder
from chart_docs.generate import chart as chart_mod
from chart_docs.generate.config import GenerateConfig
from chart_docs.generate.executor import GenerationStatus, run_generation


def _config(tmp_path: Path, **changes) -> GenerateConfig:
    values = dict(
        search_root=tmp_path,
        ignore_file=None,
        output_file="README.md",
        template_file="README.md.j2",
        sort_order=SortOrder.ALPHANUM,
        document_dependency_values=False,
        exclude_dependencies=(),
        jobs=1,
        log_level="INFO",
    )
    values.update(changes)
    return GenerateConfig(**values)


@pytest.fixture
def logger() -> logging.Logger:
    return logging.getLogger("chart_docs.tests.executor")


def test_writes_readme_then_reports_unchanged(charts, tmp_path, logger):
    chart_dir = charts.chart("web", values="# -- Replicas\nreplicas: 1\n")
    config = _config(tmp_path)

    first = run_generation([chart_dir], config=config, logger=logger)
    second = run_generation([chart_dir], config=config, logger=logger)

    readme = chart_dir / "README.md"
    assert "| replicas | int | `1` | Replicas |" in readme.read_text(
        encoding="utf-8"
    )
    assert [o.status for o in first.outcomes] == [GenerationStatus.WRITTEN]
    assert first.outcomes[0].chart_name == "web"
    assert first.outcomes[0].output_path == readme.resolve()
    assert second.unchanged_count == 1
    assert second.written_count == 0
    assert second.exit_code == 0


def test_failure_is_reported_without_stopping_the_run(
    charts, tmp_path, logger
):
    good = charts.chart("good", values="a: 1\n")
    broken = charts.chart("broken", values="a: [1\n")
    missing = tmp_path / "nowhere"

    summary = run_generation(
        [broken, good, missing], config=_config(tmp_path), logger=logger
    )

    statuses = [outcome.status for outcome in summary.outcomes]
    assert statuses == [
        GenerationStatus.FAILED,
        GenerationStatus.WRITTEN,
        GenerationStatus.FAILED,
    ]
    assert summary.failure_count == 2
    assert summary.exit_code == 1
    assert "Failed to parse" in summary.outcomes[0].reason
    assert summary.outcomes[0].chart_name is None
    assert "No Chart.yaml" in summary.outcomes[2].reason
    assert not (broken / "README.md").exists()


def test_dry_run_streams_markdown(charts, tmp_path, logger):
    chart_dir = charts.chart("web", values="a: 1\n")
    rendered: list[str] = []

    summary = run_generation(
        [chart_dir],
        config=_config(tmp_path),
        logger=logger,
        dry_run=True,
        stream=rendered.append,
    )

    assert summary.outcomes[0].status is GenerationStatus.DRY_RUN
    assert summary.written_count == 1
    assert len(rendered) == 1
    assert rendered[0].startswith("# web\n")
    assert not (chart_dir / "README.md").exists()


def test_parallel_run_keeps_input_order(charts, tmp_path, logger):
    names = ["delta", "alpha", "charlie", "bravo"]
    dirs = [charts.chart(name, values="a: 1\n") for name in names]

    summary = run_generation(
        dirs, config=_config(tmp_path, jobs=3), logger=logger
    )

    assert [o.chart_name for o in summary.outcomes] == names
    assert summary.requested == tuple(path.resolve() for path in dirs)
    assert summary.written_count == 4


def test_custom_output_and_local_template(charts, tmp_path, logger):
    chart_dir = charts.chart("web", values="a: 1\n")
    (chart_dir / "DOCS.md.j2").write_text(
        "{{ chart.name }}: {{ rows | map(attribute='path') | join(',') }}\n",
        encoding="utf-8",
    )
    config = _config(
        tmp_path, output_file="DOCS.md", template_file="DOCS.md.j2"
    )

    run_generation([chart_dir], config=config, logger=logger)

    assert (chart_dir / "DOCS.md").read_text(encoding="utf-8") == "web: a\n"


def test_dependency_values_are_merged_into_parent_readme(
    charts, tmp_path, logger
):
    charts.chart("redis", values="# -- Redis port\nport: 6379\n")
    parent = charts.chart(
        "app",
        values="replicas: 1\n",
        dependencies=[
            {
                "name": "redis",
                "version": "1.0.0",
                "repository": "file://../redis",
            }
        ],
    )
    config = _config(tmp_path, document_dependency_values=True)

    run_generation([parent], config=config, logger=logger)

    text = (parent / "README.md").read_text(encoding="utf-8")
    assert "| redis.port | int | `6379` | Redis port |" in text
    assert "| file://../redis | redis | 1.0.0 |" in text


def test_non_utf8_readme_is_replaced_without_aborting(
    charts, tmp_path, logger
):
    legacy = charts.chart("legacy", values="a: 1\n")
    (legacy / "README.md").write_bytes(b"caf\xe9\n")
    good = charts.chart("good", values="a: 1\n")

    summary = run_generation(
        [legacy, good], config=_config(tmp_path), logger=logger
    )

    assert [o.status for o in summary.outcomes] == [
        GenerationStatus.WRITTEN,
        GenerationStatus.WRITTEN,
    ]
    assert (legacy / "README.md").read_text(encoding="utf-8").startswith(
        "# legacy\n"
    )


def test_unreadable_chart_becomes_a_failed_outcome(
    charts, tmp_path, logger, monkeypatch
):
    locked = charts.chart("locked", values="a: 1\n")
    good = charts.chart("good", values="a: 1\n")
    original = chart_mod.read_text_file

    def guarded(path):
        if Path(path).parent.name == "locked":
            raise PermissionError(13, "Permission denied", str(path))
        return original(path)

    monkeypatch.setattr(chart_mod, "read_text_file", guarded)

    summary = run_generation(
        [locked, good], config=_config(tmp_path), logger=logger
    )

    assert [o.status for o in summary.outcomes] == [
        GenerationStatus.FAILED,
        GenerationStatus.WRITTEN,
    ]
    assert "Permission denied" in summary.outcomes[0].reason
