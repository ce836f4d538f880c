from __future__ import annotations

import logging
import os

import pytest

from chart_docs.core.logging import release_logger
from chart_docs.generate import cli


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path, monkeypatch):
    for key in list(os.environ):
        if key.startswith("CHART_DOCS_"):
            monkeypatch.delenv(key)
    cwd = tmp_path / "cwd"
    cwd.mkdir()
    monkeypatch.chdir(cwd)
    yield
    release_logger(logging.getLogger("chart_docs.generate"))


@pytest.fixture
def workspace(tmp_path):
    return tmp_path / "workspace"


def _run(workspace, *args: str) -> int:
    return cli.main([*args, "--workspace", str(workspace)])


def test_generate_writes_every_chart(charts, workspace, capsys):
    charts.chart("web", values="# -- Replicas\nreplicas: 1\n")
    charts.chart("nested/api", values="port: 80\n")

    code = _run(workspace, "--chart-search-root", str(charts.root))

    out = capsys.readouterr().out
    assert code == 0
    assert "generate summary:" in out
    assert "written:   2" in out
    assert (charts.root / "web" / "README.md").is_file()
    assert (charts.root / "nested" / "api" / "README.md").is_file()
    assert (workspace / "logs" / "generate.log").is_file()

    assert _run(workspace, "--chart-search-root", str(charts.root)) == 0
    assert "unchanged: 2" in capsys.readouterr().out


def test_ignore_file_prunes_charts(charts, workspace, capsys):
    charts.chart("web", values="a: 1\n")
    charts.chart("vendor/lib", values="a: 1\n")
    (charts.root / ".chartdocsignore").write_text(
        "vendor/\n", encoding="utf-8"
    )

    code = _run(workspace, "--chart-search-root", str(charts.root))

    assert code == 0
    assert "written:   1" in capsys.readouterr().out
    assert not (charts.root / "vendor" / "lib" / "README.md").exists()


def test_dry_run_keeps_summary_off_stdout(charts, workspace, capsys):
    chart_dir = charts.chart("web", values="a: 1\n")

    code = _run(workspace, "--chart", str(chart_dir), "--dry-run")

    captured = capsys.readouterr()
    assert code == 0
    assert captured.out.startswith("# web\n")
    assert "generate summary:" not in captured.out
    assert "rendered:  1" in captured.err
    assert not (chart_dir / "README.md").exists()


def test_failures_set_exit_code(charts, workspace, tmp_path, capsys):
    good = charts.chart("web", values="a: 1\n")

    code = _run(
        workspace,
        "--chart",
        str(good),
        "--chart",
        str(tmp_path / "missing"),
    )

    out = capsys.readouterr().out
    assert code == 1
    assert "failed:    1" in out
    assert "error:" in out


def test_options_reach_the_renderer(charts, workspace):
    chart_dir = charts.chart("web", values="b: 1\na: 2\n")

    code = _run(
        workspace,
        "--chart",
        str(chart_dir),
        "--output-file",
        "VALUES.md",
        "--sort-values-order",
        "file",
    )

    text = (chart_dir / "VALUES.md").read_text(encoding="utf-8")
    assert code == 0
    assert text.index("| b |") < text.index("| a |")


def test_no_charts_found(tmp_path, workspace, capsys):
    empty = tmp_path / "empty"
    empty.mkdir()

    code = _run(workspace, "--chart-search-root", str(empty))

    assert code == 0
    assert "No charts found" in capsys.readouterr().err


@pytest.mark.parametrize(
    "args",
    [
        ["--jobs", "0"],
        ["--chart-search-root", "does-not-exist"],
        ["--sort-values-order", "random"],
    ],
)
def test_invalid_arguments_exit_with_usage_error(workspace, args):
    with pytest.raises(SystemExit) as excinfo:
        _run(workspace, *args)

    assert excinfo.value.code == 2


def test_config_init_writes_template(tmp_path, capsys):
    target = tmp_path / "conf" / "chart_docs.toml"

    assert cli.main(["config", "init", "--path", str(target)]) == 0
    assert "Wrote generate config" in capsys.readouterr().out
    assert "[values]" in target.read_text(encoding="utf-8")

    assert cli.main(["config", "init", "--path", str(target)]) == 1
    assert cli.main(
        ["config", "init", "--path", str(target), "--force"]
    ) == 0


def test_config_init_defaults_to_workspace(workspace):
    code = cli.main(["config", "init", "--workspace", str(workspace)])

    assert code == 0
    assert (workspace / "config" / "chart_docs.toml").is_file()


def test_workspace_config_is_used(charts, workspace):
    chart_dir = charts.chart("web", values="a: 1\n")
    (workspace / "config").mkdir(parents=True)
    (workspace / "config" / "chart_docs.toml").write_text(
        '[output]\nfile = "CHART.md"\n', encoding="utf-8"
    )

    assert _run(workspace, "--chart", str(chart_dir)) == 0
    assert (chart_dir / "CHART.md").is_file()
