from __future__ import annotations

import tomllib
from pathlib import Path

import pytest

from chart_docs.core import config_templates
from chart_docs.core.config_templates import (
    ConfigTemplate,
    ConfigTemplateError,
)


def test_get_template_returns_generate_template(tmp_path: Path) -> None:
    template = config_templates.get_template("generate")
    assert isinstance(template, ConfigTemplate)

    contents = template.read_text()
    assert "[values]" in contents
    assert "sort_order" in contents

    target = tmp_path / "chart_docs.toml"
    written = template.write(target)
    assert written == target
    assert target.read_text(encoding="utf-8") == contents

    with pytest.raises(ConfigTemplateError):
        template.write(target)

    updated = template.write(target, overwrite=True)
    assert updated == target


def test_generate_template_matches_loader_defaults() -> None:
    contents = config_templates.get_template("generate").read_text()

    parsed = tomllib.loads(contents)

    assert parsed == {
        "search": {"root": ".", "ignore_file": ".chartdocsignore"},
        "output": {"file": "README.md", "template": "README.md.j2"},
        "values": {
            "sort_order": "alphanum",
            "document_dependency_values": False,
            "exclude_dependencies": [],
        },
        "execution": {"jobs": 1},
        "logging": {"level": "INFO"},
    }


def test_iter_templates_returns_registered_templates() -> None:
    names = {template.name for template in config_templates.iter_templates()}
    assert names == {"generate"}


@pytest.mark.parametrize("unknown", ["missing", "", "values"])
def test_get_template_unknown_raises(unknown: str) -> None:
    with pytest.raises(ConfigTemplateError):
        config_templates.get_template(unknown)
