from __future__ import annotations

import pytest

from chart_docs.core import config as core_config


def test_load_toml_reads_tables(tmp_path):
    target = tmp_path / "config.toml"
    target.write_text('[values]\nsort_order = "file"\n', encoding="utf-8")

    assert core_config.load_toml(target) == {"values": {"sort_order": "file"}}


@pytest.mark.parametrize("content", [None, "not = [valid"])
def test_load_toml_errors(tmp_path, content):
    target = tmp_path / "config.toml"
    if content is not None:
        target.write_text(content, encoding="utf-8")

    with pytest.raises(core_config.TomlConfigError):
        core_config.load_toml(target)


def test_load_toml_rejects_directories(tmp_path):
    with pytest.raises(core_config.TomlConfigError, match="directory"):
        core_config.load_toml(tmp_path)


def test_merge_defaults_replaces_leaves():
    base = {"values": {"sort_order": "alphanum", "exclude": ["a"]}}

    core_config.merge_defaults(base, {"values": {"exclude": ["b", "c"]}})

    assert base == {
        "values": {"sort_order": "alphanum", "exclude": ["b", "c"]}
    }


def test_merge_defaults_rejects_unknown_keys():
    with pytest.raises(core_config.TomlConfigError, match="values.colour"):
        core_config.merge_defaults(
            {"values": {"sort_order": "file"}}, {"values": {"colour": 1}}
        )


def test_merge_defaults_rejects_shape_mismatch():
    with pytest.raises(core_config.TomlConfigError, match="Expected table"):
        core_config.merge_defaults({"values": {}}, {"values": 3})
    with pytest.raises(core_config.TomlConfigError, match="found a table"):
        core_config.merge_defaults({"jobs": 1}, {"jobs": {"n": 2}})


def test_write_toml_template_respects_overwrite(tmp_path):
    target = tmp_path / "nested" / "config.toml"

    core_config.write_toml_template(target, template="a = 1\n")
    with pytest.raises(core_config.TomlConfigError):
        core_config.write_toml_template(target, template="a = 2\n")
    core_config.write_toml_template(target, template="a = 3\n", overwrite=True)

    assert target.read_text(encoding="utf-8") == "a = 3\n"
