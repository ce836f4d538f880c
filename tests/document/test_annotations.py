from __future__ import annotations

import logging
import textwrap

import pytest
import yaml

from chart_docs.document import annotations as ann
from chart_docs.document.annotations import Annotation, DirectiveSet


def _parse(text: str, **kwargs) -> dict[str, Annotation]:
    source = textwrap.dedent(text).lstrip("\n")
    return ann.parse_annotations(source, yaml.safe_load(source), **kwargs)


def test_dash_description_attaches_to_next_key():
    result = _parse(
        """
        # -- Number of replicas
        replicaCount: 1
        """
    )

    assert result == {
        "replicaCount": Annotation(description="Number of replicas")
    }


def test_plain_description_directive():
    result = _parse(
        """
        # description: Number of replicas
        replicaCount: 1
        """
    )

    assert result["replicaCount"].description == "Number of replicas"


def test_continuation_lines_join_with_newline():
    result = _parse(
        """
        # -- First line
        # second line
        key: value
        """
    )

    assert result["key"].description == "First line\nsecond line"


def test_blank_line_discards_pending_block():
    result = _parse(
        """
        # -- Orphaned comment

        key: value
        """
    )

    assert result == {}


def test_ordinary_comment_without_directive_is_ignored():
    result = _parse(
        """
        # just a note for maintainers
        key: value
        """
    )

    assert result == {}


def test_all_directives_in_one_block():
    result = _parse(
        """
        image:
          # -- Image tag
          # @section -- Images
          # @default -- chart appVersion
          # @type: string
          tag: ""
        """
    )

    assert result["image.tag"] == Annotation(
        description="Image tag",
        default="chart appVersion",
        type="string",
        section="Images",
    )


def test_hidden_flag_and_aliases():
    result = _parse(
        """
        # @hidden
        secret: x
        # @skip
        other: y
        # @ignored -- false
        shown: z
        """
    )

    assert result["secret"].hidden is True
    assert result["other"].hidden is True
    assert result["shown"].hidden is False


def test_malformed_hidden_value_is_skipped(caplog):
    logger = logging.getLogger("tests.annotations.hidden")

    with caplog.at_level(logging.DEBUG, logger=logger.name):
        result = _parse(
            """
            # @hidden -- maybe
            key: value
            """,
            logger=logger,
        )

    assert "key" not in result
    assert any(
        record.getMessage() == "Ignoring malformed hidden value"
        for record in caplog.records
    )


def test_first_directive_inside_block_wins():
    result = _parse(
        """
        # -- Desc
        # @section -- First
        # @section -- Second
        # trailing text
        key: value
        """
    )

    assert result["key"].section == "First"
    assert result["key"].description == "Desc"


def test_unknown_directive_skips_its_continuation():
    result = _parse(
        """
        # -- Desc
        # @color -- blue
        # still about color
        key: value
        """
    )

    assert result["key"].description == "Desc"


def test_explicit_block_overrides_positional_block():
    result = _parse(
        """
        # -- positional text
        replicaCount: 1
        # replicaCount -- explicit text
        other: 2
        """
    )

    assert result["replicaCount"].description == "explicit text"
    assert "other" not in result


def test_explicit_block_collects_following_directives():
    result = _parse(
        """
        # image.tag -- The tag
        # @section -- Images

        image:
          tag: v1
        """
    )

    assert result["image.tag"] == Annotation(
        description="The tag", section="Images"
    )


def test_explicit_block_for_unknown_path_is_dropped():
    result = _parse(
        """
        # missing.key -- not a key of the values
        key: value
        """
    )

    assert result == {}


def test_unknown_explicit_block_swallows_its_directives():
    result = _parse(
        """
        # missing.key -- gone
        # @default -- 42
        # @section -- Gone
        replicaCount: 1
        """
    )

    assert result == {}


def test_unknown_explicit_block_leaves_earlier_description_alone():
    result = _parse(
        """
        # -- Number of replicas
        # missing.key -- gone
        replicaCount: 1
        """
    )

    assert result == {
        "replicaCount": Annotation(description="Number of replicas")
    }


def test_commented_out_yaml_inside_description_stays_text():
    result = _parse(
        """
        service:
          # -- Service type
          # type: LoadBalancer
          type: ClusterIP
        """
    )

    assert result["service.type"] == Annotation(
        description="Service type\ntype: LoadBalancer"
    )


def test_plain_directives_stack_at_block_start():
    result = _parse(
        """
        # description: Number of replicas
        # section: Core
        replicaCount: 1
        """
    )

    assert result["replicaCount"] == Annotation(
        description="Number of replicas", section="Core"
    )


def test_sequence_items_take_annotations():
    result = _parse(
        """
        hosts:
          # -- first host
          - a.example
          # -- second host
          - b.example
        ports:
          # -- http port
          - name: http
            port: 80
        """
    )

    assert result["hosts[0]"].description == "first host"
    assert result["hosts[1]"].description == "second host"
    assert result["ports[0]"].description == "http port"
    assert "ports[0].name" not in result


def test_block_scalar_content_is_not_read_as_comments():
    result = _parse(
        """
        script: |
          # -- not an annotation
          echo hi
        # -- after the script
        after: 1
        """
    )

    assert result == {"after": Annotation(description="after the script")}


def test_custom_directive_set_restricts_names():
    directives = DirectiveSet(names=frozenset({"description"}), aliases={})

    result = _parse(
        """
        # -- Desc
        # @section -- Ignored
        key: value
        """,
        directives=directives,
    )

    assert result["key"] == Annotation(description="Desc")


def test_directive_set_rejects_unsupported_names():
    with pytest.raises(ValueError):
        DirectiveSet(names=frozenset({"required"}))
    with pytest.raises(ValueError):
        DirectiveSet(aliases={"opt": "optional"})


def test_directive_set_resolve_is_case_insensitive():
    assert ann.DEFAULT_DIRECTIVES.resolve("Section") == "section"
    assert ann.DEFAULT_DIRECTIVES.resolve("SKIP") == "hidden"
    assert ann.DEFAULT_DIRECTIVES.resolve("color") is None


def test_uncomposable_text_keeps_explicit_blocks():
    source = "# key -- from explicit block\nkey: [\n"

    result = ann.parse_annotations(source, {"key": 1})

    assert result == {"key": Annotation(description="from explicit block")}


def test_crlf_line_endings():
    source = "# -- Desc\r\nkey: value\r\n"

    result = ann.parse_annotations(source, yaml.safe_load(source))

    assert result["key"].description == "Desc"


def test_leading_byte_order_mark_is_ignored():
    source = "\ufeff# -- Replicas\nreplicaCount: 1\n"

    result = ann.parse_annotations(source, {"replicaCount": 1})

    assert result == {"replicaCount": Annotation(description="Replicas")}


def test_parse_is_idempotent():
    source = "# -- A\na: 1\n# b -- B\nb:\n  c: 2\n"
    values = yaml.safe_load(source)

    first = ann.parse_annotations(source, values)
    second = ann.parse_annotations(source, values)

    assert first == second


def test_locate_keys_maps_lines_to_paths():
    source = textwrap.dedent(
        """
        a: 1
        b:
          c: 2
        list:
          - x
        on: yes
        1: one
        """
    ).lstrip("\n")

    key_lines, content_lines = ann.locate_keys(source)

    assert key_lines == {
        0: "a",
        1: "b",
        2: "b.c",
        3: "list",
        4: "list[0]",
        5: "true",
        6: "1",
    }
    assert content_lines == set()


def test_locate_keys_invalid_yaml_returns_empty():
    assert ann.locate_keys("a: [\n") == ({}, set())
