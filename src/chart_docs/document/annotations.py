"""Annotation parser for comments written above values keys.

Annotations are ordinary YAML comments::

    # -- Number of replicas
    # @section -- Deployment
    replicaCount: 1

    # image.tag -- Overrides the image tag (explicit key-path form)

A comment block directly above a key documents that key. A block opened with
``key.path -- text`` documents ``key.path`` wherever it appears; such a block
for a path missing from the values is dropped whole. Directive lines take the
forms ``-- text`` (description), ``@name -- value``, ``@name: value`` and
``@name``. The bare ``name: value`` form is only read while a block holds
nothing else, so commented-out YAML inside a description stays text. Other
comment lines continue the open directive. Nothing in here raises on bad
input: unknown or malformed directives are skipped.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Set, Tuple

import yaml

from .paths import index_key, iter_key_paths, join_path, key_text

__all__ = [
    "Annotation",
    "DEFAULT_DIRECTIVES",
    "DirectiveSet",
    "locate_keys",
    "parse_annotations",
]

DESCRIPTION = "description"
DEFAULT = "default"
TYPE = "type"
SECTION = "section"
HIDDEN = "hidden"

_FIELDS = (DESCRIPTION, DEFAULT, TYPE, SECTION, HIDDEN)

_LINE_BREAK_RE = re.compile(r"\r\n|[\n\r\x85\u2028\u2029]")
_COMMENT_RE = re.compile(r"^\s*#(?P<body>.*)$")
_DESCRIPTION_RE = re.compile(r"^--(?:\s+(?P<value>.*))?$")
_AT_DIRECTIVE_RE = re.compile(
    r"^@(?P<name>[A-Za-z][\w-]*)(?:\s*(?:--|:)\s*(?P<value>.*)|\s*)$"
)
_EXPLICIT_RE = re.compile(
    r"^(?P<path>[\w$/-]+(?:\[\d+\])*(?:\.[\w$/-]+(?:\[\d+\])*)*)"
    r"\s+--(?:\s+(?P<value>.*))?$"
)
_PLAIN_DIRECTIVE_RE = re.compile(
    r"^(?P<name>[A-Za-z][\w-]*)\s*:\s*(?P<value>.*)$"
)

_TRUE_WORDS = {"", "true", "yes", "on", "1"}
_FALSE_WORDS = {"false", "no", "off", "0"}
_MERGE_TAG = "tag:yaml.org,2002:merge"
_BOM = "\ufeff"


@dataclass(frozen=True)
class Annotation:
    """Documentation metadata for one key-path."""

    description: str = ""
    default: Optional[str] = None
    type: Optional[str] = None
    section: Optional[str] = None
    hidden: bool = False


@dataclass(frozen=True)
class DirectiveSet:
    """Recognised directive names plus aliases mapping onto them."""

    names: frozenset[str] = frozenset(_FIELDS)
    aliases: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType(
            {"skip": HIDDEN, "ignored": HIDDEN}
        )
    )

    def __post_init__(self) -> None:
        unknown = set(self.names) - set(_FIELDS)
        if unknown:
            raise ValueError(
                "Unsupported directive names: {0}".format(
                    ", ".join(sorted(unknown))
                )
            )
        for alias, target in self.aliases.items():
            if target not in _FIELDS:
                raise ValueError(
                    f"Alias '{alias}' points at unsupported directive "
                    f"'{target}'."
                )
        object.__setattr__(
            self, "aliases", MappingProxyType(dict(self.aliases))
        )

    def resolve(self, name: str) -> Optional[str]:
        """Return the canonical directive for ``name`` or ``None``."""

        lowered = name.lower()
        canonical = self.aliases.get(lowered, lowered)
        if canonical in self.names:
            return canonical
        return None


DEFAULT_DIRECTIVES = DirectiveSet()


class _Block:
    """Directive values collected from one comment block."""

    def __init__(self, explicit_path: Optional[str] = None) -> None:
        self.explicit_path = explicit_path
        self.values: Dict[str, List[str]] = {}
        self.current: Optional[str] = None
        # Only ``name: value`` lines so far.
        self.plain = True

    def start(self, name: str, value: str) -> None:
        if name in self.values:
            # First occurrence inside a block wins; drop the repeat.
            self.current = None
            return
        self.values[name] = [value]
        self.current = name

    def stop(self) -> None:
        self.current = None

    def extend(self, text: str) -> None:
        if self.current is not None:
            self.values[self.current].append(text)

    def build(self, logger: Optional[logging.Logger]) -> Optional[Annotation]:
        if not self.values:
            return None
        kwargs: Dict[str, Any] = {}
        for name, lines in self.values.items():
            text = "\n".join(lines).strip()
            if name == DESCRIPTION:
                kwargs[name] = text
            elif name == HIDDEN:
                flag = _parse_flag(text)
                if flag is None:
                    _debug(logger, "Ignoring malformed hidden value", text)
                    continue
                kwargs[name] = flag
            elif text:
                kwargs[name] = text
        if not kwargs:
            return None
        return Annotation(**kwargs)


class _State:
    def __init__(self) -> None:
        self.positional = _Block()
        self.explicit: Optional[_Block] = None

    @property
    def active(self) -> _Block:
        return self.explicit if self.explicit is not None else self.positional


def parse_annotations(
    source: str,
    values: Any,
    *,
    directives: DirectiveSet = DEFAULT_DIRECTIVES,
    logger: Optional[logging.Logger] = None,
) -> Dict[str, Annotation]:
    """Return the annotations found in ``source`` keyed by key-path.

    ``values`` is the parsed form of ``source``; annotations naming paths
    that do not exist in it are dropped. Explicit ``key.path --`` blocks win
    over positional ones; otherwise the first block for a path wins.
    """

    if source.startswith(_BOM):
        source = source[1:]
    known_paths = set(iter_key_paths(values))
    key_lines, content_lines = locate_keys(source, logger=logger)

    positional: Dict[str, Annotation] = {}
    explicit: Dict[str, Annotation] = {}
    state = _State()

    def flush_explicit() -> None:
        block = state.explicit
        state.explicit = None
        if block is None or block.explicit_path is None:
            return
        _store(explicit, block.explicit_path, block.build(logger), logger)

    def finish(line_number: Optional[int]) -> None:
        flush_explicit()
        block = state.positional
        state.positional = _Block()
        if line_number is None:
            return
        path = key_lines.get(line_number)
        if path is None:
            return
        _store(positional, path, block.build(logger), logger)

    for number, line in enumerate(_LINE_BREAK_RE.split(source)):
        if number in content_lines:
            finish(None)
            continue
        match = _COMMENT_RE.match(line)
        if match is None:
            finish(number if line.strip() else None)
            continue
        _consume_comment(
            match.group("body"),
            state,
            flush_explicit=flush_explicit,
            directives=directives,
            logger=logger,
        )
    finish(None)

    merged = dict(positional)
    merged.update(explicit)
    result: Dict[str, Annotation] = {}
    for path, annotation in merged.items():
        if path not in known_paths:
            _debug(logger, "Dropping annotation for unknown key", path)
            continue
        result[path] = annotation
    return result


def _consume_comment(
    body: str,
    state: _State,
    *,
    flush_explicit: Callable[[], None],
    directives: DirectiveSet,
    logger: Optional[logging.Logger],
) -> None:
    text = body[1:] if body.startswith(" ") else body
    text = text.rstrip()
    stripped = text.strip()

    match = _DESCRIPTION_RE.match(stripped)
    if match is not None:
        state.active.plain = False
        state.active.start(DESCRIPTION, match.group("value") or "")
        return

    match = _AT_DIRECTIVE_RE.match(stripped)
    if match is not None:
        state.active.plain = False
        name = directives.resolve(match.group("name"))
        if name is None:
            _debug(logger, "Skipping unknown directive", match.group("name"))
            state.active.stop()
            return
        state.active.start(name, match.group("value") or "")
        return

    match = _EXPLICIT_RE.match(stripped)
    if match is not None:
        # Blocks for unknown paths are collected too and dropped later.
        flush_explicit()
        state.explicit = _Block(explicit_path=match.group("path"))
        state.explicit.start(DESCRIPTION, match.group("value") or "")
        state.explicit.plain = False
        return

    block = state.active
    match = _PLAIN_DIRECTIVE_RE.match(stripped)
    if match is not None and block.plain:
        name = directives.resolve(match.group("name"))
        if name is not None:
            block.start(name, match.group("value"))
            return

    block.plain = False
    block.extend(text)


def locate_keys(
    source: str,
    *,
    logger: Optional[logging.Logger] = None,
) -> Tuple[Dict[int, str], Set[int]]:
    """Map source line numbers to the key-path that starts on them.

    Also returns the line numbers covered by multi-line scalars, whose
    contents must not be read as comments. Text that is not valid YAML
    yields empty results.
    """

    key_lines: Dict[int, str] = {}
    content_lines: Set[int] = set()
    loader = yaml.SafeLoader(source)
    try:
        root = loader.get_single_node()
        if root is not None:
            _index_node(loader, root, "", key_lines, content_lines, set())
    except yaml.YAMLError as exc:
        _debug(logger, "Values text could not be composed", str(exc))
        return {}, set()
    finally:
        loader.dispose()
    return key_lines, content_lines


def _index_node(
    loader: yaml.SafeLoader,
    node: yaml.Node,
    prefix: str,
    key_lines: Dict[int, str],
    content_lines: Set[int],
    active: Set[int],
) -> None:
    if isinstance(node, yaml.ScalarNode):
        first, last = node.start_mark.line, node.end_mark.line
        if node.end_mark.column == 0:
            # Block scalars end at the start of the following line.
            last -= 1
        if last > first:
            content_lines.update(range(first + 1, last + 1))
        return
    marker = id(node)
    if marker in active:
        return
    active.add(marker)
    if isinstance(node, yaml.MappingNode):
        for key_node, value_node in node.value:
            if key_node.tag == _MERGE_TAG:
                continue
            try:
                key = key_text(loader.construct_object(key_node, deep=True))
            except (yaml.YAMLError, TypeError):
                continue
            path = join_path(prefix, key)
            key_lines.setdefault(key_node.start_mark.line, path)
            _index_node(
                loader, value_node, path, key_lines, content_lines, active
            )
    elif isinstance(node, yaml.SequenceNode):
        for index, item in enumerate(node.value):
            path = join_path(prefix, index_key(index))
            key_lines.setdefault(item.start_mark.line, path)
            _index_node(loader, item, path, key_lines, content_lines, active)
    active.discard(marker)


def _store(
    target: Dict[str, Annotation],
    path: str,
    annotation: Optional[Annotation],
    logger: Optional[logging.Logger],
) -> None:
    if annotation is None:
        return
    if path in target:
        _debug(logger, "Ignoring repeated annotation block", path)
        return
    target[path] = annotation


def _parse_flag(text: str) -> Optional[bool]:
    lowered = text.strip().lower()
    if lowered in _TRUE_WORDS:
        return True
    if lowered in _FALSE_WORDS:
        return False
    return None


def _debug(
    logger: Optional[logging.Logger], message: str, detail: str
) -> None:
    if logger is not None:
        logger.debug(message, extra={"detail": detail})
