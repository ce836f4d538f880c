"""Build the configuration tree and attach annotations to it."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Set, Tuple

from .annotations import Annotation
from .model import DocumentBuildError, DocumentEntry, NodeKind
from .paths import index_key, join_path, key_text
from .scalars import Scalar

__all__ = [
    "ConfigNode",
    "build_entries",
    "build_value_tree",
    "render_default",
    "type_label",
]

_EMPTY_ANNOTATION = Annotation()


@dataclass(frozen=True)
class ConfigNode:
    """One key of the values tree, children in declaration order."""

    key: str
    path: str
    kind: NodeKind
    value: Optional[Scalar] = None
    children: Tuple["ConfigNode", ...] = ()


def build_value_tree(values: Any) -> Tuple[ConfigNode, ...]:
    """Convert parsed values into top-level :class:`ConfigNode` objects.

    ``values`` must be a mapping (``None`` counts as empty). Keys colliding
    once converted to text and self-referencing structures are rejected.
    """

    if values is None:
        return ()
    if not isinstance(values, Mapping):
        raise DocumentBuildError(
            "Values root must be a mapping, found {0}.".format(
                type(values).__name__
            )
        )
    return _build_children(values, "", set())


def _build_node(
    key: str, path: str, value: Any, active: Set[int]
) -> ConfigNode:
    if isinstance(value, Mapping):
        kind = NodeKind.MAPPING
    elif isinstance(value, (list, tuple)):
        kind = NodeKind.SEQUENCE
    else:
        return ConfigNode(
            key=key,
            path=path,
            kind=NodeKind.SCALAR,
            value=Scalar.from_value(value),
        )
    return ConfigNode(
        key=key,
        path=path,
        kind=kind,
        children=_build_children(value, path, active),
    )


def _build_children(
    container: Any, prefix: str, active: Set[int]
) -> Tuple[ConfigNode, ...]:
    marker = id(container)
    if marker in active:
        raise DocumentBuildError(
            f"Values contain a recursive reference at '{prefix or '<root>'}'."
        )
    active.add(marker)

    if isinstance(container, Mapping):
        items = [(key_text(key), value) for key, value in container.items()]
    else:
        items = [(index_key(i), value) for i, value in enumerate(container)]

    seen: Set[str] = set()
    children: List[ConfigNode] = []
    for key, value in items:
        if key in seen:
            raise DocumentBuildError(
                f"Duplicate key '{join_path(prefix, key)}' in values."
            )
        seen.add(key)
        children.append(
            _build_node(key, join_path(prefix, key), value, active)
        )

    active.discard(marker)
    return tuple(children)


def type_label(node: ConfigNode) -> str:
    """Inferred type label of ``node``."""

    if node.kind is NodeKind.MAPPING:
        return "object"
    if node.kind is NodeKind.SEQUENCE:
        return "list"
    assert node.value is not None
    return node.value.label


def render_default(node: ConfigNode) -> str:
    """Compact default notation: scalars in full, composites abbreviated."""

    if node.kind is NodeKind.MAPPING:
        return "{...}" if node.children else "{}"
    if node.kind is NodeKind.SEQUENCE:
        return "[...]" if node.children else "[]"
    assert node.value is not None
    return node.value.render()


def build_entries(
    nodes: Tuple[ConfigNode, ...],
    annotations: Mapping[str, Annotation],
) -> Tuple[DocumentEntry, ...]:
    """Attach ``annotations`` to ``nodes`` producing one entry per node."""

    return tuple(_entry_for(node, annotations) for node in nodes)


def _entry_for(
    node: ConfigNode, annotations: Mapping[str, Annotation]
) -> DocumentEntry:
    annotation = annotations.get(node.path)
    resolved = annotation or _EMPTY_ANNOTATION
    return DocumentEntry(
        key=node.key,
        path=node.path,
        kind=node.kind,
        type=resolved.type or type_label(node),
        default=(
            resolved.default
            if resolved.default is not None
            else render_default(node)
        ),
        description=resolved.description,
        section=resolved.section,
        hidden=resolved.hidden,
        documented=annotation is not None,
        default_override=resolved.default is not None,
        children=build_entries(node.children, annotations),
    )

