"""Key-path helpers shared by the parser and the tree builder."""

from __future__ import annotations

from typing import Any, Iterator, Mapping

from .scalars import Scalar

__all__ = [
    "index_key",
    "iter_key_paths",
    "join_path",
    "key_text",
]


def join_path(prefix: str, key: str) -> str:
    """Append ``key`` to ``prefix``; sequence keys (``[i]``) attach directly."""

    if not prefix:
        return key
    if key.startswith("["):
        return f"{prefix}{key}"
    return f"{prefix}.{key}"


def index_key(index: int) -> str:
    return f"[{index}]"


def key_text(key: Any) -> str:
    """Text used for a mapping key in key-paths (``True`` -> ``true``)."""

    return Scalar.from_value(key).text()


def iter_key_paths(values: Any, prefix: str = "") -> Iterator[str]:
    """Yield every key-path of ``values`` in declaration order."""

    active: set[int] = set()

    def walk(node: Any, base: str) -> Iterator[str]:
        if not isinstance(node, (Mapping, list, tuple)):
            return
        marker = id(node)
        if marker in active:
            return
        active.add(marker)
        if isinstance(node, Mapping):
            items = ((key_text(k), v) for k, v in node.items())
        else:
            items = ((index_key(i), v) for i, v in enumerate(node))
        for key, child in items:
            path = join_path(base, key)
            yield path
            yield from walk(child, path)
        active.discard(marker)

    yield from walk(values, prefix)
