"""Immutable document tree handed to renderers."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .paths import join_path

__all__ = [
    "DocumentBuildError",
    "DocumentEntry",
    "DocumentModel",
    "NodeKind",
]


class DocumentBuildError(RuntimeError):
    """Raised when a values structure cannot be turned into a document."""


class NodeKind(Enum):
    """Structural kind of a configuration key."""

    SCALAR = "scalar"
    MAPPING = "mapping"
    SEQUENCE = "sequence"


@dataclass(frozen=True)
class DocumentEntry:
    """One documented key together with its resolved annotation."""

    key: str
    path: str
    kind: NodeKind
    type: str
    default: str
    description: str = ""
    section: Optional[str] = None
    hidden: bool = False
    documented: bool = False
    default_override: bool = False
    children: Tuple["DocumentEntry", ...] = ()

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def child(self, key: str) -> Optional["DocumentEntry"]:
        for candidate in self.children:
            if candidate.key == key:
                return candidate
        return None

    def with_children(
        self, children: Tuple["DocumentEntry", ...]
    ) -> "DocumentEntry":
        return replace(self, children=tuple(children))

    def rebased(self, prefix: str) -> "DocumentEntry":
        """Return a copy re-rooted under ``prefix``, descendants included."""

        return replace(
            self,
            path=join_path(prefix, self.path),
            children=tuple(child.rebased(prefix) for child in self.children),
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "key": self.key,
            "path": self.path,
            "kind": self.kind.value,
            "type": self.type,
            "default": self.default,
            "description": self.description,
        }
        if self.section:
            payload["section"] = self.section
        visible = [child for child in self.children if not child.hidden]
        if visible:
            payload["children"] = [child.to_dict() for child in visible]
        return payload


@dataclass(frozen=True)
class DocumentModel:
    """Ordered tree of entries describing one package's values.

    ``name`` identifies the package and ``lineage`` records every package
    whose entries were merged in; both are used to reject dependency cycles.
    Hidden entries are kept in ``entries`` but skipped by every view.
    """

    entries: Tuple[DocumentEntry, ...] = ()
    name: Optional[str] = None
    lineage: frozenset[str] = field(default_factory=frozenset)

    def with_entries(
        self, entries: Tuple[DocumentEntry, ...]
    ) -> "DocumentModel":
        return replace(self, entries=tuple(entries))

    def iter_entries(self) -> Iterator[DocumentEntry]:
        """Walk visible entries in preorder."""

        stack: List[DocumentEntry] = list(reversed(self.entries))
        while stack:
            entry = stack.pop()
            if entry.hidden:
                continue
            yield entry
            stack.extend(reversed(entry.children))

    def rows(self) -> Tuple[DocumentEntry, ...]:
        """Table rows in document order.

        Every visible leaf is a row; a branch is a row only when it carries a
        description.
        """

        return tuple(
            entry
            for entry in self.iter_entries()
            if entry.is_leaf or entry.description
        )

    def find(self, path: str) -> Optional[DocumentEntry]:
        """Look up an entry by key-path, hidden entries included."""

        stack: List[DocumentEntry] = list(self.entries)
        while stack:
            entry = stack.pop()
            if entry.path == path:
                return entry
            if path.startswith(entry.path):
                stack.extend(entry.children)
        return None

    def sections(
        self,
    ) -> Tuple[Tuple[Optional[str], Tuple[DocumentEntry, ...]], ...]:
        """Group rows by section label.

        Labelled sections come first in order of first appearance; rows
        without a section are collected last under ``None``.
        """

        grouped: Dict[Optional[str], List[DocumentEntry]] = {}
        unlabelled: List[DocumentEntry] = []
        for row in self.rows():
            if row.section:
                grouped.setdefault(row.section, []).append(row)
            else:
                unlabelled.append(row)
        result = [(name, tuple(rows)) for name, rows in grouped.items()]
        if unlabelled:
            result.append((None, tuple(unlabelled)))
        return tuple(result)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "lineage": sorted(self.lineage),
            "entries": [
                entry.to_dict() for entry in self.entries if not entry.hidden
            ],
        }
