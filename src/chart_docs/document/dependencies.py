"""Merge dependency document trees into their parent's tree."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence, Set, Tuple

from .model import DocumentBuildError, DocumentEntry, DocumentModel, NodeKind
from .paths import join_path

__all__ = [
    "Dependency",
    "DependencyCycle",
    "merge_entries",
    "resolve_dependencies",
]

_FILLED = {"{}": "{...}", "[]": "[...]"}


class DependencyCycle(DocumentBuildError):
    """Raised when a package ends up documented inside its own subtree."""

    def __init__(self, key_path: str, chain: Sequence[str] = ()) -> None:
        self.key_path = key_path
        self.chain = tuple(chain)
        message = f"Dependency cycle at '{key_path}'"
        if self.chain:
            message += ": " + " -> ".join(self.chain)
        super().__init__(message)


@dataclass(frozen=True)
class Dependency:
    """A child document mounted under ``mount`` in its parent.

    ``model`` may be ``None`` only when ``include`` is false; the mount key
    is then documented as a plain entry without the child's schema.
    """

    mount: str
    model: Optional[DocumentModel] = None
    include: bool = True


def resolve_dependencies(
    parent: DocumentModel, dependencies: Sequence[Dependency]
) -> DocumentModel:
    """Return ``parent`` with every included dependency spliced in.

    Where both trees define a path the parent's entry wins. Dependencies are
    applied in order, so an earlier dependency counts as parent content for
    a later one mounted at the same key.
    """

    entries = parent.entries
    lineage: Set[str] = set(parent.lineage)
    for dependency in dependencies:
        mount_keys = _split_mount(dependency.mount)
        if not dependency.include:
            entries = _graft(entries, mount_keys, "", ())
            continue
        if dependency.model is None:
            raise ValueError(
                f"Dependency '{dependency.mount}' is included but has no "
                "document model."
            )
        _check_cycle(parent, dependency)
        grafted = tuple(
            entry.rebased(dependency.mount)
            for entry in dependency.model.entries
        )
        entries = _graft(entries, mount_keys, "", grafted)
        if dependency.model.name is not None:
            lineage.add(dependency.model.name)
        lineage.update(dependency.model.lineage)
    return replace(parent, entries=entries, lineage=frozenset(lineage))


def merge_entries(
    primary: Tuple[DocumentEntry, ...],
    secondary: Tuple[DocumentEntry, ...],
) -> Tuple[DocumentEntry, ...]:
    """Merge two sibling groups; ``primary`` wins and keeps its order."""

    by_key: Dict[str, DocumentEntry] = {
        entry.key: entry for entry in secondary
    }
    merged: List[DocumentEntry] = []
    used: Set[str] = set()
    for entry in primary:
        other = by_key.get(entry.key)
        if other is None:
            merged.append(entry)
            continue
        used.add(entry.key)
        merged.append(_merge_entry(entry, other))
    merged.extend(entry for entry in secondary if entry.key not in used)
    return tuple(merged)


def _merge_entry(
    primary: DocumentEntry, secondary: DocumentEntry
) -> DocumentEntry:
    base = primary
    if not primary.documented:
        base = replace(
            primary,
            description=secondary.description,
            section=secondary.section,
            documented=secondary.documented,
        )
    if primary.kind is not secondary.kind or primary.kind is NodeKind.SCALAR:
        return base
    if not primary.children:
        return _adopt(base, secondary.children)
    # Only mappings merge key by key; a non-empty list replaces wholesale.
    if primary.kind is NodeKind.SEQUENCE:
        return base
    return base.with_children(
        merge_entries(primary.children, secondary.children)
    )


def _graft(
    entries: Tuple[DocumentEntry, ...],
    keys: Tuple[str, ...],
    prefix: str,
    grafted: Tuple[DocumentEntry, ...],
) -> Tuple[DocumentEntry, ...]:
    key, rest = keys[0], keys[1:]
    path = join_path(prefix, key)
    result: List[DocumentEntry] = []
    found = False
    for entry in entries:
        if entry.key != key:
            result.append(entry)
            continue
        found = True
        if entry.kind is not NodeKind.MAPPING:
            # The parent pinned a non-mapping value here; it wins.
            result.append(entry)
        elif rest:
            result.append(
                _adopt(entry, _graft(entry.children, rest, path, grafted))
            )
        else:
            result.append(_adopt(entry, merge_entries(entry.children, grafted)))
    if not found:
        children = _graft((), rest, path, grafted) if rest else grafted
        result.append(
            DocumentEntry(
                key=key,
                path=path,
                kind=NodeKind.MAPPING,
                type="object",
                default="{...}" if children else "{}",
                children=children,
            )
        )
    return tuple(result)


def _adopt(
    entry: DocumentEntry, children: Tuple[DocumentEntry, ...]
) -> DocumentEntry:
    if children and not entry.children and not entry.default_override:
        placeholder = _FILLED.get(entry.default)
        if placeholder is not None:
            entry = replace(entry, default=placeholder)
    return entry.with_children(children)


def _check_cycle(parent: DocumentModel, dependency: Dependency) -> None:
    child = dependency.model
    assert child is not None
    if child.name is not None and child.name in child.lineage:
        raise DependencyCycle(dependency.mount, chain=(child.name, child.name))
    if parent.name is None:
        return
    if child.name == parent.name or parent.name in child.lineage:
        raise DependencyCycle(
            dependency.mount,
            chain=(parent.name, child.name or dependency.mount, parent.name),
        )


def _split_mount(mount: str) -> Tuple[str, ...]:
    keys = tuple(part.strip() for part in mount.split("."))
    if not keys or any(not key or "[" in key for key in keys):
        raise DocumentBuildError(f"Invalid dependency mount key '{mount}'.")
    return keys
