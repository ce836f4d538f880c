"""Sibling ordering strategies for document trees."""

from __future__ import annotations

import re
from enum import Enum
from typing import Tuple, Union

from .model import DocumentEntry, DocumentModel

__all__ = [
    "SortOrder",
    "SortOrderError",
    "natural_key",
    "sort_entries",
    "sort_model",
]

_DIGITS_RE = re.compile(r"(\d+)")


class SortOrderError(ValueError):
    """Raised for an unknown sort order name."""


class SortOrder(Enum):
    """Supported orderings for sibling entries."""

    FILE = "file"
    ALPHANUM = "alphanum"

    @classmethod
    def from_value(cls, value: Union[str, "SortOrder"]) -> "SortOrder":
        if isinstance(value, SortOrder):
            return value
        normalized = value.strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        expected = ", ".join(member.value for member in cls)
        raise SortOrderError(
            f"Unknown sort order '{value}'. Expected one of: {expected}."
        )


def natural_key(key: str) -> Tuple[Union[str, int], ...]:
    """Split ``key`` into text and number runs; ``[2]`` sorts before ``[10]``.

    ``re.split`` with a capturing group puts text at even positions and digit
    runs at odd ones, so tuples of two keys always compare like with like.
    """

    parts = _DIGITS_RE.split(key)
    return tuple(
        int(part) if index % 2 else part for index, part in enumerate(parts)
    )


def sort_entries(
    entries: Tuple[DocumentEntry, ...], order: SortOrder
) -> Tuple[DocumentEntry, ...]:
    """Reorder each sibling group independently, recursing into children."""

    if order is SortOrder.FILE:
        return entries
    ordered = sorted(entries, key=lambda entry: natural_key(entry.key))
    return tuple(
        entry.with_children(sort_entries(entry.children, order))
        if entry.children
        else entry
        for entry in ordered
    )


def sort_model(model: DocumentModel, order: SortOrder) -> DocumentModel:
    """Return ``model`` with siblings ordered by ``order``.

    ``SortOrder.FILE`` keeps declaration order and returns ``model`` itself.
    """

    if order is SortOrder.FILE:
        return model
    return model.with_entries(sort_entries(model.entries, order))
