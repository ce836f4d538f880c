"""Document model builder: values plus annotations to an ordered tree."""

from __future__ import annotations

from .annotations import (
    DEFAULT_DIRECTIVES,
    Annotation,
    DirectiveSet,
    locate_keys,
    parse_annotations,
)
from .dependencies import (
    Dependency,
    DependencyCycle,
    merge_entries,
    resolve_dependencies,
)
from .model import DocumentBuildError, DocumentEntry, DocumentModel, NodeKind
from .pipeline import build_document
from .scalars import Scalar, ScalarKind
from .sorting import SortOrder, SortOrderError, natural_key, sort_model
from .values import ConfigNode, build_entries, build_value_tree

__all__ = [
    "Annotation",
    "ConfigNode",
    "DEFAULT_DIRECTIVES",
    "Dependency",
    "DependencyCycle",
    "DirectiveSet",
    "DocumentBuildError",
    "DocumentEntry",
    "DocumentModel",
    "NodeKind",
    "Scalar",
    "ScalarKind",
    "SortOrder",
    "SortOrderError",
    "build_document",
    "build_entries",
    "build_value_tree",
    "locate_keys",
    "merge_entries",
    "natural_key",
    "parse_annotations",
    "resolve_dependencies",
    "sort_model",
]
