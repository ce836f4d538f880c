"""Parse, build, resolve and sort: values text in, document model out."""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from .annotations import DEFAULT_DIRECTIVES, DirectiveSet, parse_annotations
from .dependencies import Dependency, resolve_dependencies
from .model import DocumentModel
from .sorting import SortOrder, sort_model
from .values import build_entries, build_value_tree

__all__ = ["build_document"]


def build_document(
    values: Any,
    source: str,
    *,
    name: Optional[str] = None,
    dependencies: Sequence[Dependency] = (),
    sort_order: SortOrder = SortOrder.FILE,
    directives: DirectiveSet = DEFAULT_DIRECTIVES,
    logger: Optional[logging.Logger] = None,
) -> DocumentModel:
    """Build the document model for one package.

    ``values`` is the parsed configuration and ``source`` its verbatim text.
    The run is all-or-nothing: any error propagates and no partial model is
    returned.
    """

    nodes = build_value_tree(values)
    annotations = parse_annotations(
        source, values, directives=directives, logger=logger
    )
    model = DocumentModel(
        entries=build_entries(nodes, annotations),
        name=name,
    )
    if dependencies:
        model = resolve_dependencies(model, dependencies)
    return sort_model(model, sort_order)
