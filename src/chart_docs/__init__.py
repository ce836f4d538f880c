"""Generate Markdown reference docs from annotated chart values."""

from .document import DocumentModel, SortOrder, build_document

__all__ = ["DocumentModel", "SortOrder", "build_document"]
