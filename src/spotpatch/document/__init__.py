"""Patch document models and parsing."""

from spotpatch.document.models import (
    Anchor,
    PatchDocument,
    PatchSpec,
    SourceKind,
    SourceSpec,
)
from spotpatch.document.parser import (
    detect_format,
    load_document,
    parse_document,
    parse_document_bytes,
    parse_source,
)
from spotpatch.document.template import STARTER_DOCUMENT

__all__ = [
    "Anchor",
    "PatchDocument",
    "PatchSpec",
    "SourceKind",
    "SourceSpec",
    "detect_format",
    "load_document",
    "parse_document",
    "parse_document_bytes",
    "parse_source",
    "STARTER_DOCUMENT",
]
