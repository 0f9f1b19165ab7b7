"""Pydantic models for patch documents.

A document names one root source and an ordered list of insert patches.
Every ``spot`` is a byte offset into the *root* source as it was before any
patch was applied.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)

# Validation context flag: only document keys (aliases) are accepted
DOCUMENT_KEYS = "document_keys"


class Anchor(str, Enum):
    """Which original byte a payload stays adjacent to."""

    PRE = "pre"  # the byte following the spot
    POST = "post"  # the byte preceding the spot


class SourceKind(str, Enum):
    """Source variants, valued by their document key."""

    BYTES = "bytes"
    TEXT = "text"
    FILE = "file"
    URL = "url"
    NESTED_FILE = "patch-file"
    NESTED_URL = "patch-url"


# Model field name for each kind
_KIND_FIELDS = {
    SourceKind.BYTES: "data",
    SourceKind.TEXT: "text",
    SourceKind.FILE: "file",
    SourceKind.URL: "url",
    SourceKind.NESTED_FILE: "patch_file",
    SourceKind.NESTED_URL: "patch_url",
}

_DESCRIBE_LIMIT = 40


class _DocumentModel(BaseModel):
    """Base for document models.

    Python callers may use field names or document keys. When validated with
    ``context={DOCUMENT_KEYS: True}`` (as the parser does), a field name that
    differs from its document key is rejected.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _document_keys_only(cls, data, info: ValidationInfo):
        if not (info.context and info.context.get(DOCUMENT_KEYS)):
            return data
        if not isinstance(data, dict):
            return data
        for name, field in cls.model_fields.items():
            if field.alias and field.alias != name and name in data:
                raise ValueError(
                    f"unknown key '{name}'; did you mean '{field.alias}'?"
                )
        return data


class SourceSpec(_DocumentModel):
    """Where a run of bytes comes from. Exactly one field is set.

    ``patch_file`` and ``patch_url`` point at another patch document that is
    compiled recursively; the other four kinds are terminal.
    """

    data: Optional[bytes] = Field(None, alias="bytes")
    text: Optional[str] = None
    file: Optional[str] = None
    url: Optional[str] = None
    patch_file: Optional[str] = Field(None, alias="patch-file")
    patch_url: Optional[str] = Field(None, alias="patch-url")

    @field_validator("data", mode="before")
    @classmethod
    def _coerce_byte_array(cls, value):
        if value is None or isinstance(value, (bytes, bytearray)):
            return value
        if not isinstance(value, (list, tuple)):
            raise ValueError("bytes must be an array of integers")
        for position, item in enumerate(value):
            if isinstance(item, bool) or not isinstance(item, int):
                raise ValueError(f"bytes[{position}] is not an integer")
            if not 0 <= item <= 255:
                raise ValueError(f"bytes[{position}] = {item} is outside 0..255")
        return bytes(value)

    @model_validator(mode="after")
    def _exactly_one_kind(self):
        populated = [
            kind.value
            for kind, name in _KIND_FIELDS.items()
            if getattr(self, name) is not None
        ]
        if len(populated) != 1:
            expected = ", ".join(kind.value for kind in SourceKind)
            found = ", ".join(populated) if populated else "none"
            raise ValueError(
                f"a source needs exactly one of [{expected}]; found {found}"
            )
        return self

    @property
    def kind(self) -> SourceKind:
        for kind, name in _KIND_FIELDS.items():
            if getattr(self, name) is not None:
                return kind
        raise AssertionError("validated SourceSpec has no populated kind")

    @property
    def value(self) -> bytes | str:
        return getattr(self, _KIND_FIELDS[self.kind])

    @property
    def is_nested(self) -> bool:
        """True if this source is another document compiled recursively."""
        return self.kind in (SourceKind.NESTED_FILE, SourceKind.NESTED_URL)

    def describe(self) -> str:
        """Short human-readable form for logs and error messages."""
        if self.kind is SourceKind.BYTES:
            return f"bytes[{len(self.data)}]"
        value = self.value
        if len(value) > _DESCRIBE_LIMIT:
            value = value[: _DESCRIBE_LIMIT - 3] + "..."
        return f"{self.kind.value} {value!r}"


class PatchSpec(_DocumentModel):
    """One insertion: put ``payload`` at ``spot``, anchored per ``anchor``."""

    action: str = Field("insert", alias="do")
    anchor: Anchor = Field(alias="way")
    spot: int = Field(ge=0, strict=True)
    payload: SourceSpec = Field(alias="source")

    @field_validator("action", mode="before")
    @classmethod
    def _insert_only(cls, value):
        if not isinstance(value, str):
            raise ValueError("'do' must be a string")
        action = value.lower()
        if action == "remove":
            raise ValueError("'remove' patches are not supported; only 'insert'")
        if action != "insert":
            raise ValueError(f"unknown action {value!r}; expected 'insert'")
        return action

    @field_validator("anchor", mode="before")
    @classmethod
    def _normalize_anchor(cls, value):
        if isinstance(value, str):
            return value.lower()
        return value


class PatchDocument(_DocumentModel):
    """A parsed patch document: root source plus ordered patches."""

    source: SourceSpec
    patches: Tuple[PatchSpec, ...] = Field(default=(), alias="patch")
