"""Patch document parsing.

Documents are TOML by default; ``.yaml``/``.yml`` names are parsed as YAML.
Structural and schema problems are reported as ConfigError so a bad document
never reaches the resolver.
"""

from __future__ import annotations

import tomllib
from pathlib import Path, PurePosixPath
from typing import Any
from urllib.parse import urlsplit

import yaml
from pydantic import ValidationError

from spotpatch.document.models import DOCUMENT_KEYS, PatchDocument, SourceSpec
from spotpatch.errors import ConfigError, SourceIOError

FORMATS = ("toml", "yaml")
YAML_SUFFIXES = {".yaml", ".yml"}


def detect_format(name: str | Path | None) -> str:
    """Pick a document format from a file name or URL.

    Args:
        name: Path or URL of the document (None for stdin)

    Returns:
        "yaml" for .yaml/.yml names, otherwise "toml"
    """
    if name is None:
        return "toml"
    text = str(name)
    if "://" in text:
        text = urlsplit(text).path
    suffix = PurePosixPath(text.replace("\\", "/")).suffix.lower()
    return "yaml" if suffix in YAML_SUFFIXES else "toml"


def _format_validation_error(error: ValidationError) -> str:
    """Flatten pydantic errors into one line per problem."""
    lines = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "<document>"
        message = item["msg"].removeprefix("Value error, ")
        lines.append(f"{location}: {message}")
    return "; ".join(lines)


def _load_mapping(text: str, fmt: str, origin: str | None) -> dict[str, Any]:
    if fmt not in FORMATS:
        raise ConfigError(f"unsupported document format {fmt!r}", target=origin)

    try:
        if fmt == "toml":
            raw = tomllib.loads(text)
        else:
            raw = yaml.safe_load(text)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"invalid TOML: {e}", target=origin) from e
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML: {e}", target=origin) from e

    if not isinstance(raw, dict):
        raise ConfigError("document root must be a table/mapping", target=origin)
    return raw


def parse_document(
    text: str, fmt: str | None = None, origin: str | None = None
) -> PatchDocument:
    """Parse a patch document.

    Args:
        text: Document contents
        fmt: "toml" or "yaml" (default: detected from origin, else toml)
        origin: Path or URL the text came from, used in error messages

    Returns:
        Validated PatchDocument

    Raises:
        ConfigError: On syntax or schema problems
    """
    fmt = fmt or detect_format(origin)
    raw = _load_mapping(text, fmt, origin)
    try:
        return PatchDocument.model_validate(raw, context={DOCUMENT_KEYS: True})
    except ValidationError as e:
        raise ConfigError(_format_validation_error(e), target=origin) from e


def parse_document_bytes(
    data: bytes, fmt: str | None = None, origin: str | None = None
) -> PatchDocument:
    """Decode UTF-8 bytes and parse them as a patch document."""
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ConfigError("document is not valid UTF-8", target=origin) from e
    return parse_document(text, fmt=fmt, origin=origin)


def load_document(path: str | Path, fmt: str | None = None) -> PatchDocument:
    """Read and parse a patch document from disk."""
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise SourceIOError(f"cannot read document: {e.strerror or e}", target=str(path)) from e
    return parse_document_bytes(data, fmt=fmt, origin=str(path))


def parse_source(mapping: Any) -> SourceSpec:
    """Validate a single source table (e.g. ``{"text": "hi"}``)."""
    try:
        return SourceSpec.model_validate(mapping, context={DOCUMENT_KEYS: True})
    except ValidationError as e:
        raise ConfigError(_format_validation_error(e)) from e
