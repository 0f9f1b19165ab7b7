"""Top-level compile entry points.

These wrap PatchCompiler for the three places a document can come from:
in-memory text, a file on disk and a URL. File and URL documents seed the
resolution chain with their own key, so a document that nests itself is
rejected on the first revisit.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Sequence

from spotpatch.config import Settings
from spotpatch.document.models import PatchSpec, SourceSpec
from spotpatch.document.parser import (
    detect_format,
    load_document,
    parse_document,
    parse_document_bytes,
)
from spotpatch.engine.chain import ResolutionChain
from spotpatch.engine.driver import CompileResult, PatchCompiler
from spotpatch.engine.fetch import normalize_url
from spotpatch.engine.resolver import SourceResolver, file_key

if TYPE_CHECKING:
    import httpx


def _compiler(
    settings: Settings | None, transport: "httpx.BaseTransport | None"
) -> PatchCompiler:
    return PatchCompiler(SourceResolver(settings, transport=transport))


def compile(
    root: SourceSpec,
    patches: Sequence[PatchSpec] = (),
    *,
    settings: Settings | None = None,
    base_dir: Path | None = None,
    transport: "httpx.BaseTransport | None" = None,
) -> bytes:
    """Apply ``patches`` to ``root`` and return the output bytes.

    Raises:
        CompileError: Any failure; no partial output is returned
    """
    compiler = _compiler(settings, transport)
    return compiler.compile(root, patches, base_dir=base_dir)


def compile_text(
    text: str | bytes,
    *,
    fmt: str = "toml",
    settings: Settings | None = None,
    base_dir: Path | None = None,
    transport: "httpx.BaseTransport | None" = None,
) -> CompileResult:
    """Parse and compile a document held in memory (e.g. read from stdin)."""
    if isinstance(text, bytes):
        document = parse_document_bytes(text, fmt=fmt, origin="<stdin>")
    else:
        document = parse_document(text, fmt=fmt, origin="<stdin>")
    compiler = _compiler(settings, transport)
    return compiler.run(document.source, document.patches, base_dir=base_dir)


def compile_path(
    path: str | Path,
    *,
    fmt: str | None = None,
    settings: Settings | None = None,
    transport: "httpx.BaseTransport | None" = None,
) -> CompileResult:
    """Load and compile a document from disk.

    Relative paths inside the document resolve against its directory.
    """
    path = Path(path).resolve()
    document = load_document(path, fmt=fmt)
    chain = ResolutionChain().descend(file_key(path))
    compiler = _compiler(settings, transport)
    return compiler.run(
        document.source, document.patches, chain=chain, base_dir=path.parent
    )


def compile_url(
    url: str,
    *,
    fmt: str | None = None,
    settings: Settings | None = None,
    base_dir: Path | None = None,
    transport: "httpx.BaseTransport | None" = None,
) -> CompileResult:
    """Fetch and compile a document from a URL."""
    compiler = _compiler(settings, transport)
    data = compiler.resolver.fetch(url)
    document = parse_document_bytes(data, fmt=fmt or detect_format(url), origin=url)
    chain = ResolutionChain().descend(normalize_url(url))
    return compiler.run(
        document.source, document.patches, chain=chain, base_dir=base_dir
    )
