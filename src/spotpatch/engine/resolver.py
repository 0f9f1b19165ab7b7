"""Source resolution: turn a SourceSpec into bytes.

Terminal kinds (bytes, text, file, url) are read directly. Nested kinds
(patch-file, patch-url) load another patch document and compile it with a
fresh ledger; the compiled output is the resolved payload.

Cycle handling:
- Each nested target has a resolution key (absolute path or normalized URL)
- The key is checked against the active ResolutionChain before anything is
  fetched; a repeat raises CycleError
- The nested compile runs with the extended chain, which is dropped when it
  returns, so only ancestors of a compile can trigger a cycle
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from spotpatch.config import Settings
from spotpatch.document.models import PatchDocument, SourceKind, SourceSpec
from spotpatch.document.parser import detect_format, parse_document_bytes
from spotpatch.engine.chain import ResolutionChain
from spotpatch.engine.fetch import fetch_url, normalize_url, read_file
from spotpatch.errors import EncodingError

if TYPE_CHECKING:
    import httpx

logger = logging.getLogger(__name__)

FILE_KEY_PREFIX = "file:"


def local_path(value: str, base_dir: Path | None = None) -> Path:
    """Interpret a document path, relative paths against base_dir (or CWD)."""
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = (base_dir or Path.cwd()) / path
    return path


def file_key(path: Path) -> str:
    """Resolution key for a document on disk."""
    return FILE_KEY_PREFIX + str(path.resolve())


class SourceResolver:
    """Resolves sources to bytes, compiling nested documents on demand."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        transport: "httpx.BaseTransport | None" = None,
    ):
        """Initialize resolver.

        Args:
            settings: Runtime settings (defaults used if not provided)
            transport: httpx transport override for all fetches
        """
        self.settings = settings or Settings()
        self._transport = transport

    def resolve(
        self,
        spec: SourceSpec,
        chain: ResolutionChain | None = None,
        base_dir: Path | None = None,
    ) -> bytes:
        """Resolve a source to bytes.

        Args:
            spec: Source to resolve
            chain: Nested documents active on the current call path
            base_dir: Directory relative paths are resolved against

        Returns:
            The source's bytes (compiled output for nested kinds)

        Raises:
            CompileError: Any of its subclasses; nothing is retried
        """
        chain = chain if chain is not None else ResolutionChain()
        kind = spec.kind

        if kind is SourceKind.BYTES:
            return spec.data
        if kind is SourceKind.TEXT:
            return self._encode_text(spec.text)
        if kind is SourceKind.FILE:
            return read_file(local_path(spec.file, base_dir))
        if kind is SourceKind.URL:
            return self.fetch(spec.url)
        return self._resolve_nested(spec, chain, base_dir)

    def fetch(self, url: str) -> bytes:
        return fetch_url(
            url,
            timeout=self.settings.http_timeout,
            user_agent=self.settings.user_agent,
            transport=self._transport,
        )

    @staticmethod
    def _encode_text(text: str) -> bytes:
        try:
            return text.encode("utf-8")
        except UnicodeEncodeError as e:
            raise EncodingError(
                f"text cannot be encoded as UTF-8: {e.reason}",
                target=f"text position {e.start}",
            ) from e

    def resolution_key(self, spec: SourceSpec, base_dir: Path | None = None) -> str:
        """Key identifying a nested document target."""
        if spec.kind is SourceKind.NESTED_FILE:
            return file_key(local_path(spec.patch_file, base_dir))
        if spec.kind is SourceKind.NESTED_URL:
            return normalize_url(spec.patch_url)
        raise ValueError(f"{spec.kind.value} sources have no resolution key")

    def load_nested(
        self, spec: SourceSpec, base_dir: Path | None = None
    ) -> tuple[PatchDocument, Path | None]:
        """Load the document a nested source points at.

        Returns:
            (document, base directory for the document's own relative paths)
        """
        if spec.kind is SourceKind.NESTED_FILE:
            path = local_path(spec.patch_file, base_dir)
            data = read_file(path)
            document = parse_document_bytes(
                data, fmt=detect_format(path), origin=str(path)
            )
            return document, path.parent

        data = self.fetch(spec.patch_url)
        document = parse_document_bytes(
            data, fmt=detect_format(spec.patch_url), origin=spec.patch_url
        )
        return document, base_dir

    def _resolve_nested(
        self, spec: SourceSpec, chain: ResolutionChain, base_dir: Path | None
    ) -> bytes:
        key = self.resolution_key(spec, base_dir)
        nested_chain = chain.descend(key)
        logger.debug(f"Descending into {key} (depth {nested_chain.depth})")

        document, nested_base = self.load_nested(spec, base_dir)

        from spotpatch.engine.driver import PatchCompiler

        # Only the outermost compile uses a thread pool
        compiler = PatchCompiler(self, self.settings.with_overrides(max_workers=1))
        return compiler.compile_document(
            document, chain=nested_chain, base_dir=nested_base
        )
