"""Patch execution driver.

One compile:
1. Resolve the root source (failure is fatal)
2. Build a PositionalLedger sized to the root
3. For each patch, in list order: resolve its payload, insert it
4. Render the ledger against the root bytes

Payloads may be resolved on a thread pool (Settings.max_workers > 1), but
they are always inserted in list order, so the output does not depend on
which fetch finishes first. Any error aborts the whole compile; there is no
partial output.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from functools import partial
from pathlib import Path
from typing import Callable, Sequence

from spotpatch.config import Settings
from spotpatch.document.models import PatchDocument, PatchSpec, SourceSpec
from spotpatch.engine.chain import ResolutionChain
from spotpatch.engine.ledger import PositionalLedger
from spotpatch.engine.resolver import SourceResolver
from spotpatch.errors import CompileError

logger = logging.getLogger(__name__)


class CompileState(str, Enum):
    """Compile lifecycle. RENDERED and FAILED are terminal."""

    PENDING = "pending"
    RESOLVING_ROOT = "resolving_root"
    APPLYING_PATCHES = "applying_patches"
    RENDERED = "rendered"
    FAILED = "failed"


@dataclass
class CompileResult:
    """Output of a successful compile plus bookkeeping for reporting."""

    output: bytes
    state: CompileState
    root_length: int
    patches_applied: int
    inserted_bytes: int
    depth: int = 0


class PatchCompiler:
    """Compiles a root source and patch list into output bytes."""

    def __init__(
        self,
        resolver: SourceResolver | None = None,
        settings: Settings | None = None,
    ):
        """Initialize compiler.

        Args:
            resolver: Source resolver (built from settings if not provided)
            settings: Runtime settings (resolver's settings if not provided)
        """
        if resolver is None:
            resolver = SourceResolver(settings)
        self.resolver = resolver
        self.settings = settings or resolver.settings
        self.state = CompileState.PENDING

    def compile(
        self,
        root: SourceSpec,
        patches: Sequence[PatchSpec] = (),
        *,
        chain: ResolutionChain | None = None,
        base_dir: Path | None = None,
    ) -> bytes:
        """Compile and return only the output bytes."""
        return self.run(root, patches, chain=chain, base_dir=base_dir).output

    def compile_document(
        self,
        document: PatchDocument,
        *,
        chain: ResolutionChain | None = None,
        base_dir: Path | None = None,
    ) -> bytes:
        """Compile a parsed patch document."""
        return self.compile(
            document.source, document.patches, chain=chain, base_dir=base_dir
        )

    def run(
        self,
        root: SourceSpec,
        patches: Sequence[PatchSpec] = (),
        *,
        chain: ResolutionChain | None = None,
        base_dir: Path | None = None,
    ) -> CompileResult:
        """Run one compile.

        Args:
            root: Root source; every patch spot refers to its bytes
            patches: Patches in application order
            chain: Nested documents active on the current call path
            base_dir: Directory relative file paths are resolved against

        Returns:
            CompileResult with the rendered output

        Raises:
            CompileError: On the first failure, annotated with the patch index
        """
        chain = chain if chain is not None else ResolutionChain()

        try:
            self.state = CompileState.RESOLVING_ROOT
            root_bytes = self.resolver.resolve(root, chain, base_dir)
            logger.debug(
                f"Root {root.describe()} resolved to {len(root_bytes)} bytes "
                f"(depth {chain.depth})"
            )

            ledger = PositionalLedger(len(root_bytes))

            self.state = CompileState.APPLYING_PATCHES
            self._apply_patches(ledger, patches, chain, base_dir)

            inserted = ledger.inserted_bytes
            output = ledger.render(root_bytes)
        except Exception:
            self.state = CompileState.FAILED
            raise

        self.state = CompileState.RENDERED
        logger.info(
            f"Compiled {len(patches)} patches into {len(output)} bytes "
            f"(root {len(root_bytes)} bytes, depth {chain.depth})"
        )
        return CompileResult(
            output=output,
            state=self.state,
            root_length=len(root_bytes),
            patches_applied=len(patches),
            inserted_bytes=inserted,
            depth=chain.depth,
        )

    def _apply_patches(
        self,
        ledger: PositionalLedger,
        patches: Sequence[PatchSpec],
        chain: ResolutionChain,
        base_dir: Path | None,
    ) -> None:
        workers = min(self.settings.max_workers, len(patches))
        executor = (
            ThreadPoolExecutor(max_workers=workers, thread_name_prefix="spotpatch")
            if workers > 1
            else None
        )

        try:
            loaders = self._payload_loaders(executor, patches, chain, base_dir)
            for index, (patch, load_payload) in enumerate(zip(patches, loaders)):
                try:
                    payload = load_payload()
                    ledger.insert(patch.spot, patch.anchor, payload)
                except CompileError as e:
                    e.patch_trail.insert(0, index)
                    raise
                logger.debug(
                    f"Patch #{index}: {patch.anchor.value} @ {patch.spot} "
                    f"<- {patch.payload.describe()} ({len(payload)} bytes)"
                )
        finally:
            if executor is not None:
                executor.shutdown(wait=True, cancel_futures=True)

    def _payload_loaders(
        self,
        executor: ThreadPoolExecutor | None,
        patches: Sequence[PatchSpec],
        chain: ResolutionChain,
        base_dir: Path | None,
    ) -> list[Callable[[], bytes]]:
        """One zero-argument callable per patch returning its payload."""
        if executor is None:
            return [
                partial(self.resolver.resolve, patch.payload, chain, base_dir)
                for patch in patches
            ]

        futures: list[Future[bytes]] = [
            executor.submit(self.resolver.resolve, patch.payload, chain, base_dir)
            for patch in patches
        ]
        return [future.result for future in futures]
