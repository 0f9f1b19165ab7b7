"""Error kinds raised while compiling a patch document.

Every error is fatal to the compile in progress. Nested compiles raise the
same kinds, so a failure deep inside a ``patch-file`` surfaces unchanged to
the outermost caller.
"""

from __future__ import annotations


class CompileError(Exception):
    """Base class for all compile failures.

    Attributes:
        target: What triggered the failure (path, URL, spot...), if known
        patch_trail: Patch indexes from the outermost compile inward, filled
            in by the driver as the error propagates; empty for failures in
            the outermost root source
    """

    kind = "CompileError"

    def __init__(self, message: str, target: str | None = None):
        self.message = message
        self.target = target
        self.patch_trail: list[int] = []
        super().__init__(message)

    @property
    def patch_index(self) -> int | None:
        """Index of the outermost patch that failed, if any."""
        return self.patch_trail[0] if self.patch_trail else None

    def __str__(self) -> str:
        parts = []
        if self.patch_trail:
            parts.append("patch " + " > ".join(f"#{i}" for i in self.patch_trail))
        if self.target:
            parts.append(self.target)
        prefix = f"[{', '.join(parts)}] " if parts else ""
        return f"{prefix}{self.message}"


class ConfigError(CompileError):
    """Malformed document or source table."""

    kind = "ConfigError"


class SourceIOError(CompileError):
    """A file could not be read."""

    kind = "IOError"


class NetworkError(CompileError):
    """A fetch failed or returned a non-success status."""

    kind = "NetworkError"

    def __init__(
        self,
        message: str,
        target: str | None = None,
        status_code: int | None = None,
    ):
        self.status_code = status_code
        super().__init__(message, target)


class CycleError(CompileError):
    """A nested document is already being compiled further up the chain."""

    kind = "CycleError"

    def __init__(self, key: str, chain: tuple[str, ...]):
        self.chain = chain
        path = " -> ".join((*chain, key))
        super().__init__(f"resolution cycle detected: {path}", target=key)


class OutOfRangeError(CompileError):
    """A patch spot lies outside ``0..=len(root)``."""

    kind = "OutOfRangeError"

    def __init__(self, spot: int, length: int):
        self.spot = spot
        self.length = length
        super().__init__(
            f"spot {spot} is outside the root source (valid spots: 0..{length})",
            target=f"spot={spot}",
        )


class EncodingError(CompileError):
    """Text payload cannot be encoded as UTF-8."""

    kind = "EncodingError"
