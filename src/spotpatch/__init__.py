"""spotpatch - insert bytes into a source at offsets that never shift.

Every patch names its spot in the coordinates of the original source, so
patches can be written independently of one another and applied in one pass.
"""

from spotpatch.config import Settings
from spotpatch.document import (
    Anchor,
    PatchDocument,
    PatchSpec,
    SourceKind,
    SourceSpec,
    load_document,
    parse_document,
)
from spotpatch.engine import (
    CompileResult,
    CompileState,
    PatchCompiler,
    PositionalLedger,
    ResolutionChain,
    SourceResolver,
)
from spotpatch.errors import (
    CompileError,
    ConfigError,
    CycleError,
    EncodingError,
    NetworkError,
    OutOfRangeError,
    SourceIOError,
)
from spotpatch.run import compile, compile_path, compile_text, compile_url

__version__ = "0.1.0"

__all__ = [
    "Settings",
    "Anchor",
    "PatchDocument",
    "PatchSpec",
    "SourceKind",
    "SourceSpec",
    "load_document",
    "parse_document",
    "CompileResult",
    "CompileState",
    "PatchCompiler",
    "PositionalLedger",
    "ResolutionChain",
    "SourceResolver",
    "CompileError",
    "ConfigError",
    "CycleError",
    "EncodingError",
    "NetworkError",
    "OutOfRangeError",
    "SourceIOError",
    "compile",
    "compile_path",
    "compile_text",
    "compile_url",
]
