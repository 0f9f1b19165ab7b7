"""Compile engine: positional ledger, source resolver and patch driver."""

from spotpatch.engine.chain import ResolutionChain
from spotpatch.engine.driver import CompileResult, CompileState, PatchCompiler
from spotpatch.engine.fetch import fetch_url, normalize_url, read_file
from spotpatch.engine.ledger import Gap, PositionalLedger
from spotpatch.engine.resolver import SourceResolver

__all__ = [
    "ResolutionChain",
    "CompileResult",
    "CompileState",
    "PatchCompiler",
    "fetch_url",
    "normalize_url",
    "read_file",
    "Gap",
    "PositionalLedger",
    "SourceResolver",
]
