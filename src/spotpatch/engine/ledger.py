"""Positional ledger: insertions keyed by original-source offsets.

The root source is never spliced. Instead each gap between original bytes
collects the chunks inserted there, and the output is assembled once at the
end. Gap ``i`` sits between original byte ``i - 1`` and byte ``i``, so a
source of length ``n`` has gaps ``0..n``.

Ordering rules inside one gap:

- ``post`` chunks hug the byte on the left. Each new one is placed closest
  to that byte, i.e. at the front of ``post``.
- ``pre`` chunks hug the byte on the right. Each new one is placed closest
  to that byte, i.e. at the back of ``pre``.
- At render time a gap emits ``post`` (front to back), then ``pre``.

So ``post`` inserts at one spot render newest-first and ``pre`` inserts
render oldest-first, and neither direction can displace the other.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field

from spotpatch.document.models import Anchor
from spotpatch.errors import OutOfRangeError

logger = logging.getLogger(__name__)


@dataclass
class Gap:
    """Content inserted at one zero-width point of the root source."""

    post: deque[bytes] = field(default_factory=deque)
    pre: list[bytes] = field(default_factory=list)

    def chunks(self) -> list[bytes]:
        """Chunks in render order."""
        return [*self.post, *self.pre]

    def __len__(self) -> int:
        return sum(len(chunk) for chunk in self.post) + sum(
            len(chunk) for chunk in self.pre
        )


class PositionalLedger:
    """Accumulates insertions against a root source of fixed length.

    Gaps are created lazily; untouched gaps render as nothing. A ledger is
    rendered exactly once and is unusable afterwards.
    """

    def __init__(self, root_length: int):
        if root_length < 0:
            raise ValueError(f"root_length must be >= 0, got {root_length}")
        self._root_length = root_length
        self._gaps: dict[int, Gap] = {}
        self._insertions = 0
        self._rendered = False

    @property
    def root_length(self) -> int:
        return self._root_length

    @property
    def insertions(self) -> int:
        """Number of chunks inserted so far."""
        return self._insertions

    @property
    def inserted_bytes(self) -> int:
        return sum(len(gap) for gap in self._gaps.values())

    def gap(self, spot: int) -> Gap:
        """Return the gap at ``spot`` (an empty one if nothing was inserted)."""
        self._check_spot(spot)
        gap = self._gaps.get(spot)
        return gap if gap is not None else Gap()

    def _check_spot(self, spot: int) -> None:
        if not 0 <= spot <= self._root_length:
            raise OutOfRangeError(spot, self._root_length)

    def insert(self, spot: int, anchor: Anchor, payload: bytes) -> None:
        """Record ``payload`` at ``spot``.

        Raises:
            OutOfRangeError: If spot is not in ``0..root_length``
            RuntimeError: If the ledger was already rendered
        """
        if self._rendered:
            raise RuntimeError("ledger has already been rendered")
        self._check_spot(spot)

        gap = self._gaps.get(spot)
        if gap is None:
            gap = self._gaps[spot] = Gap()

        if anchor is Anchor.POST:
            gap.post.appendleft(payload)
        else:
            gap.pre.append(payload)
        self._insertions += 1

        logger.debug(
            f"Inserted {len(payload)} bytes at gap {spot} ({anchor.value})"
        )

    def render(self, root: bytes) -> bytes:
        """Assemble the output from the root bytes and all insertions.

        Equivalent to visiting every gap ``i`` in ``0..n`` and emitting its
        chunks followed by original byte ``i``, but copies untouched runs of
        the root as whole slices.
        """
        if self._rendered:
            raise RuntimeError("ledger has already been rendered")
        if len(root) != self._root_length:
            raise ValueError(
                f"ledger was built for {self._root_length} bytes, got {len(root)}"
            )
        self._rendered = True

        parts: list[bytes] = []
        previous = 0
        for spot in sorted(self._gaps):
            parts.append(root[previous:spot])
            parts.extend(self._gaps[spot].chunks())
            previous = spot
        parts.append(root[previous:])

        self._gaps.clear()
        return b"".join(parts)
