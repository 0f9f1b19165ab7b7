"""Resolution chain used to reject recursive document cycles."""

from __future__ import annotations

from dataclasses import dataclass

from spotpatch.errors import CycleError


@dataclass(frozen=True)
class ResolutionChain:
    """Keys of the nested documents being compiled on the current call path.

    Immutable: ``descend`` returns a new, longer chain and leaves this one
    untouched, so a key disappears again as soon as the nested compile that
    added it returns, and sibling compiles never see each other's keys.
    """

    keys: tuple[str, ...] = ()

    def __contains__(self, key: object) -> bool:
        return key in self.keys

    def __len__(self) -> int:
        return len(self.keys)

    @property
    def depth(self) -> int:
        return len(self.keys)

    def descend(self, key: str) -> "ResolutionChain":
        """Return the chain extended by ``key``.

        Raises:
            CycleError: If key is already on the chain
        """
        if key in self.keys:
            raise CycleError(key, self.keys)
        return ResolutionChain(self.keys + (key,))
