from __future__ import annotations

import logging

from .errors import StructuralError

__all__ = ["IdAllocator"]

LOG = logging.getLogger(__name__)


class IdAllocator:
    """Hand out unique, human-readable identifiers for one document build.

    The first request for a base name returns it unchanged; later requests
    return ``base_1``, ``base_2``... skipping any candidate that was already
    issued under another base.
    """

    def __init__(self) -> None:
        self._counters: dict[str, int] = {}
        self._issued: set[str] = set()

    def __contains__(self, value: object) -> bool:
        return value in self._issued

    def __len__(self) -> int:
        return len(self._issued)

    def allocate(self, base: str) -> str:
        if not isinstance(base, str) or not base:
            raise StructuralError(f"Cannot allocate an identifier from {base!r}")

        occurrences = self._counters.get(base)
        if occurrences is None and base not in self._issued:
            self._counters[base] = 1
            self._issued.add(base)
            return base

        n = occurrences or 1
        for _ in range(len(self._issued) + 1):
            candidate = f"{base}_{n}"
            n += 1
            if candidate not in self._issued:
                self._counters[base] = n
                self._issued.add(candidate)
                if occurrences is None:
                    LOG.debug("Identifier '%s' already taken; using '%s'", base, candidate)
                return candidate
        raise StructuralError(f"Identifier collision loop while disambiguating '{base}'")
