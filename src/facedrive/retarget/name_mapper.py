"""Name-based index mapping between two signal lists."""

from __future__ import annotations

from typing import Callable, MutableSequence, Optional, Sequence

UnmatchedCallback = Callable[[list[str]], None]


class NameMapper:
    """Copies values from a source signal layout into a destination layout.

    Pairs are found by exact name match (first occurrence in ``dest``).  Source
    names missing from ``dest`` are reported through ``on_unmatched_src``
    (sorted); destination names no source claims are reported through
    ``on_unmatched_dest`` (in destination order).  Each callback fires at most
    once, at construction, and only when there is something to report.
    """

    def __init__(
        self,
        src: Sequence[str],
        dest: Sequence[str],
        on_unmatched_src: Optional[UnmatchedCallback] = None,
        on_unmatched_dest: Optional[UnmatchedCallback] = None,
    ) -> None:
        self._expected_src_size = len(src)
        self._expected_dest_size = len(dest)

        dest_index: dict[str, int] = {}
        for j, name in enumerate(dest):
            dest_index.setdefault(name, j)

        pairs: list[tuple[int, int]] = []
        not_found: set[str] = set()
        claimed: set[int] = set()
        for i, name in enumerate(src):
            j = dest_index.get(name)
            if j is None:
                not_found.add(name)
            else:
                pairs.append((i, j))
                claimed.add(j)
        self._pairs = tuple(pairs)

        remainder: list[str] = []
        for j, name in enumerate(dest):
            if dest_index[name] not in claimed and name not in remainder:
                remainder.append(name)

        if not_found and on_unmatched_src is not None:
            on_unmatched_src(sorted(not_found))

        if remainder and on_unmatched_dest is not None:
            on_unmatched_dest(remainder)

    @property
    def pairs(self) -> tuple[tuple[int, int], ...]:
        """Recorded ``(src_index, dest_index)`` pairs."""
        return self._pairs

    def map(self, src: Sequence[float], dest: MutableSequence[float]) -> None:
        """Copy every paired source value into ``dest``; other entries are untouched."""
        if len(src) != self._expected_src_size:
            raise ValueError(
                f"Expected source to be of length {self._expected_src_size}, got {len(src)}"
            )
        if len(dest) != self._expected_dest_size:
            raise ValueError(
                f"Expected destination to be of length {self._expected_dest_size}, got {len(dest)}"
            )

        for i, j in self._pairs:
            dest[j] = src[i]
