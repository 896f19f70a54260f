"""
Greedy packing of strings into length-bounded batches.

Discord embed fields hold at most 1024 characters, while the list of games in
an announcement or of players who reacted to it is open-ended. ``fold`` splits
such a list into consecutive batches whose total length stays within a budget,
so each batch can be joined and rendered as one field.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List

from premade_creator.datatypes.errors import ItemTooLarge


@dataclass
class FoldState:
    """
    Running state of a fold.

    Attributes:
        budget: Maximum total length of the strings in one batch.
        batches: Batches produced so far; the last one is still open.
        current_count: Total length of the open batch.
        total_count: Total length of every string pushed.
    """

    budget: int
    batches: List[List[str]] = field(default_factory=list)
    current_count: int = 0
    total_count: int = 0

    def __post_init__(self) -> None:
        if self.budget <= 0:
            raise ValueError(f"Batch budget must be positive, got {self.budget}")

    def push(self, item: str) -> "FoldState":
        """Add ``item`` to the open batch, or open a new batch if it does not fit."""
        size = len(item)
        if size > self.budget:
            raise ItemTooLarge(item, self.budget)

        if not self.batches or self.current_count + size > self.budget:
            self.batches.append([])
            self.current_count = 0

        self.batches[-1].append(item)
        self.current_count += size
        self.total_count += size
        return self

    def extract(self) -> List[List[str]]:
        return self.batches


def fold(budget: int, items: Iterable[str]) -> List[List[str]]:
    """
    Pack ``items`` in order into batches of at most ``budget`` characters.

    Every item is checked before packing starts, so a call either returns the
    complete result or raises without producing anything.

    Example:
        >>> fold(5, ["ab", "cd", "ef", "ghij"])
        [['ab', 'cd'], ['ef'], ['ghij']]

    Raises:
        ItemTooLarge: If any single item is longer than ``budget``.
        ValueError: If ``budget`` is not positive.
    """
    state = FoldState(budget)
    pending = list(items)
    for item in pending:
        if len(item) > budget:
            raise ItemTooLarge(item, budget)

    for item in pending:
        state.push(item)
    return state.extract()


def fold_joined(budget: int, items: Iterable[str], separator: str) -> List[str]:
    """Fold ``items`` and join each batch with ``separator``.

    The budget counts item lengths only, so callers leave headroom below the
    hard field limit for the separators.
    """
    return [separator.join(batch) for batch in fold(budget, items)]
