"""In-memory conversation timeline."""

from __future__ import annotations

from collections.abc import Iterator

from .models import Turn


class ConversationStore:
    """Append-only, creation-ordered turn history for one session."""

    def __init__(self) -> None:
        self._turns: list[Turn] = []
        self._index: dict[str, Turn] = {}

    def append(self, turn: Turn) -> Turn:
        if turn.id in self._index:
            raise ValueError(f"duplicate turn id: {turn.id}")
        self._turns.append(turn)
        self._index[turn.id] = turn
        return turn

    def get(self, turn_id: str) -> Turn | None:
        return self._index.get(turn_id)

    def last(self) -> Turn | None:
        if not self._turns:
            return None
        return self._turns[-1]

    @property
    def turns(self) -> tuple[Turn, ...]:
        return tuple(self._turns)

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(tuple(self._turns))
