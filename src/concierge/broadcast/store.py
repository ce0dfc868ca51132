"""In-memory broadcast collection."""

from __future__ import annotations

from collections.abc import Iterator

from concierge.errors import DraftNotFoundError

from .models import BroadcastDraft, DraftStatus


class BroadcastStore:
    """Creation-ordered drafts keyed by id. Only the workflow writes here."""

    def __init__(self) -> None:
        self._drafts: dict[str, BroadcastDraft] = {}

    def add(self, draft: BroadcastDraft) -> BroadcastDraft:
        if draft.id in self._drafts:
            raise ValueError(f"duplicate broadcast id: {draft.id}")
        self._drafts[draft.id] = draft
        return draft

    def replace(self, draft: BroadcastDraft) -> BroadcastDraft:
        # dict assignment to an existing key keeps insertion order
        if draft.id not in self._drafts:
            raise DraftNotFoundError(draft.id)
        self._drafts[draft.id] = draft
        return draft

    def remove(self, draft_id: str) -> BroadcastDraft:
        try:
            return self._drafts.pop(draft_id)
        except KeyError:
            raise DraftNotFoundError(draft_id) from None

    def get(self, draft_id: str) -> BroadcastDraft:
        draft = self._drafts.get(draft_id)
        if draft is None:
            raise DraftNotFoundError(draft_id)
        return draft

    def find(self, draft_id: str) -> BroadcastDraft | None:
        return self._drafts.get(draft_id)

    def list(self, *statuses: DraftStatus) -> list[BroadcastDraft]:
        """Drafts in creation order, optionally limited to some statuses."""
        if not statuses:
            return list(self._drafts.values())
        wanted = set(statuses)
        return [draft for draft in self._drafts.values() if draft.status in wanted]

    def pending(self) -> list[BroadcastDraft]:
        return self.list(DraftStatus.DRAFT)

    def history(self) -> list[BroadcastDraft]:
        return [draft for draft in self._drafts.values() if draft.status is not DraftStatus.DRAFT]

    def __len__(self) -> int:
        return len(self._drafts)

    def __iter__(self) -> Iterator[BroadcastDraft]:
        return iter(list(self._drafts.values()))
