import base64
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Iterator, Optional, Tuple

from answerlens.pipeline.crop import CroppedImage


def _new_id() -> str:
    return uuid.uuid4().hex


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class HistoryEntry:
    """One successful submission. Never mutated after creation."""
    image: CroppedImage
    answer_text: str
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_now)

    def preview(self, max_chars: int = 120) -> str:
        if len(self.answer_text) <= max_chars:
            return self.answer_text
        return self.answer_text[:max_chars] + "..."

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "image": base64.b64encode(self.image.data).decode("ascii"),
            "answer_text": self.answer_text,
            "created_at": int(self.created_at.timestamp() * 1000),
        }


@dataclass(frozen=True)
class HistoryState:
    entries: Tuple[HistoryEntry, ...] = ()
    expanded_id: Optional[str] = None


class HistoryStore:
    """
    Append-only, most-recent-first log of submissions plus the id of the
    single expanded card. Every operation swaps in a new ``HistoryState``.
    """

    def __init__(self):
        self.state = HistoryState()

    def append(self, entry: HistoryEntry):
        self.state = replace(self.state, entries=(entry,) + self.state.entries)

    def toggle_expanded(self, entry_id: str):
        expanded = None if self.state.expanded_id == entry_id else entry_id
        self.state = replace(self.state, expanded_id=expanded)

    def is_expanded(self, entry_id: str) -> bool:
        return self.state.expanded_id == entry_id

    @property
    def expanded_id(self) -> Optional[str]:
        return self.state.expanded_id

    @property
    def entries(self) -> Tuple[HistoryEntry, ...]:
        return self.state.entries

    def __len__(self):
        return len(self.state.entries)

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(self.state.entries)

    def __getitem__(self, index) -> HistoryEntry:
        return self.state.entries[index]
