from .store import HistoryEntry, HistoryState, HistoryStore

__all__ = ["HistoryEntry", "HistoryState", "HistoryStore"]
