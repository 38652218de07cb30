"""
Unit tests for answerlens.history.store.
"""
import base64
from datetime import datetime, timezone

import pytest

from answerlens.history import HistoryEntry, HistoryStore
from answerlens.pipeline.crop import CroppedImage

IMAGE = CroppedImage(data=b"jpeg-bytes", width=2, height=2)


def entry(text="answer", **kwargs):
    return HistoryEntry(image=IMAGE, answer_text=text, **kwargs)


class TestAppend:
    """Tests for HistoryStore.append."""

    def test_most_recent_first(self, history):
        first, second = entry("first"), entry("second")

        history.append(first)
        history.append(second)

        assert list(history) == [second, first]
        assert history[0] is second

    def test_no_dedup(self, history):
        same = entry("same")

        history.append(same)
        history.append(same)

        assert len(history) == 2

    def test_previous_state_is_untouched(self, history):
        before = history.state

        history.append(entry())

        assert before.entries == ()
        assert len(history.state.entries) == 1


class TestToggleExpanded:
    """Tests for HistoryStore.toggle_expanded."""

    def test_toggle_twice_collapses(self, history):
        a = entry("a")
        history.append(a)

        history.toggle_expanded(a.id)
        assert history.is_expanded(a.id)

        history.toggle_expanded(a.id)
        assert history.expanded_id is None

    def test_only_one_expanded(self, history):
        a, b = entry("a"), entry("b")
        history.append(a)
        history.append(b)

        history.toggle_expanded(a.id)
        history.toggle_expanded(b.id)

        assert history.is_expanded(b.id)
        assert not history.is_expanded(a.id)


class TestHistoryEntry:
    """Tests for HistoryEntry helpers."""

    def test_ids_are_unique(self):
        assert entry().id != entry().id

    def test_is_immutable(self):
        e = entry()

        with pytest.raises(AttributeError):
            e.answer_text = "changed"

    def test_preview_truncates(self):
        e = entry("x" * 130)

        assert e.preview(120) == "x" * 120 + "..."
        assert entry("short").preview(120) == "short"

    def test_to_dict(self):
        created = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        e = entry("42 apples", id="abc", created_at=created)

        data = e.to_dict()

        assert data == {
            "id": "abc",
            "image": base64.b64encode(b"jpeg-bytes").decode("ascii"),
            "answer_text": "42 apples",
            "created_at": int(created.timestamp() * 1000),
        }
