"""
Unit tests for answerlens.view.app.
"""
import asyncio

import httpx
import pytest

from answerlens.config import Settings
from answerlens.history import HistoryStore
from answerlens.pipeline.controller import CaptureController
from answerlens.pipeline.geometry import Size, display_rect
from answerlens.view import AppController
from answerlens.view.app import (
    CROPPED_MESSAGE,
    EMPTY_HISTORY_MESSAGE,
    FAILURE_MESSAGE,
    PROCESSING_MESSAGE,
)
from tests.conftest import GatedClient, mock_analysis_client


def make_app(handler=None, client=None):
    client = client or mock_analysis_client(handler or (lambda request: httpx.Response(200, text="42 apples")))
    return AppController(CaptureController(client, history=HistoryStore()), preview_chars=10)


def crop(app, raw_bytes):
    app.load_image(raw_bytes)
    app.render(500, 400)
    rect = display_rect(50, 50, 200, 150, Size(500, 400))
    app.adjust_crop(rect)
    app.complete_crop(rect)
    app.confirm_crop()


class TestCaptureScreen:
    """Tests for the capture screen view model."""

    def test_idle(self):
        screen = make_app().capture_screen()

        assert screen.state == "idle"
        assert screen.message is None
        assert screen.preview is None
        assert not screen.can_analyze

    def test_cropped(self, raw_bytes):
        app = make_app()
        crop(app, raw_bytes)

        screen = app.capture_screen()
        assert screen.message == CROPPED_MESSAGE
        assert screen.preview.size == (400, 300)
        assert screen.can_analyze
        assert screen.analyze_label == "Analyze Image"

    def test_success_shows_answer(self, raw_bytes):
        app = make_app()
        crop(app, raw_bytes)

        asyncio.run(app.analyze())

        assert app.status_message == "42 apples"
        assert len(app.history) == 1

    def test_failure_shows_generic_message(self, raw_bytes):
        app = make_app(lambda request: httpx.Response(500))
        crop(app, raw_bytes)

        asyncio.run(app.analyze())

        assert app.status_message == FAILURE_MESSAGE
        assert len(app.history) == 0

    def test_processing_message_while_in_flight(self, raw_bytes):
        async def scenario():
            client = GatedClient()
            app = make_app(client=client)
            crop(app, raw_bytes)
            task = asyncio.ensure_future(app.analyze())
            await asyncio.sleep(0)

            screen = app.capture_screen()
            client.gate.set()
            await task
            return screen

        screen = asyncio.run(scenario())

        assert screen.message == PROCESSING_MESSAGE
        assert not screen.can_analyze
        assert screen.analyze_label == "Processing..."

    def test_local_error_is_reported_and_cleared(self, raw_bytes):
        app = make_app()
        app.load_image(raw_bytes)
        app.render(500, 400)

        app.confirm_crop()
        assert "No crop region selected" in app.status_message
        assert app.capture.state == "cropping"

        app.complete_crop(display_rect(0, 0, 100, 100, Size(500, 400)))
        assert app.status_message is None

    def test_bad_file_is_reported(self):
        app = make_app()

        app.load_image(b"garbage")

        assert app.status_message
        assert app.capture.state == "idle"

    def test_analyze_without_crop_is_reported(self):
        app = make_app()

        asyncio.run(app.analyze())

        assert app.status_message
        assert app.capture.state == "idle"


class TestTabs:
    """Tests for AppController.switch_tab."""

    def test_history_tab_resets_capture(self, raw_bytes):
        app = make_app()
        crop(app, raw_bytes)

        app.switch_tab("history")

        assert app.active_tab == "history"
        assert app.capture.state == "idle"

    def test_capture_tab_keeps_session(self, raw_bytes):
        app = make_app()
        crop(app, raw_bytes)

        app.switch_tab("capture")

        assert app.capture.state == "cropped"

    def test_unknown_tab(self):
        with pytest.raises(ValueError):
            make_app().switch_tab("settings")


class TestHistoryScreen:
    """Tests for the history screen view model."""

    def test_empty_placeholder(self):
        screen = make_app().history_screen()

        assert screen.cards == ()
        assert screen.placeholder == EMPTY_HISTORY_MESSAGE

    def test_cards_collapse_and_expand(self, raw_bytes):
        app = make_app(lambda request: httpx.Response(200, text="a rather long answer"))
        crop(app, raw_bytes)
        asyncio.run(app.analyze())

        card = app.history_screen().cards[0]
        assert not card.expanded
        assert card.text == "a rather l..."

        app.toggle_history(card.entry.id)
        card = app.history_screen().cards[0]
        assert card.expanded
        assert card.text == "a rather long answer"
        assert card.timestamp

        app.toggle_history(card.entry.id)
        assert not app.history_screen().cards[0].expanded


class TestFromSettings:
    """Tests for AppController.from_settings."""

    def test_wires_settings(self):
        settings = Settings(endpoint_url="http://example.test/hook", jpeg_quality=50, preview_chars=20)

        app = AppController.from_settings(settings)

        assert app.capture.client.endpoint_url == "http://example.test/hook"
        assert app.capture.cropper.jpeg_quality == 50
        assert app.preview_chars == 20
