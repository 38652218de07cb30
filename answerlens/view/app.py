import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional, Tuple

from transitions import MachineError

from answerlens.config import Settings
from answerlens.errors import CaptureError
from answerlens.history import HistoryEntry, HistoryStore
from answerlens.pipeline.controller import CaptureController
from answerlens.pipeline.crop import Cropper, CroppedImage
from answerlens.pipeline.geometry import CropRect
from answerlens.pipeline.submission import AnalysisClient, Failure, Success

CAPTURE_TAB = "capture"
HISTORY_TAB = "history"
TABS = (CAPTURE_TAB, HISTORY_TAB)

CROPPED_MESSAGE = "Image cropped successfully. Ready for AI processing."
PROCESSING_MESSAGE = "Processing image..."
FAILURE_MESSAGE = "Something went wrong. Please try again."
EMPTY_HISTORY_MESSAGE = "No saved history yet."


@dataclass(frozen=True)
class ViewState:
    active_tab: str = CAPTURE_TAB
    notice: Optional[str] = None  # locally recovered error, shown until the next action succeeds


@dataclass(frozen=True)
class CaptureScreen:
    state: str
    message: Optional[str]
    preview: Optional[CroppedImage]
    can_confirm: bool
    can_analyze: bool
    analyze_label: str


@dataclass(frozen=True)
class HistoryCard:
    entry: HistoryEntry
    expanded: bool
    text: str
    timestamp: str


@dataclass(frozen=True)
class HistoryScreen:
    cards: Tuple[HistoryCard, ...]
    placeholder: Optional[str]


class AppController:
    """
    Two-screen front end (capture, history). Routes user actions to the
    capture controller and derives immutable view models for rendering.
    """

    def __init__(self, capture: CaptureController, preview_chars: int = 120):
        self.log = logging.getLogger("AppController")
        self.capture = capture
        self.preview_chars = preview_chars
        self.view_state = ViewState()

    @classmethod
    def from_settings(cls, settings: Settings, client: AnalysisClient = None) -> "AppController":
        client = client or AnalysisClient(
            settings.endpoint_url,
            timeout=settings.timeout,
            field_name=settings.upload_field,
            filename=settings.upload_filename,
        )
        cropper = Cropper(jpeg_quality=settings.jpeg_quality, default_fraction=settings.default_crop_fraction)
        return cls(CaptureController(client, cropper=cropper, history=HistoryStore()), settings.preview_chars)

    @property
    def history(self) -> HistoryStore:
        return self.capture.history

    @property
    def active_tab(self) -> str:
        return self.view_state.active_tab

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------

    def switch_tab(self, tab: str):
        if tab not in TABS:
            raise ValueError(f"Unknown tab '{tab}'")
        self.view_state = ViewState(active_tab=tab)
        if tab == HISTORY_TAB:
            self.capture.reset()

    def load_image(self, data: bytes):
        self._guarded(self.capture.load_image, data)

    def render(self, width: float, height: float):
        self._guarded(self.capture.render, width, height)

    def adjust_crop(self, rect: CropRect):
        self._guarded(self.capture.adjust_crop, rect)

    def complete_crop(self, rect: CropRect):
        self._guarded(self.capture.complete_crop, rect)

    def confirm_crop(self):
        self._guarded(self.capture.confirm_crop)

    def recrop(self):
        self._guarded(self.capture.recrop)

    def new_capture(self):
        self.capture.reset()
        self._set_notice(None)

    async def analyze(self):
        try:
            await self.capture.submit()
        except MachineError as e:
            self.log.warning(f"Analyze ignored: {e.value}")
            self._set_notice(str(e.value))
            return
        self._set_notice(None)

    def toggle_history(self, entry_id: str):
        self.history.toggle_expanded(entry_id)

    def _guarded(self, action, *args):
        try:
            action(*args)
        except CaptureError as e:
            self.log.warning(f"{type(e).__name__}: {e}")
            self._set_notice(str(e))
            return
        except MachineError as e:
            self.log.warning(f"Action rejected: {e.value}")
            self._set_notice(str(e.value))
            return
        self._set_notice(None)

    def _set_notice(self, notice: Optional[str]):
        self.view_state = replace(self.view_state, notice=notice)

    # ------------------------------------------------------------------
    # View models
    # ------------------------------------------------------------------

    @property
    def status_message(self) -> Optional[str]:
        if self.view_state.notice:
            return self.view_state.notice

        state = self.capture.state
        session = self.capture.session
        if state == "cropped":
            return CROPPED_MESSAGE
        if state == "submitting":
            return PROCESSING_MESSAGE
        if state == "done":
            if isinstance(session.result, Success):
                return session.result.text
            if isinstance(session.result, Failure):
                return FAILURE_MESSAGE
        return None

    def capture_screen(self) -> CaptureScreen:
        state = self.capture.state
        submitting = state == "submitting"
        return CaptureScreen(
            state=state,
            message=self.status_message,
            preview=self.capture.session.cropped if state in ("cropped", "submitting", "done") else None,
            can_confirm=state == "cropping",
            can_analyze=state in ("cropped", "done"),
            analyze_label="Processing..." if submitting else "Analyze Image",
        )

    def history_screen(self) -> HistoryScreen:
        cards = []
        for entry in self.history:
            expanded = self.history.is_expanded(entry.id)
            cards.append(
                HistoryCard(
                    entry=entry,
                    expanded=expanded,
                    text=entry.answer_text if expanded else entry.preview(self.preview_chars),
                    timestamp=format_timestamp(entry.created_at),
                )
            )
        return HistoryScreen(
            cards=tuple(cards),
            placeholder=None if cards else EMPTY_HISTORY_MESSAGE,
        )


def format_timestamp(moment: datetime) -> str:
    return moment.astimezone().strftime("%Y-%m-%d %H:%M:%S")
