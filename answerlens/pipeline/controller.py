import logging
from dataclasses import replace
from typing import Optional

from transitions import MachineError

from answerlens.errors import CaptureError, NoCropSelected, StaleResult
from answerlens.fsm import CaptureFSM, CaptureSession, CaptureSessionState, session_view
from answerlens.history import HistoryEntry, HistoryStore
from answerlens.pipeline.crop import Cropper, RawImage
from answerlens.pipeline.geometry import UNSET, CropRect, Size, Space
from answerlens.pipeline.submission import PENDING, AnalysisClient, Failure, SubmissionResult, Success


class CaptureController:
    """
    Orchestrates one capture at a time:
    - Loads the raw image and tracks the crop widget
    - Exports the confirmed crop at native resolution
    - Submits it to the analysis service
    - Records successful answers in history
    """

    def __init__(
        self,
        client: AnalysisClient,
        cropper: Cropper = None,
        history: HistoryStore = None,
        callbacks: dict = None,
    ):
        self.log = logging.getLogger("CaptureController")

        # --- Core components ---
        self.client = client
        self.cropper = cropper or Cropper()
        self.history = history if history is not None else HistoryStore()

        # --- FSM ---
        self.fsm = CaptureFSM(callbacks=self._fsm_callbacks(callbacks))

    # ----------------------------------------------------------------------
    # FSM CALLBACKS
    # ----------------------------------------------------------------------

    def _fsm_callbacks(self, user_callbacks):
        """Merge internal callbacks with user-provided ones."""
        cb = user_callbacks.copy() if user_callbacks else {}

        cb.update(
            {
                "on_enter_idle": self._on_enter_idle,
                "on_enter_cropping": self._on_enter_cropping,
                "on_enter_cropped": self._on_enter_cropped,
                "on_enter_submitting": self._on_enter_submitting,
                "on_enter_done": self._on_enter_done,
            }
        )
        return cb

    def _on_enter_idle(self):
        self.log.info("Capture discarded, waiting for a new image")

    def _on_enter_cropping(self):
        raw = self.session.raw
        self.log.info(f"Cropping {raw.width}x{raw.height} image (capture {self.session.capture_id})")

    def _on_enter_cropped(self):
        image = self.session.cropped
        self.log.info(f"Crop confirmed: {image.width}x{image.height}")

    def _on_enter_submitting(self):
        self.log.info(f"Submitting capture {self.session.capture_id}")

    def _on_enter_done(self):
        result = self.session.result
        if isinstance(result, Success):
            self.log.info("Analysis finished successfully")
        else:
            self.log.warning(f"Analysis failed: {result.reason}")

    # ----------------------------------------------------------------------
    # STATE ACCESS
    # ----------------------------------------------------------------------

    @property
    def state(self) -> str:
        return self.fsm.state

    @property
    def session(self) -> CaptureSession:
        return self.fsm.session

    def view(self) -> CaptureSessionState:
        return session_view(self.fsm.state, self.fsm.session)

    def _require(self, *states):
        if self.fsm.state not in states:
            raise MachineError(f"Action not available in state '{self.fsm.state}'")

    # ----------------------------------------------------------------------
    # PUBLIC API
    # ----------------------------------------------------------------------

    def load_image(self, data: bytes):
        """Start a new capture from an encoded image, abandoning any current one."""
        raw = RawImage.from_bytes(data)

        self.reset()
        self.fsm.session = CaptureSession(raw=raw)
        self.fsm.load()

    def render(self, width: float, height: float):
        """The displayed image now has this rendered size."""
        self._require("cropping")
        display = Size(width, height)
        session = self.session

        if session.draft is not None:
            draft = self.cropper.rescale(session.draft, display)
        else:
            draft = self.cropper.default_crop(display)

        selection = session.selection
        if selection is not UNSET:
            selection = self.cropper.rescale(selection, display)

        self.fsm.adjust()
        self.fsm.session = replace(session, display=display, draft=draft, selection=selection)

    def adjust_crop(self, rect: CropRect):
        """Widget is dragging: the live rectangle changed."""
        self._require("cropping")
        rect = self._fit_to_display(rect)
        self.fsm.adjust()
        self.fsm.session = replace(self.session, display=rect.bounds, draft=rect)

    def complete_crop(self, rect: CropRect):
        """Widget finished a drag: this rectangle is the selection."""
        self._require("cropping")
        rect = self._fit_to_display(rect)
        self.fsm.adjust()
        self.fsm.session = replace(self.session, display=rect.bounds, draft=rect, selection=rect)

    def _fit_to_display(self, rect: CropRect) -> CropRect:
        if rect.space is not Space.DISPLAY:
            raise ValueError("Crop widget must report display-space rectangles")
        display = self.session.display
        if display is not None and rect.bounds != display:
            self.log.debug(f"Rescaling rectangle from {rect.bounds} to current display {display}")
            return self.cropper.rescale(rect, display)
        return rect.clamp()

    def confirm_crop(self):
        """
        Export the selected region. On InvalidRegion or an image codec error the
        session stays in cropping and the error propagates.
        """
        self._require("cropping")
        session = self.session
        if session.selection is UNSET:
            raise NoCropSelected()

        native = self.cropper.to_native(session.selection, session.raw.size)
        try:
            cropped = self.cropper.export(session.raw, native)
        except CaptureError as e:
            self.log.warning(f"Crop export failed: {e}")
            raise

        self.fsm.session = replace(session, cropped=cropped, result=None)
        self.fsm.confirm()

    def recrop(self):
        """Go back to cropping the same raw image."""
        session = self.session
        draft = session.selection or session.draft
        self.fsm.session = replace(session, draft=draft, cropped=None, result=None)
        try:
            self.fsm.recrop()
        except MachineError:
            self.fsm.session = session
            raise

    async def submit(self) -> Optional[SubmissionResult]:
        """
        Send the cropped image and apply the outcome to this capture.
        Returns None when the capture was replaced before the answer came back.
        """
        if not self.fsm.submit():
            raise MachineError("No cropped image to submit")

        self.fsm.session = replace(self.session, result=PENDING)
        capture_id = self.session.capture_id
        image = self.session.cropped

        try:
            result = await self.client.submit(image)
        except Exception as e:
            self.log.error(f"Analysis client raised {type(e).__name__}: {e}")
            result = Failure("Could not reach analysis service", "transport")

        try:
            self._resolve(capture_id, result)
        except StaleResult as e:
            self.log.debug(f"Dropping stale result: {e}")
            return None
        return result

    def _resolve(self, capture_id: str, result: SubmissionResult):
        if not self.fsm.is_current(capture_id) or self.fsm.state != "submitting":
            raise StaleResult(capture_id, self.session.capture_id)

        session = self.session
        if isinstance(result, Success):
            # history first, so the shown answer always has its entry
            self.history.append(HistoryEntry(image=session.cropped, answer_text=result.text))

        self.fsm.session = replace(session, result=result)
        self.fsm.resolve()

    def reset(self):
        """Discard the current capture; any in-flight submission becomes stale."""
        self.fsm.session = CaptureSession()
        if self.fsm.state != "idle":
            self.fsm.reset()
