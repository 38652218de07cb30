"""
Pytest configuration and global fixtures.
"""
import asyncio

import cv2
import httpx
import numpy as np
import pytest

from answerlens.history import HistoryStore
from answerlens.pipeline.controller import CaptureController
from answerlens.pipeline.crop import Cropper
from answerlens.pipeline.submission import AnalysisClient, Success

ENDPOINT = "https://analysis.test/webhook/answer"


def make_image_bytes(width, height, color=(255, 255, 255), ext=".png"):
    """Encode a solid BGR image of the given size."""
    pixels = np.full((height, width, 3), color, dtype=np.uint8)
    ok, buf = cv2.imencode(ext, pixels)
    assert ok
    return buf.tobytes()


def decode_bytes(data):
    return cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_COLOR)


def mock_analysis_client(handler):
    """AnalysisClient whose HTTP traffic is answered by ``handler``."""
    transport = httpx.MockTransport(handler)
    return AnalysisClient(ENDPOINT, client=httpx.AsyncClient(transport=transport))


class GatedClient:
    """Stand-in analysis client whose answers are released by the test."""

    def __init__(self, result=None):
        self.result = result or Success("42 apples")
        self.gate = asyncio.Event()
        self.calls = 0

    async def submit(self, image):
        self.calls += 1
        await self.gate.wait()
        return self.result

    async def aclose(self):
        pass


@pytest.fixture
def raw_bytes():
    """1000x800 image used by the end-to-end scenarios."""
    return make_image_bytes(1000, 800)


@pytest.fixture
def history():
    return HistoryStore()


@pytest.fixture
def cropper():
    return Cropper()


@pytest.fixture
def make_controller(history, cropper):
    def _make(client):
        return CaptureController(client, cropper=cropper, history=history)
    return _make
