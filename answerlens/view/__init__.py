from .app import AppController, CaptureScreen, HistoryCard, HistoryScreen, ViewState

__all__ = ["AppController", "CaptureScreen", "HistoryCard", "HistoryScreen", "ViewState"]
