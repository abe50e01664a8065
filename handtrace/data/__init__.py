"""Sensor input records and recorded-session loading."""

from .frame_data import FrameInput
from .recording import RecordingLoader, save_recording

__all__ = [
    "FrameInput",
    "RecordingLoader",
    "save_recording",
]
