# VRPlayer Frame Provider

"""
Capability contract between the detector and whatever decodes the video.

The frame analyzer only needs native dimensions, a duration, a way to load
metadata, a way to seek, and RGBA pixels of the current frame. Completion is
signalled through one-shot event callbacks so a provider can decode on
another thread, or inside a media framework, without the analyzer polling.
"""

import asyncio
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

import cv2
import numpy as np

METADATA_READY = "metadata-ready"
LOAD_ERROR = "load-error"
SEEK_COMPLETED = "seek-completed"

EVENTS = (METADATA_READY, LOAD_ERROR, SEEK_COMPLETED)


class FrameProviderError(RuntimeError):
    """Raised by a provider that cannot load, seek or deliver pixels."""


class FrameProvider(ABC):
    """
    Base class for frame sources.

    Subclasses implement the dimension/duration properties and the three
    actions; event bookkeeping lives here.
    """

    def __init__(self):
        self._listeners: Dict[str, List[Callable]] = {event: [] for event in EVENTS}

    # =========================================================================
    # Events
    # =========================================================================

    def subscribe(self, event: str, callback: Callable) -> None:
        if event not in self._listeners:
            raise ValueError(f"Unknown frame provider event: {event}")
        self._listeners[event].append(callback)

    def unsubscribe(self, event: str, callback: Callable) -> None:
        listeners = self._listeners.get(event, [])
        if callback in listeners:
            listeners.remove(callback)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

    def _emit(self, event: str, *args) -> None:
        # Copy: listeners detach themselves while being called
        for callback in list(self._listeners.get(event, [])):
            callback(*args)

    def _emit_soon(self, event: str, *args) -> None:
        """Deliver on the next loop iteration when a loop is running."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._emit(event, *args)
        else:
            loop.call_soon(self._emit, event, *args)

    # =========================================================================
    # Capability surface
    # =========================================================================

    @property
    @abstractmethod
    def native_width(self) -> int:
        """Decoded frame width in pixels, 0 until metadata is known."""

    @property
    @abstractmethod
    def native_height(self) -> int:
        """Decoded frame height in pixels, 0 until metadata is known."""

    @property
    @abstractmethod
    def duration_seconds(self) -> float:
        """Media duration in seconds."""

    @property
    def has_dimensions(self) -> bool:
        return bool(self.native_width) and bool(self.native_height)

    @abstractmethod
    def request_load(self) -> None:
        """Start loading metadata; ends with METADATA_READY or LOAD_ERROR."""

    @abstractmethod
    def seek_to(self, time_seconds: float) -> None:
        """Start seeking; ends with SEEK_COMPLETED."""

    @abstractmethod
    def read_current_frame_pixels(self) -> np.ndarray:
        """RGBA uint8 array of shape (native_height, native_width, 4)."""


def to_rgba(frame: np.ndarray, channel_order: str = "rgb") -> np.ndarray:
    """
    Normalise a decoded image to RGBA uint8.

    Args:
        frame: (H, W), (H, W, 3) or (H, W, 4) array.
        channel_order: "rgb" or "bgr" for 3/4-channel input.

    16-bit input (PNG/TIFF read unchanged) is scaled down to 8 bits; other
    non-uint8 input is clipped to [0, 255].
    """
    if frame.dtype == np.uint16:
        frame = (frame >> 8).astype(np.uint8)
    elif frame.dtype != np.uint8:
        frame = np.clip(frame, 0, 255).astype(np.uint8)

    if frame.ndim == 2:
        return cv2.cvtColor(frame, cv2.COLOR_GRAY2RGBA)

    channels = frame.shape[2]
    bgr = channel_order.lower() == "bgr"
    if channels == 3:
        return cv2.cvtColor(frame, cv2.COLOR_BGR2RGBA if bgr else cv2.COLOR_RGB2RGBA)
    if channels == 4:
        return cv2.cvtColor(frame, cv2.COLOR_BGRA2RGBA) if bgr else frame
    raise ValueError(f"Unsupported channel count: {channels}")


class StillFrameProvider(FrameProvider):
    """
    Serves a single already-decoded image as every frame of the "video".

    Useful for thumbnails and extracted stills. With loaded=False the
    dimensions stay hidden until request_load() is called, mimicking a
    decoder that still has to parse headers.
    """

    def __init__(self, frame: np.ndarray, duration: float = 0.0,
                 channel_order: str = "rgb", loaded: bool = True):
        super().__init__()
        self._frame = to_rgba(np.asarray(frame), channel_order)
        self._duration = float(duration)
        self._loaded = loaded
        self.current_time = 0.0
        self.load_requests = 0
        self.seek_requests: List[float] = []

    @classmethod
    def from_image_file(cls, path: Union[str, Path], duration: float = 0.0) -> "StillFrameProvider":
        """Load a still with OpenCV (BGR on disk order)."""
        image = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
        if image is None:
            raise FrameProviderError(f"Cannot read image: {path}")
        return cls(image, duration=duration, channel_order="bgr")

    @property
    def native_width(self) -> int:
        return int(self._frame.shape[1]) if self._loaded else 0

    @property
    def native_height(self) -> int:
        return int(self._frame.shape[0]) if self._loaded else 0

    @property
    def duration_seconds(self) -> float:
        return self._duration

    def request_load(self) -> None:
        self.load_requests += 1
        self._loaded = True
        self._emit_soon(METADATA_READY)

    def seek_to(self, time_seconds: float) -> None:
        self.seek_requests.append(time_seconds)
        self.current_time = time_seconds
        self._emit_soon(SEEK_COMPLETED, time_seconds)

    def read_current_frame_pixels(self) -> np.ndarray:
        if not self._loaded:
            raise FrameProviderError("Frame requested before metadata was loaded")
        return self._frame.copy()
