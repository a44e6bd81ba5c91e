# VRPlayer Frame Loader

"""
PyAV-backed frame provider for real video files.

Opening the container and decoding the seek target run on a worker thread;
completion is reported back on the asyncio loop through the provider events,
so the analyzer awaits a video file the same way it awaits any other source.

Key features:
- Rotation metadata handling (phone footage)
- Time-based seeking with decode-forward to the target
- Resource cleanup: close() waits for in-flight open/decode work and
  later work on a closed provider is refused
"""

import asyncio
import threading
from pathlib import Path
from typing import Optional

import av
import numpy as np

from vr_player.core.frame_provider import (
    FrameProvider, FrameProviderError, METADATA_READY, LOAD_ERROR, SEEK_COMPLETED,
)
from vr_player.core.models import VideoMetadata
from vr_player.utils.logging import get_logger

logger = get_logger(__name__)


class VideoFrameProvider(FrameProvider):
    """
    Video decoder using PyAV, exposed through the FrameProvider contract.

    Usage:
        provider = VideoFrameProvider("clip_360.mp4")
        result = await VRDetector().detect(provider.path, provider)
        provider.close()

    Or as context manager:
        with VideoFrameProvider("clip_360.mp4") as provider:
            ...
    """

    def __init__(self, video_path: str, max_decode: int = 240):
        """
        Args:
            video_path: Path to the video file. Nothing is opened until
                request_load() is called.
            max_decode: Frames to decode past the keyframe before giving up
                on reaching the exact seek target.
        """
        super().__init__()
        self._path = Path(video_path)
        self._max_decode = max_decode

        self._container: Optional[av.container.InputContainer] = None
        self._stream = None
        self._rotation: int = 0
        self._width: int = 0
        self._height: int = 0
        self._duration: float = 0.0
        self._time_base: float = 0.0
        self._current: Optional[np.ndarray] = None
        self._current_time: float = 0.0
        # Guards the container against close() racing executor work
        self._lock = threading.RLock()
        self._closed = False

    @property
    def path(self) -> str:
        return str(self._path)

    # =========================================================================
    # Blocking work (runs on the executor)
    # =========================================================================

    def open(self) -> None:
        """Open the container and read metadata. Safe to call twice."""
        with self._lock:
            if self._closed:
                raise FrameProviderError(f"Provider for {self._path.name} is closed")
            if self._container is not None:
                return
            self._open_container()

    def _open_container(self) -> None:
        if not self._path.exists():
            raise FileNotFoundError(f"Video not found: {self._path}")

        container = av.open(str(self._path))
        if not container.streams.video:
            container.close()
            raise FrameProviderError(f"No video stream in {self._path.name}")

        self._container = container
        self._stream = self._container.streams.video[0]
        self._time_base = float(self._stream.time_base or 0.0)

        if self._container.duration:
            self._duration = self._container.duration / 1_000_000
        elif self._stream.duration and self._stream.time_base:
            self._duration = float(self._stream.duration * self._stream.time_base)
        else:
            self._duration = 0.0

        self._rotation = self._detect_rotation()

        # Dimensions (swap if rotated 90/270)
        if self._rotation in (90, 270):
            self._width, self._height = self._stream.height, self._stream.width
        else:
            self._width, self._height = self._stream.width, self._stream.height

        logger.debug(f"Opened {self._path.name}: {self._width}x{self._height}, "
                     f"{self._duration:.2f}s, rotation {self._rotation}°")

    def _detect_rotation(self) -> int:
        """Rotation from the stream 'rotate' tag, normalised to 0/90/180/270."""
        rotation = 0
        if self._stream is not None and self._stream.metadata:
            try:
                rotation = int(self._stream.metadata.get("rotate", "0"))
            except ValueError:
                rotation = 0

        rotation = rotation % 360
        if rotation not in (0, 90, 180, 270):
            rotation = round(rotation / 90) * 90 % 360
        return rotation

    def _apply_rotation(self, frame: np.ndarray) -> np.ndarray:
        if self._rotation == 90:
            return np.ascontiguousarray(np.rot90(frame, k=3))
        if self._rotation == 180:
            return np.ascontiguousarray(np.rot90(frame, k=2))
        if self._rotation == 270:
            return np.ascontiguousarray(np.rot90(frame, k=1))
        return frame

    def decode_at(self, time_seconds: float) -> np.ndarray:
        """
        Decode the first frame at or after time_seconds as RGBA.

        Seeking lands on the previous keyframe, so frames are decoded forward
        until the target is reached or max_decode is exhausted.
        """
        with self._lock:
            if self._closed:
                raise FrameProviderError(f"Provider for {self._path.name} is closed")
            if self._container is None or self._stream is None:
                raise FrameProviderError("Video not opened")
            return self._decode_locked(time_seconds)

    def _decode_locked(self, time_seconds: float) -> np.ndarray:
        if self._time_base > 0:
            target_pts = int(time_seconds / self._time_base)
            self._container.seek(target_pts, stream=self._stream, backward=True)
        else:
            self._container.seek(0)

        last = None
        for decoded, frame in enumerate(self._container.decode(video=0), start=1):
            last = frame
            if frame.time is not None and frame.time >= time_seconds:
                break
            if decoded >= self._max_decode:
                break

        if last is None:
            raise FrameProviderError(f"Could not decode a frame at {time_seconds:.2f}s")

        self._current_time = float(last.time) if last.time is not None else time_seconds
        return self._apply_rotation(last.to_ndarray(format="rgba"))

    # =========================================================================
    # FrameProvider
    # =========================================================================

    @property
    def native_width(self) -> int:
        return self._width

    @property
    def native_height(self) -> int:
        return self._height

    @property
    def duration_seconds(self) -> float:
        return self._duration

    @property
    def current_time(self) -> float:
        return self._current_time

    @property
    def metadata(self) -> VideoMetadata:
        return VideoMetadata(
            path=str(self._path),
            width=self._width,
            height=self._height,
            duration=self._duration,
            rotation=self._rotation,
        )

    def request_load(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is None:
            try:
                self.open()
            except Exception as e:
                logger.error(f"Failed to open {self._path.name}: {e}")
                self._emit(LOAD_ERROR, e)
            else:
                self._emit(METADATA_READY)
            return

        future = loop.run_in_executor(None, self.open)
        future.add_done_callback(self._on_opened)

    def _on_opened(self, future: asyncio.Future) -> None:
        if future.cancelled():
            self._emit(LOAD_ERROR, FrameProviderError("Load cancelled"))
            return
        error = future.exception()
        if error is not None:
            logger.error(f"Failed to open {self._path.name}: {error}")
            self._emit(LOAD_ERROR, error)
        else:
            self._emit(METADATA_READY)

    def seek_to(self, time_seconds: float) -> None:
        # A failed decode still completes the seek; the pixel read reports it
        self._current = None
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is None:
            try:
                self._current = self.decode_at(time_seconds)
            except Exception as e:
                logger.warning(f"Seek to {time_seconds:.2f}s failed: {e}")
            self._emit(SEEK_COMPLETED, time_seconds)
            return

        future = loop.run_in_executor(None, self.decode_at, time_seconds)
        future.add_done_callback(lambda f: self._on_decoded(f, time_seconds))

    def _on_decoded(self, future: asyncio.Future, time_seconds: float) -> None:
        if future.cancelled():
            logger.warning(f"Seek to {time_seconds:.2f}s cancelled")
        elif future.exception() is not None:
            logger.warning(f"Seek to {time_seconds:.2f}s failed: {future.exception()}")
        else:
            self._current = future.result()
        self._emit(SEEK_COMPLETED, time_seconds)

    def read_current_frame_pixels(self) -> np.ndarray:
        if self._current is None:
            raise FrameProviderError("No decoded frame available")
        return self._current

    def close(self) -> None:
        """
        Close the video container and release resources.

        Blocks until a running open()/decode_at() on the executor finishes;
        anything scheduled afterwards fails with FrameProviderError.
        """
        with self._lock:
            self._closed = True
            if self._container is not None:
                self._container.close()
                self._container = None
                self._stream = None

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "VideoFrameProvider":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __del__(self) -> None:
        # __init__ may have failed before the lock existed
        if hasattr(self, "_lock"):
            self.close()
