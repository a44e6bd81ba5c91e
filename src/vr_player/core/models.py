# VRPlayer Models

"""
Value types shared by the detector, the CLI and the player.

DetectionResult.to_dict/from_dict are the CLI JSON record (write and read
back). VRMode is the player-facing projection state: the CLI derives its
verdict label from it, and a player applies each verdict to it before the
user overrides fov/format with the toggles.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class FieldOfView(str, Enum):
    """Horizontal coverage of the capture."""
    FOV_180 = "180"
    FOV_360 = "360"


class StereoFormat(str, Enum):
    """How the eyes are packed into one frame."""
    MONO = "mono"
    SBS = "sbs"
    TB = "tb"


class DetectionMethod(str, Enum):
    FILENAME = "filename"
    FRAME = "frame"
    RESOLUTION = "resolution"


@dataclass
class SubDetectionResult:
    """Output of a single sub-detector. fov/format stay None when it can't tell."""
    is_vr: bool
    fov: Optional[FieldOfView] = None
    format: Optional[StereoFormat] = None
    description: str = ""


@dataclass
class DetectionResult:
    """Fused verdict returned by VRDetector."""
    is_vr: bool = False
    fov: FieldOfView = FieldOfView.FOV_180
    format: StereoFormat = StereoFormat.MONO
    confidence: float = 0.0
    methods: List[DetectionMethod] = field(default_factory=list)

    def to_dict(self):
        return {
            "is_vr": self.is_vr,
            "fov": self.fov.value,
            "format": self.format.value,
            "confidence": round(self.confidence, 4),
            "methods": [m.value for m in self.methods],
        }

    @classmethod
    def from_dict(cls, data: dict):
        return cls(
            is_vr=bool(data.get("is_vr", False)),
            fov=FieldOfView(data.get("fov", FieldOfView.FOV_180.value)),
            format=StereoFormat(data.get("format", StereoFormat.MONO.value)),
            confidence=float(data.get("confidence", 0.0)),
            methods=[DetectionMethod(m) for m in data.get("methods", [])],
        )


_FORMAT_CYCLE = [StereoFormat.MONO, StereoFormat.SBS, StereoFormat.TB]


@dataclass
class VRMode:
    """
    Player-side projection state.

    The renderer reads fov/format from here; the user can override whatever
    the detector chose with the 180/360 toggle and the format cycle.
    """
    fov: FieldOfView = FieldOfView.FOV_180
    format: StereoFormat = StereoFormat.MONO

    def reset(self) -> None:
        self.fov = FieldOfView.FOV_180
        self.format = StereoFormat.MONO

    def toggle_fov(self) -> FieldOfView:
        if self.fov == FieldOfView.FOV_360:
            self.fov = FieldOfView.FOV_180
        else:
            self.fov = FieldOfView.FOV_360
        return self.fov

    def cycle_format(self) -> StereoFormat:
        """mono → sbs → tb → mono."""
        idx = _FORMAT_CYCLE.index(self.format)
        self.format = _FORMAT_CYCLE[(idx + 1) % len(_FORMAT_CYCLE)]
        return self.format

    def apply(self, result: DetectionResult) -> None:
        """Adopt a detection verdict; non-VR results fall back to the defaults."""
        if result.is_vr:
            self.fov = result.fov
            self.format = result.format
        else:
            self.reset()

    @property
    def label(self) -> str:
        """Short mode text, e.g. '360° SBS'."""
        return f"{self.fov.value}° {self.format.value.upper()}"


@dataclass
class VideoMetadata:
    """Basic properties of an opened video."""
    path: str
    width: int
    height: int
    duration: float
    rotation: int = 0

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height if self.height else 0.0
