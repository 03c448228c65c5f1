"""Data models for per-block analysis results and sound events."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence, Tuple, Union

import numpy as np


class FrequencyRange(str, Enum):
    """Dominant band of the block's spectral energy."""

    LOW = "Low"
    MID = "Mid"
    HIGH = "High"
    UNKNOWN = "Unknown"


class SoundType(str, Enum):
    """Heuristic sound category."""

    AMBIENT = "Ambient"
    TRANSIENT = "Transient"
    VOICE = "Voice"
    TONE = "Tone"

    @property
    def label(self) -> str:
        """Human-readable label used by timelines and logs."""
        return _SOUND_TYPE_LABELS[self]


_SOUND_TYPE_LABELS = {
    SoundType.AMBIENT: "Ambient / Noise-like",
    SoundType.TRANSIENT: "Clap / Bang-like",
    SoundType.VOICE: "Voice-like",
    SoundType.TONE: "Instrument / Tone-like",
}


class Distance(str, Enum):
    """Coarse distance estimate derived from loudness."""

    VERY_CLOSE = "VeryClose"
    NEAR = "Near"
    FAR = "Far"
    NO_SOUND = "NoSound"


class Direction(str, Enum):
    """Stereo direction of the sound source."""

    LEFT = "Left"
    RIGHT = "Right"
    CENTER = "Center"
    UNAVAILABLE = "Unavailable"


class VoiceRegister(str, Enum):
    """Approximate register of a voice-like sound.

    These buckets are rough pitch bands, not speaker gender or age.
    """

    HIGH_PITCHED = "HighPitched"
    MID_PITCHED = "MidPitched"
    LOW_PITCHED = "LowPitched"
    UNDETERMINED = "Undetermined"
    NOT_APPLICABLE = "NotApplicable"


class Accent(str, Enum):
    """Display accent tag attached to each sound category."""

    AMBIENT = "ambient"
    HIGHLIGHT = "highlight"
    ALERT = "alert"


class AlertKind(str, Enum):
    """Reason a visual alert was requested."""

    TRANSIENT = "transient"
    LOUD_VOICE = "loud_voice"


@dataclass(frozen=True)
class Alert:
    """Request for a short visual alert flash."""

    kind: AlertKind
    duration_ms: int = 200


@dataclass(frozen=True)
class Haptic:
    """Request for a vibration.

    Attributes:
        pattern: Alternating on/off durations in milliseconds.
    """

    pattern: Tuple[int, ...]


Effect = Union[Alert, Haptic]


@dataclass
class Block:
    """One analysis unit handed to the pipeline.

    Attributes:
        sample_rate: Sampling rate in Hz
        magnitude_spectrum: Byte-scaled magnitudes (0-255), one per bin
        waveform: Byte-scaled time-domain samples centered at 128
        channel_samples: Zero, one or two float sample arrays in [-1, 1]
    """

    sample_rate: float
    magnitude_spectrum: np.ndarray
    waveform: np.ndarray
    channel_samples: Sequence[np.ndarray] = field(default_factory=tuple)

    @property
    def transform_size(self) -> int:
        """FFT size the spectrum was derived from."""
        return 2 * len(self.magnitude_spectrum)

    def is_empty(self) -> bool:
        """Check whether the block lacks the data needed for analysis."""
        return (
            len(self.magnitude_spectrum) == 0
            or len(self.waveform) == 0
            or self.sample_rate <= 0
        )


@dataclass
class RunningPeaks:
    """Peak-hold values carried across blocks."""

    peak_loudness: float = 0.0
    peak_dominant_frequency: float = 0.0

    def reset(self) -> None:
        self.peak_loudness = 0.0
        self.peak_dominant_frequency = 0.0


@dataclass(frozen=True)
class AnalysisResult:
    """Descriptors derived from a single block."""

    loudness: float
    peak_loudness: float
    sound_detected: bool
    dominant_frequency_hz: float
    peak_dominant_frequency_hz: float
    frequency_range: FrequencyRange
    sound_type: SoundType
    confidence: int
    accent: Accent
    estimated_distance: Distance
    direction: Direction
    estimated_pitch_hz: float = 0.0
    voice_register: VoiceRegister = VoiceRegister.NOT_APPLICABLE

    def __str__(self) -> str:
        return (
            f"{self.sound_type.label} ({self.confidence}%) "
            f"loudness={self.loudness:.1f} freq={self.dominant_frequency_hz:.0f}Hz "
            f"range={self.frequency_range.value} dir={self.direction.value}"
        )


@dataclass(frozen=True)
class SoundEvent:
    """A debounced, reportable sound event.

    Attributes:
        timestamp: Wall-clock time of emission (epoch seconds)
        sound_type: Category of the sound at emission time
        frequency_hz: Dominant frequency at emission time
    """

    timestamp: float
    sound_type: SoundType
    frequency_hz: float

    def __str__(self) -> str:
        return f"{self.sound_type.label} @ {self.frequency_hz:.0f} Hz"


@dataclass(frozen=True)
class StoredEvent:
    """A SoundEvent as persisted by a sink."""

    id: int
    event: SoundEvent


@dataclass(frozen=True)
class BlockOutcome:
    """Everything produced by one pipeline step."""

    result: AnalysisResult
    effects: Tuple[Effect, ...] = ()
    event: Optional[SoundEvent] = None
