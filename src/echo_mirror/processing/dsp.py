"""Digital Signal Processing (DSP) layer for per-block audio descriptors."""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from ..config import (
    DIRECTION_RATIO_THRESHOLD,
    FREQUENCY_PEAK_DECAY,
    HIGH_BAND_LIMIT,
    LOUDNESS_DISPLAY_SCALE,
    LOUDNESS_PEAK_DECAY,
    LOW_BAND_LIMIT,
    MID_BAND_LIMIT,
    MIN_DOMINANT_FREQUENCY,
    NOISE_GATE_LEVEL,
    SOUND_PRESENCE_LEVEL,
)
from ..models import Direction, FrequencyRange

logger = logging.getLogger(__name__)

WAVEFORM_MIDPOINT = 128.0


def hold_peak(value: float, peak: float, decay: float) -> float:
    """Exponential peak-hold.

    Snaps up to new maxima, otherwise decays the stored peak by ``decay``
    without letting it drop below the current value.
    """
    if value >= peak:
        return value
    return max(peak * decay, value)


def transient_measure(waveform: np.ndarray) -> float:
    """Mean absolute sample-to-sample change of a byte waveform."""
    if len(waveform) < 2:
        return 0.0
    return float(np.mean(np.abs(np.diff(np.asarray(waveform, dtype=np.float64)))))


@dataclass(frozen=True)
class LoudnessReading:
    """Loudness of one block in display units."""

    loudness: float
    peak_loudness: float
    sound_detected: bool


class LoudnessEstimator:
    """Computes gated, sensitivity-scaled RMS loudness from a waveform."""

    def __init__(
        self,
        display_scale: float = LOUDNESS_DISPLAY_SCALE,
        noise_gate_level: float = NOISE_GATE_LEVEL,
        presence_level: float = SOUND_PRESENCE_LEVEL,
        peak_decay: float = LOUDNESS_PEAK_DECAY,
    ):
        """Initialize the loudness estimator.

        Args:
            display_scale: Factor mapping normalized RMS to display units
            noise_gate_level: Loudness below this is zeroed when gating
            presence_level: Loudness above this counts as sound detected
            peak_decay: Per-block multiplicative decay of the peak
        """
        self.display_scale = display_scale
        self.noise_gate_level = noise_gate_level
        self.presence_level = presence_level
        self.peak_decay = peak_decay

    def process(
        self,
        waveform: np.ndarray,
        sensitivity: float,
        ignore_ambient_noise: bool,
        previous_peak: float = 0.0,
    ) -> LoudnessReading:
        """Compute loudness for a byte waveform centered at 128.

        Args:
            waveform: Time-domain samples in the 0-255 range
            sensitivity: Gain factor in [0, 1]
            ignore_ambient_noise: Apply the hard noise gate
            previous_peak: Peak loudness carried from the previous block

        Returns:
            LoudnessReading with current loudness and updated peak
        """
        normalized = np.asarray(waveform, dtype=np.float64) / WAVEFORM_MIDPOINT - 1.0
        rms = float(np.sqrt(np.mean(normalized * normalized)))

        loudness = rms * self.display_scale * (sensitivity * 2.0)

        if ignore_ambient_noise and loudness < self.noise_gate_level:
            loudness = 0.0

        return LoudnessReading(
            loudness=loudness,
            peak_loudness=hold_peak(loudness, previous_peak, self.peak_decay),
            sound_detected=loudness > self.presence_level,
        )


@dataclass(frozen=True)
class SpectrumReading:
    """Spectral descriptors of one block."""

    dominant_frequency: float
    peak_dominant_frequency: float
    max_magnitude: float
    frequency_range: FrequencyRange
    band_energy: Tuple[float, float, float]  # (low, mid, high)


class SpectrumClassifier:
    """Finds the dominant frequency and the dominant energy band.

    Bins are scanned only inside (min_frequency, Nyquist). Band energy is
    accumulated as low (< low_limit), mid (< mid_limit) and high
    (< high_limit); bins above high_limit do not count toward the range.
    """

    def __init__(
        self,
        min_frequency: float = MIN_DOMINANT_FREQUENCY,
        low_limit: float = LOW_BAND_LIMIT,
        mid_limit: float = MID_BAND_LIMIT,
        high_limit: float = HIGH_BAND_LIMIT,
        peak_decay: float = FREQUENCY_PEAK_DECAY,
    ):
        self.min_frequency = min_frequency
        self.low_limit = low_limit
        self.mid_limit = mid_limit
        self.high_limit = high_limit
        self.peak_decay = peak_decay

    def process(
        self,
        spectrum: np.ndarray,
        sample_rate: float,
        previous_peak: float = 0.0,
        transform_size: Optional[int] = None,
    ) -> SpectrumReading:
        """Analyze a byte magnitude spectrum.

        Args:
            spectrum: Magnitudes (0-255), one per bin
            sample_rate: Audio sample rate in Hz
            previous_peak: Peak dominant frequency from the previous block
            transform_size: FFT size (defaults to twice the bin count)

        Returns:
            SpectrumReading for this block
        """
        magnitudes = np.asarray(spectrum, dtype=np.float64)
        if transform_size is None:
            transform_size = 2 * len(magnitudes)

        freqs = np.arange(len(magnitudes)) * (sample_rate / transform_size)

        # Dominant bin: first strict maximum inside (min_frequency, Nyquist)
        in_range = (freqs > self.min_frequency) & (freqs < sample_rate / 2)
        candidates = magnitudes[in_range]
        dominant_frequency = 0.0
        max_magnitude = 0.0
        if candidates.size and candidates.max() > 0:
            best = int(np.argmax(candidates))
            max_magnitude = float(candidates[best])
            dominant_frequency = float(freqs[in_range][best])

        low = float(magnitudes[freqs < self.low_limit].sum())
        mid = float(magnitudes[(freqs >= self.low_limit) & (freqs < self.mid_limit)].sum())
        high = float(magnitudes[(freqs >= self.mid_limit) & (freqs < self.high_limit)].sum())

        return SpectrumReading(
            dominant_frequency=dominant_frequency,
            peak_dominant_frequency=hold_peak(dominant_frequency, previous_peak, self.peak_decay),
            max_magnitude=max_magnitude,
            frequency_range=self.classify_range(low, mid, high),
            band_energy=(low, mid, high),
        )

    @staticmethod
    def classify_range(low: float, mid: float, high: float) -> FrequencyRange:
        """Pick the band with the largest energy share.

        Ties resolve toward the lower band.
        """
        total = low + mid + high
        if total <= 0:
            return FrequencyRange.UNKNOWN

        if low >= mid and low >= high:
            return FrequencyRange.LOW
        if mid >= high:
            return FrequencyRange.MID
        return FrequencyRange.HIGH


class DirectionEstimator:
    """Left/right/center estimate from per-channel energy."""

    def __init__(self, ratio_threshold: float = DIRECTION_RATIO_THRESHOLD):
        self.ratio_threshold = ratio_threshold

    def process(self, channel_samples: Sequence[np.ndarray]) -> Direction:
        """Estimate direction from raw channel samples.

        Only the first two channels are used. Mono or missing input is
        reported as unavailable.
        """
        if len(channel_samples) < 2:
            return Direction.UNAVAILABLE

        left = np.asarray(channel_samples[0], dtype=np.float64)
        right = np.asarray(channel_samples[1], dtype=np.float64)
        return self.from_energies(float(np.dot(left, left)), float(np.dot(right, right)))

    def from_energies(self, left_energy: float, right_energy: float) -> Direction:
        """Classify a pair of channel energies."""
        total = left_energy + right_energy
        if total <= 0:
            return Direction.UNAVAILABLE

        ratio = abs(left_energy - right_energy) / total
        if ratio > self.ratio_threshold:
            return Direction.LEFT if left_energy > right_energy else Direction.RIGHT
        return Direction.CENTER
