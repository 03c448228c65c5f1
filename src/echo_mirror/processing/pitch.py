"""Autocorrelation pitch estimation for voice-like sounds."""

import logging
from typing import Tuple

import numpy as np

from ..config import (
    HIGH_REGISTER_PITCH,
    LOW_REGISTER_PITCH,
    MAX_PITCH_FREQUENCY,
    MID_REGISTER_PITCH,
    MIN_PITCH_FREQUENCY,
    PITCH_CORRELATION_FLOOR,
)
from ..models import VoiceRegister

logger = logging.getLogger(__name__)


class PitchEstimator:
    """Estimates the fundamental frequency of one channel.

    Correlation is only evaluated at lag 0 and at lags whose period falls
    inside the vocal range, so cost grows with the buffer length times the
    width of that window rather than the full buffer.
    """

    def __init__(
        self,
        min_frequency: float = MIN_PITCH_FREQUENCY,
        max_frequency: float = MAX_PITCH_FREQUENCY,
        correlation_floor: float = PITCH_CORRELATION_FLOOR,
    ):
        """Initialize the pitch estimator.

        Args:
            min_frequency: Lowest detectable pitch in Hz (sets the longest lag)
            max_frequency: Highest detectable pitch in Hz (sets the shortest lag)
            correlation_floor: Required fraction of the zero-lag correlation
        """
        self.min_frequency = min_frequency
        self.max_frequency = max_frequency
        self.correlation_floor = correlation_floor

    def lag_window(self, sample_rate: float) -> Tuple[int, int]:
        """Return the (shortest, longest) lag in samples to search."""
        return (
            int(np.floor(sample_rate / self.max_frequency)),
            int(np.floor(sample_rate / self.min_frequency)),
        )

    def estimate(self, samples: np.ndarray, sample_rate: float) -> float:
        """Estimate pitch in Hz, or 0.0 when no reliable period is found.

        The winning lag may sit on the edge of the search window without
        being a true correlation peak, for example a 75 Hz tone in a 2048
        sample buffer reports about 604 Hz. Results near the window limits
        should not be trusted.

        Args:
            samples: Raw float samples of a single channel
            sample_rate: Audio sample rate in Hz

        Returns:
            Refined pitch estimate, 0.0 for "no pitch"
        """
        buffer = np.asarray(samples, dtype=np.float64)
        size = len(buffer)
        min_lag, max_lag = self.lag_window(sample_rate)
        min_lag = max(min_lag, 1)
        max_lag = min(max_lag, size - 1)

        if size == 0 or min_lag > max_lag:
            return 0.0

        zero_lag = float(np.dot(buffer, buffer))
        if zero_lag <= 0:
            return 0.0

        # Lags min_lag-1 .. max_lag+1 so the winner always has neighbours
        first = max(min_lag - 1, 0)
        last = min(max_lag + 1, size - 1)
        correlations = np.array(
            [np.dot(buffer[: size - lag], buffer[lag:]) for lag in range(first, last + 1)]
        )

        window = correlations[min_lag - first : max_lag - first + 1]
        best_lag = min_lag + int(np.argmax(window))
        best = float(correlations[best_lag - first])

        if best < self.correlation_floor * zero_lag:
            logger.debug(
                f"Pitch rejected: r[{best_lag}]={best:.3f} < "
                f"{self.correlation_floor:.0%} of r[0]={zero_lag:.3f}"
            )
            return 0.0

        # Parabolic refinement around the winning lag
        s0 = self._at(correlations, best_lag - 1, first)
        s1 = best
        s2 = self._at(correlations, best_lag + 1, first)
        denom = s0 - 2 * s1 + s2
        if denom == 0:
            return sample_rate / best_lag

        delta = (s0 - s2) / (2 * denom)
        if best_lag + delta <= 0:
            return sample_rate / best_lag
        return sample_rate / (best_lag + delta)

    @staticmethod
    def _at(correlations: np.ndarray, lag: int, first: int) -> float:
        index = lag - first
        if 0 <= index < len(correlations):
            return float(correlations[index])
        return 0.0


def voice_register(pitch: float) -> VoiceRegister:
    """Map a pitch estimate to an approximate voice register.

    The bands are coarse and must not be read as gender or age.
    """
    if pitch > HIGH_REGISTER_PITCH:
        return VoiceRegister.HIGH_PITCHED
    if pitch > MID_REGISTER_PITCH:
        return VoiceRegister.MID_PITCHED
    if pitch > LOW_REGISTER_PITCH:
        return VoiceRegister.LOW_PITCHED
    return VoiceRegister.UNDETERMINED
