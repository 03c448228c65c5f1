"""Turns captured PCM chunks into analysis blocks.

The byte-scaled spectrum and waveform follow the conventions of a browser
analyser node: the most recent ``fft_size`` samples are Blackman-windowed,
transformed, smoothed over time and mapped from a decibel range onto
0-255, while the waveform is mapped from [-1, 1] onto 0-255 around 128.
"""

import logging
from typing import List, Optional

import numpy as np

from ..models import Block

logger = logging.getLogger(__name__)

DEFAULT_SMOOTHING = 0.8
DEFAULT_MIN_DECIBELS = -100.0
DEFAULT_MAX_DECIBELS = -30.0


class FrameBuilder:
    """Builds a Block from each captured audio chunk.

    Keeps a rolling history of the mono mix so chunks shorter than the
    transform size still produce a full-length spectrum and waveform.
    """

    def __init__(
        self,
        sample_rate: int,
        fft_size: int = 2048,
        smoothing: float = DEFAULT_SMOOTHING,
        min_decibels: float = DEFAULT_MIN_DECIBELS,
        max_decibels: float = DEFAULT_MAX_DECIBELS,
    ):
        """Initialize the frame builder.

        Args:
            sample_rate: Audio sample rate in Hz
            fft_size: Transform size (waveform length, twice the bin count)
            smoothing: Time constant blending each spectrum with the previous one
            min_decibels: Level mapped to byte value 0
            max_decibels: Level mapped to byte value 255
        """
        if fft_size < 2 or fft_size % 2:
            raise ValueError(f"fft_size must be a positive even number, got {fft_size}")

        self.sample_rate = sample_rate
        self.fft_size = fft_size
        self.smoothing = smoothing
        self.min_decibels = min_decibels
        self.max_decibels = max_decibels
        self.window = np.blackman(fft_size)

        self._history = np.zeros(fft_size, dtype=np.float64)
        self._smoothed = np.zeros(fft_size // 2, dtype=np.float64)

    def build(self, audio_chunk: np.ndarray) -> Optional[Block]:
        """Convert one chunk into a Block.

        Args:
            audio_chunk: Samples shaped (frames,) or (frames, channels), either
                int16 PCM or float in [-1, 1]

        Returns:
            The Block, or None for an empty chunk
        """
        samples = self._to_float(audio_chunk)
        if samples.size == 0:
            return None

        if samples.ndim == 1:
            channels: List[np.ndarray] = [samples]
            mono = samples
        else:
            channels = [samples[:, c] for c in range(min(2, samples.shape[1]))]
            mono = samples.mean(axis=1)

        self._push(mono)

        return Block(
            sample_rate=self.sample_rate,
            magnitude_spectrum=self._byte_spectrum(),
            waveform=self._byte_waveform(),
            channel_samples=channels,
        )

    def reset(self) -> None:
        """Clear sample history and spectral smoothing."""
        self._history[:] = 0.0
        self._smoothed[:] = 0.0

    def _push(self, mono: np.ndarray) -> None:
        if len(mono) >= self.fft_size:
            self._history = mono[-self.fft_size :].copy()
        else:
            self._history = np.concatenate([self._history[len(mono) :], mono])

    def _byte_waveform(self) -> np.ndarray:
        scaled = np.floor(128.0 * (1.0 + self._history))
        return np.clip(scaled, 0, 255).astype(np.uint8)

    def _byte_spectrum(self) -> np.ndarray:
        windowed = self._history * self.window
        magnitudes = np.abs(np.fft.rfft(windowed))[: self.fft_size // 2] / self.fft_size

        self._smoothed = self.smoothing * self._smoothed + (1.0 - self.smoothing) * magnitudes

        decibels = 20.0 * np.log10(np.maximum(self._smoothed, 1e-20))
        span = self.max_decibels - self.min_decibels
        scaled = np.floor(255.0 * (decibels - self.min_decibels) / span)
        return np.clip(scaled, 0, 255).astype(np.uint8)

    @staticmethod
    def _to_float(audio_chunk: np.ndarray) -> np.ndarray:
        chunk = np.asarray(audio_chunk)
        if np.issubdtype(chunk.dtype, np.integer):
            # Normalize int16 PCM
            return chunk.astype(np.float64) / 32768.0
        return chunk.astype(np.float64)
