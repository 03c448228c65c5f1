"""Per-block analysis pipeline.

Block -> {loudness, spectrum, direction} -> sound type (+ pitch) -> event gate
"""

import logging
from typing import Optional

from .classifier import SoundTypeClassifier, estimate_distance
from .config import AnalyzerSettings
from .gate import EventGate
from .models import AnalysisResult, Block, BlockOutcome, RunningPeaks
from .processing.dsp import (
    DirectionEstimator,
    LoudnessEstimator,
    SpectrumClassifier,
    transient_measure,
)

logger = logging.getLogger(__name__)


class Analyzer:
    """Runs the analysis pipeline one block at a time.

    All state that survives between blocks lives here: the settings (read
    once per block), the running peaks and the event gate. Blocks must be
    processed sequentially; the analyzer performs no locking.

    Example:
        >>> analyzer = Analyzer()
        >>> outcome = analyzer.process_block(block, now=time.time())
        >>> if outcome and outcome.event:
        ...     store.append(outcome.event)
    """

    def __init__(
        self,
        settings: Optional[AnalyzerSettings] = None,
        classifier: Optional[SoundTypeClassifier] = None,
    ):
        self.settings = settings or AnalyzerSettings()
        self.peaks = RunningPeaks()
        self.gate = EventGate(cooldown=self.settings.event_cooldown)

        self._loudness = LoudnessEstimator()
        self._spectrum = SpectrumClassifier()
        self._direction = DirectionEstimator()
        self._classifier = classifier or SoundTypeClassifier()

    def process_block(self, block: Block, now: float) -> Optional[BlockOutcome]:
        """Analyze one block.

        Args:
            block: The block to analyze
            now: Wall-clock time in seconds, used by the event gate

        Returns:
            BlockOutcome with the result, requested effects and any emitted
            event, or None when the block is empty and was skipped
        """
        if block.is_empty():
            logger.debug("Skipping empty block")
            return None

        settings = self.settings

        loudness = self._loudness.process(
            block.waveform,
            settings.sensitivity,
            settings.ignore_ambient_noise,
            self.peaks.peak_loudness,
        )
        spectrum = self._spectrum.process(
            block.magnitude_spectrum,
            block.sample_rate,
            self.peaks.peak_dominant_frequency,
            block.transform_size,
        )
        direction = self._direction.process(block.channel_samples)

        classification = self._classifier.classify(
            loudness=loudness.loudness,
            dominant_frequency=spectrum.dominant_frequency,
            transient=transient_measure(block.waveform),
            sound_detected=loudness.sound_detected,
            max_magnitude=spectrum.max_magnitude,
            pitch_samples=block.channel_samples[0] if len(block.channel_samples) > 0 else None,
            sample_rate=block.sample_rate,
        )

        result = AnalysisResult(
            loudness=loudness.loudness,
            peak_loudness=loudness.peak_loudness,
            sound_detected=loudness.sound_detected,
            dominant_frequency_hz=spectrum.dominant_frequency,
            peak_dominant_frequency_hz=spectrum.peak_dominant_frequency,
            frequency_range=spectrum.frequency_range,
            sound_type=classification.sound_type,
            confidence=classification.confidence,
            accent=classification.accent,
            estimated_distance=estimate_distance(loudness.loudness),
            direction=direction,
            estimated_pitch_hz=classification.estimated_pitch_hz,
            voice_register=classification.voice_register,
        )

        # Commit block state only once the whole block has been analyzed
        self.peaks.peak_loudness = loudness.peak_loudness
        self.peaks.peak_dominant_frequency = spectrum.peak_dominant_frequency

        self.gate.cooldown = settings.event_cooldown
        event = self.gate.process(result, now)

        return BlockOutcome(result=result, effects=classification.effects, event=event)

    def reset(self) -> None:
        """Reset running peaks. The event gate keeps its last emission time."""
        self.peaks.reset()
