"""Heuristic sound-type classification and distance estimation."""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from .config import (
    ALERT_DURATION_MS,
    AMBIENT_CONFIDENCE,
    AMBIENT_QUIET_CONFIDENCE,
    FAR_LOUDNESS,
    LOUD_VOICE_HAPTIC_PATTERN,
    LOUD_VOICE_LOUDNESS,
    NEAR_LOUDNESS,
    PITCH_MIN_LOUDNESS,
    TONE_CONFIDENCE,
    TONE_MIN_LOUDNESS,
    TONE_MIN_MAGNITUDE,
    TRANSIENT_CONFIDENCE,
    TRANSIENT_HAPTIC_PATTERN,
    TRANSIENT_MIN_FREQUENCY,
    TRANSIENT_MIN_LOUDNESS,
    TRANSIENT_THRESHOLD,
    VERY_CLOSE_LOUDNESS,
    VOICE_CONFIDENCE,
    VOICE_MAX_FREQUENCY,
    VOICE_MIN_FREQUENCY,
    VOICE_MIN_LOUDNESS,
)
from .models import (
    Accent,
    Alert,
    AlertKind,
    Distance,
    Effect,
    Haptic,
    SoundType,
    VoiceRegister,
)
from .processing.pitch import PitchEstimator, voice_register

logger = logging.getLogger(__name__)

ACCENTS = {
    SoundType.AMBIENT: Accent.AMBIENT,
    SoundType.TRANSIENT: Accent.ALERT,
    SoundType.VOICE: Accent.HIGHLIGHT,
    SoundType.TONE: Accent.HIGHLIGHT,
}


@dataclass(frozen=True)
class Classification:
    """Outcome of the sound-type decision for one block.

    Attributes:
        sound_type: Assigned category
        confidence: Fixed confidence score for the category (0-100)
        accent: Display accent tag for the category
        effects: Alerts and haptics the presentation layer should run
        estimated_pitch_hz: Pitch for voice-like sound, 0.0 otherwise
        voice_register: Register for voice-like sound
    """

    sound_type: SoundType
    confidence: int
    accent: Accent
    effects: Tuple[Effect, ...] = ()
    estimated_pitch_hz: float = 0.0
    voice_register: VoiceRegister = VoiceRegister.NOT_APPLICABLE


def estimate_distance(loudness: float) -> Distance:
    """Coarse distance from loudness alone."""
    if loudness > VERY_CLOSE_LOUDNESS:
        return Distance.VERY_CLOSE
    if loudness > NEAR_LOUDNESS:
        return Distance.NEAR
    if loudness > FAR_LOUDNESS:
        return Distance.FAR
    return Distance.NO_SOUND


class SoundTypeClassifier:
    """Assigns a sound category with an ordered list of rules.

    The first matching rule wins:

    1. No sound detected -> Ambient (40)
    2. Sharp, bright and loud -> Transient (85), alert + short haptic
    3. Voice band and audible -> Voice (75), alert + long haptic when loud
    4. Strong spectral peak -> Tone (65)
    5. Anything else -> Ambient (50)

    Voice-like blocks are additionally passed to the pitch estimator to
    obtain a pitch and a voice register.
    """

    def __init__(self, pitch_estimator: Optional[PitchEstimator] = None):
        self.pitch_estimator = pitch_estimator or PitchEstimator()

    def classify(
        self,
        loudness: float,
        dominant_frequency: float,
        transient: float,
        sound_detected: bool,
        max_magnitude: float,
        pitch_samples: Optional[np.ndarray] = None,
        sample_rate: float = 0.0,
    ) -> Classification:
        """Classify one block.

        Args:
            loudness: Block loudness in display units
            dominant_frequency: Dominant frequency in Hz
            transient: Mean absolute sample-to-sample waveform change
            sound_detected: Whether loudness passed the presence level
            max_magnitude: Largest spectral magnitude in the scanned range
            pitch_samples: Raw samples of one channel for pitch estimation
            sample_rate: Sample rate of pitch_samples in Hz

        Returns:
            Classification for the block
        """
        sound_type, confidence, effects = self._decide(
            loudness, dominant_frequency, transient, sound_detected, max_magnitude
        )

        pitch = 0.0
        register = VoiceRegister.NOT_APPLICABLE
        if sound_type is SoundType.VOICE and loudness > PITCH_MIN_LOUDNESS:
            if pitch_samples is not None and len(pitch_samples) > 0:
                pitch = self.pitch_estimator.estimate(pitch_samples, sample_rate)
            register = voice_register(pitch)
            logger.debug(f"Voice pitch {pitch:.1f}Hz -> {register.value}")

        return Classification(
            sound_type=sound_type,
            confidence=confidence,
            accent=ACCENTS[sound_type],
            effects=tuple(effects),
            estimated_pitch_hz=pitch,
            voice_register=register,
        )

    def _decide(
        self,
        loudness: float,
        dominant_frequency: float,
        transient: float,
        sound_detected: bool,
        max_magnitude: float,
    ) -> Tuple[SoundType, int, List[Effect]]:
        if not sound_detected:
            return SoundType.AMBIENT, AMBIENT_QUIET_CONFIDENCE, []

        if (
            transient > TRANSIENT_THRESHOLD * (loudness / 100)
            and dominant_frequency > TRANSIENT_MIN_FREQUENCY
            and loudness > TRANSIENT_MIN_LOUDNESS
        ):
            return (
                SoundType.TRANSIENT,
                TRANSIENT_CONFIDENCE,
                [
                    Alert(AlertKind.TRANSIENT, ALERT_DURATION_MS),
                    Haptic(TRANSIENT_HAPTIC_PATTERN),
                ],
            )

        if (
            VOICE_MIN_FREQUENCY < dominant_frequency < VOICE_MAX_FREQUENCY
            and loudness > VOICE_MIN_LOUDNESS
        ):
            effects: List[Effect] = []
            if loudness > LOUD_VOICE_LOUDNESS:
                effects = [
                    Alert(AlertKind.LOUD_VOICE, ALERT_DURATION_MS),
                    Haptic(LOUD_VOICE_HAPTIC_PATTERN),
                ]
            return SoundType.VOICE, VOICE_CONFIDENCE, effects

        if max_magnitude > TONE_MIN_MAGNITUDE and loudness > TONE_MIN_LOUDNESS:
            return SoundType.TONE, TONE_CONFIDENCE, []

        return SoundType.AMBIENT, AMBIENT_CONFIDENCE, []
