"""Signal processing stages used by the analyzer."""

from .dsp import DirectionEstimator, LoudnessEstimator, SpectrumClassifier, transient_measure
from .frames import FrameBuilder
from .pitch import PitchEstimator, voice_register

__all__ = [
    "DirectionEstimator",
    "FrameBuilder",
    "LoudnessEstimator",
    "PitchEstimator",
    "SpectrumClassifier",
    "transient_measure",
    "voice_register",
]
