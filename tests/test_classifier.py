"""Tests for sound-type classification and distance estimation."""

import numpy as np
import pytest

from echo_mirror.classifier import SoundTypeClassifier, estimate_distance
from echo_mirror.models import (
    Accent,
    Alert,
    AlertKind,
    Distance,
    Haptic,
    SoundType,
    VoiceRegister,
)

SAMPLE_RATE = 44100


def classify(**overrides):
    params = dict(
        loudness=20.0,
        dominant_frequency=300.0,
        transient=0.0,
        sound_detected=True,
        max_magnitude=0.0,
    )
    params.update(overrides)
    return SoundTypeClassifier().classify(**params)


def generate_sine(frequency: float, size: int = 2048) -> np.ndarray:
    t = np.arange(size) / SAMPLE_RATE
    return 0.5 * np.sin(2 * np.pi * frequency * t)


def test_no_sound_is_quiet_ambient():
    result = classify(sound_detected=False, loudness=3.0, dominant_frequency=1800, transient=9.0)

    assert result.sound_type == SoundType.AMBIENT
    assert result.confidence == 40
    assert result.accent == Accent.AMBIENT
    assert result.effects == ()
    assert result.voice_register == VoiceRegister.NOT_APPLICABLE


def test_sharp_bright_loud_sound_is_transient():
    # 0.1 * (35 / 100) = 0.035
    result = classify(loudness=35.0, dominant_frequency=1800.0, transient=0.05)

    assert result.sound_type == SoundType.TRANSIENT
    assert result.confidence == 85
    assert result.accent == Accent.ALERT
    assert result.effects == (Alert(AlertKind.TRANSIENT, 200), Haptic((100, 50, 100)))


def test_transient_requires_change_above_threshold():
    result = classify(loudness=35.0, dominant_frequency=1800.0, transient=0.03)

    assert result.sound_type == SoundType.VOICE


def test_transient_requires_high_frequency_and_loudness():
    assert classify(loudness=35.0, dominant_frequency=1400.0, transient=5.0).sound_type == (
        SoundType.VOICE
    )
    assert classify(loudness=25.0, dominant_frequency=1800.0, transient=5.0).sound_type == (
        SoundType.VOICE
    )


def test_voice_band_is_voice():
    result = classify(loudness=20.0, dominant_frequency=300.0)

    assert result.sound_type == SoundType.VOICE
    assert result.confidence == 75
    assert result.accent == Accent.HIGHLIGHT
    assert result.effects == ()


def test_loud_voice_requests_alert_and_long_haptic():
    result = classify(loudness=60.0, dominant_frequency=300.0)

    assert result.sound_type == SoundType.VOICE
    assert result.effects == (Alert(AlertKind.LOUD_VOICE, 200), Haptic((200,)))


@pytest.mark.parametrize("frequency", [80.0, 2800.0])
def test_voice_band_edges_are_exclusive(frequency):
    result = classify(loudness=20.0, dominant_frequency=frequency, max_magnitude=0.0)

    assert result.sound_type == SoundType.AMBIENT


def test_strong_peak_outside_voice_band_is_tone():
    result = classify(loudness=12.0, dominant_frequency=3000.0, max_magnitude=200.0)

    assert result.sound_type == SoundType.TONE
    assert result.confidence == 65
    assert result.accent == Accent.HIGHLIGHT


def test_tone_is_reachable_for_loud_non_voice_sounds():
    # Loud, bright, but too smooth for a transient
    result = classify(loudness=40.0, dominant_frequency=3000.0, transient=0.0, max_magnitude=130.0)

    assert result.sound_type == SoundType.TONE


def test_quiet_voice_band_falls_through_to_tone():
    result = classify(loudness=12.0, dominant_frequency=300.0, max_magnitude=200.0)

    assert result.sound_type == SoundType.TONE


def test_fallback_is_ambient_50():
    result = classify(loudness=12.0, dominant_frequency=3000.0, max_magnitude=50.0)

    assert result.sound_type == SoundType.AMBIENT
    assert result.confidence == 50
    assert result.accent == Accent.AMBIENT


def test_voice_gets_pitch_and_register():
    result = classify(
        loudness=30.0,
        dominant_frequency=150.0,
        pitch_samples=generate_sine(150.0),
        sample_rate=SAMPLE_RATE,
    )

    assert result.sound_type == SoundType.VOICE
    assert result.estimated_pitch_hz == pytest.approx(150.0, abs=2)
    assert result.voice_register == VoiceRegister.MID_PITCHED


def test_voice_without_periodicity_is_undetermined():
    noise = np.random.default_rng(1).uniform(-1, 1, size=2048)

    result = classify(
        loudness=30.0, dominant_frequency=300.0, pitch_samples=noise, sample_rate=SAMPLE_RATE
    )

    assert result.estimated_pitch_hz == 0.0
    assert result.voice_register == VoiceRegister.UNDETERMINED


def test_voice_without_channel_samples_is_undetermined():
    result = classify(loudness=30.0, dominant_frequency=300.0, pitch_samples=None)

    assert result.voice_register == VoiceRegister.UNDETERMINED


def test_non_voice_skips_pitch():
    result = classify(
        loudness=12.0,
        dominant_frequency=3000.0,
        max_magnitude=200.0,
        pitch_samples=generate_sine(150.0),
        sample_rate=SAMPLE_RATE,
    )

    assert result.estimated_pitch_hz == 0.0
    assert result.voice_register == VoiceRegister.NOT_APPLICABLE


@pytest.mark.parametrize(
    "loudness, expected",
    [
        (100.0, Distance.VERY_CLOSE),
        (70.1, Distance.VERY_CLOSE),
        (70.0, Distance.NEAR),
        (30.1, Distance.NEAR),
        (30.0, Distance.FAR),
        (5.1, Distance.FAR),
        (5.0, Distance.NO_SOUND),
        (0.0, Distance.NO_SOUND),
    ],
)
def test_distance_from_loudness(loudness, expected):
    assert estimate_distance(loudness) == expected
