"""End-to-end tests for the per-block analyzer."""

import numpy as np
import pytest

from echo_mirror.config import AnalyzerSettings
from echo_mirror.models import (
    Block,
    Direction,
    Distance,
    FrequencyRange,
    SoundType,
    VoiceRegister,
)
from echo_mirror.pipeline import Analyzer
from echo_mirror.processing.frames import FrameBuilder

SAMPLE_RATE = 44100
FFT_SIZE = 2048


def silent_block(channels: int = 2) -> Block:
    return Block(
        sample_rate=SAMPLE_RATE,
        magnitude_spectrum=np.zeros(FFT_SIZE // 2, dtype=np.uint8),
        waveform=np.full(FFT_SIZE, 128, dtype=np.uint8),
        channel_samples=[np.zeros(FFT_SIZE) for _ in range(channels)],
    )


def generate_stereo_tone(
    frequency: float, left: float = 0.5, right: float = 0.5, size: int = FFT_SIZE
) -> np.ndarray:
    """Generate a (size, 2) float32 chunk with per-channel amplitudes."""
    t = np.arange(size) / SAMPLE_RATE
    tone = np.sin(2 * np.pi * frequency * t)
    return np.column_stack([left * tone, right * tone]).astype(np.float32)


def tone_block(frequency: float, left: float = 0.5, right: float = 0.5) -> Block:
    return FrameBuilder(SAMPLE_RATE, FFT_SIZE).build(generate_stereo_tone(frequency, left, right))


def test_silent_block():
    outcome = Analyzer().process_block(silent_block(), now=0.0)

    result = outcome.result
    assert result.loudness == 0.0
    assert not result.sound_detected
    assert result.sound_type == SoundType.AMBIENT
    assert result.confidence == 40
    assert result.estimated_distance == Distance.NO_SOUND
    assert result.direction == Direction.UNAVAILABLE
    assert result.frequency_range == FrequencyRange.UNKNOWN
    assert result.dominant_frequency_hz == 0.0
    assert result.estimated_pitch_hz == 0.0
    assert result.voice_register == VoiceRegister.NOT_APPLICABLE
    assert outcome.effects == ()
    assert outcome.event is None


@pytest.mark.parametrize("channels", [0, 1, 2])
def test_any_channel_count_is_accepted(channels):
    outcome = Analyzer().process_block(silent_block(channels), now=0.0)

    assert outcome is not None
    assert outcome.result.direction == Direction.UNAVAILABLE


def test_empty_block_is_skipped_without_touching_peaks():
    analyzer = Analyzer()
    analyzer.process_block(tone_block(150), now=0.0)
    peaks_before = (analyzer.peaks.peak_loudness, analyzer.peaks.peak_dominant_frequency)

    empty = Block(
        sample_rate=SAMPLE_RATE,
        magnitude_spectrum=np.array([], dtype=np.uint8),
        waveform=np.array([], dtype=np.uint8),
    )

    assert analyzer.process_block(empty, now=1.0) is None
    assert (analyzer.peaks.peak_loudness, analyzer.peaks.peak_dominant_frequency) == peaks_before


def test_loud_voice_block():
    outcome = Analyzer().process_block(tone_block(150, left=0.5, right=0.5), now=0.0)

    result = outcome.result
    assert result.sound_type == SoundType.VOICE
    assert result.loudness > 50
    assert 80 < result.dominant_frequency_hz < 250
    assert result.frequency_range == FrequencyRange.LOW
    assert result.direction == Direction.CENTER
    assert result.estimated_pitch_hz == pytest.approx(150, abs=2)
    assert result.voice_register == VoiceRegister.MID_PITCHED
    assert len(outcome.effects) == 2
    assert outcome.event is not None
    assert outcome.event.sound_type == SoundType.VOICE


def test_direction_follows_louder_channel():
    outcome = Analyzer().process_block(tone_block(150, left=0.6, right=0.2), now=0.0)

    assert outcome.result.direction == Direction.LEFT


def test_stacked_channel_array_is_accepted():
    block = tone_block(150, left=0.6, right=0.2)
    left, right = block.channel_samples
    stacked = Block(
        sample_rate=block.sample_rate,
        magnitude_spectrum=block.magnitude_spectrum,
        waveform=block.waveform,
        channel_samples=np.stack([left, right]),
    )

    outcome = Analyzer().process_block(stacked, now=0.0)

    assert outcome.result.direction == Direction.LEFT
    assert outcome.result.sound_type == SoundType.VOICE
    assert outcome.result.estimated_pitch_hz == pytest.approx(150, abs=2)


def test_empty_stacked_channel_array_is_accepted():
    block = silent_block(channels=0)
    block.channel_samples = np.empty((0, FFT_SIZE))

    outcome = Analyzer().process_block(block, now=0.0)

    assert outcome.result.direction == Direction.UNAVAILABLE


def test_peaks_decay_after_loud_block():
    analyzer = Analyzer()

    loud = analyzer.process_block(tone_block(150), now=0.0).result
    quiet = analyzer.process_block(silent_block(), now=0.1).result

    assert quiet.loudness == 0.0
    assert quiet.peak_loudness == pytest.approx(loud.loudness * 0.98)
    assert quiet.peak_dominant_frequency_hz == pytest.approx(loud.dominant_frequency_hz * 0.99)
    assert analyzer.peaks.peak_loudness == quiet.peak_loudness


def test_reset_clears_peaks():
    analyzer = Analyzer()
    analyzer.process_block(tone_block(150), now=0.0)

    analyzer.reset()

    assert analyzer.peaks.peak_loudness == 0.0
    assert analyzer.peaks.peak_dominant_frequency == 0.0


def test_settings_apply_on_next_block():
    settings = AnalyzerSettings()
    analyzer = Analyzer(settings)
    block = tone_block(150)

    assert analyzer.process_block(block, now=0.0).result.loudness > 0

    settings.set_sensitivity_percent(0)

    assert analyzer.process_block(block, now=0.1).result.loudness == 0.0


def test_noise_gate_setting():
    settings = AnalyzerSettings(ignore_ambient_noise=True)
    analyzer = Analyzer(settings)

    outcome = analyzer.process_block(tone_block(150, left=0.01, right=0.01), now=0.0)

    assert outcome.result.loudness == 0.0
    assert outcome.result.estimated_distance == Distance.NO_SOUND


def test_event_cooldown_across_blocks():
    analyzer = Analyzer()
    block = tone_block(150)

    events = [analyzer.process_block(block, now=t).event for t in (0.0, 0.5, 1.9, 2.5, 3.0)]

    emitted = [e.timestamp for e in events if e is not None]
    assert emitted == [0.0, 2.5]


def test_transient_block():
    # Alternating samples: maximal sample-to-sample change
    waveform = np.array([108, 148] * (FFT_SIZE // 2), dtype=np.uint8)
    spectrum = np.zeros(FFT_SIZE // 2, dtype=np.uint8)
    spectrum[84] = 200  # ~1809 Hz
    block = Block(SAMPLE_RATE, spectrum, waveform, [])

    outcome = Analyzer().process_block(block, now=0.0)

    # rms 20/128 * 200 = 31.25
    assert outcome.result.loudness == pytest.approx(31.25)
    assert outcome.result.sound_type == SoundType.TRANSIENT
    assert outcome.result.confidence == 85
    assert outcome.result.frequency_range == FrequencyRange.MID
    assert outcome.result.estimated_distance == Distance.NEAR
