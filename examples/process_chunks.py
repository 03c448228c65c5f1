#!/usr/bin/env python3
"""Example: Process audio without microphone capture.

This example shows how to feed audio data directly to the engine,
useful for:
- Processing audio files
- Custom audio sources
- Testing and simulation
"""

import numpy as np
from echo_mirror import Engine, AudioSettings

SAMPLE_RATE = 44100


def generate_tone(frequency: float, duration: float, sample_rate: int) -> np.ndarray:
    """Generate a synthetic stereo tone, louder on the left."""
    t = np.arange(int(sample_rate * duration)) / sample_rate
    signal = np.sin(2 * np.pi * frequency * t) * 0.5
    stereo = np.column_stack([signal, signal * 0.3])
    # Convert to int16
    return (stereo * 32767).astype(np.int16)


def generate_clicks(duration: float, sample_rate: int) -> np.ndarray:
    """Generate sharp random clicks on both channels."""
    rng = np.random.default_rng(1)
    signal = rng.choice([-0.3, 0.3], size=int(sample_rate * duration))
    return (np.column_stack([signal, signal]) * 32767).astype(np.int16)


def generate_silence(duration: float, sample_rate: int) -> np.ndarray:
    """Generate silence."""
    return np.zeros((int(sample_rate * duration), 2), dtype=np.int16)


def main():
    audio_config = AudioSettings(sample_rate=SAMPLE_RATE, chunk_size=2048)

    events = []

    def on_event(event):
        events.append(event)
        print(f"🔔 {event.timestamp:5.2f}s {event.sound_type.label}")

    # Create engine
    engine = Engine(audio_config=audio_config, on_event=on_event)

    print("Generating synthetic scene...")

    # Voice-like hum, pause, clicks, pause, hum again
    full_audio = np.concatenate(
        [
            generate_tone(160, 1.0, SAMPLE_RATE),
            generate_silence(1.5, SAMPLE_RATE),
            generate_clicks(0.5, SAMPLE_RATE),
            generate_silence(1.5, SAMPLE_RATE),
            generate_tone(160, 1.0, SAMPLE_RATE),
        ]
    )

    print(f"Total audio length: {len(full_audio) / SAMPLE_RATE:.2f}s")
    print("Processing...")

    # Feed to engine chunk by chunk, with a synthetic clock
    chunk_size = audio_config.chunk_size
    last = None
    for i in range(0, len(full_audio) - chunk_size, chunk_size):
        chunk = full_audio[i : i + chunk_size]
        outcome = engine.process_chunk(chunk, now=i / SAMPLE_RATE)
        if outcome:
            last = outcome.result

    print(f"\nEvents: {len(events)}")
    if last:
        print(f"Last block: {last}")

    engine.close()


if __name__ == "__main__":
    main()
