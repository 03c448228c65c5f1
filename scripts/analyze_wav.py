#!/usr/bin/env python3
"""Run the analyzer over a WAV file and print the emitted events.

Usage:
    python scripts/analyze_wav.py recording.wav [--config echo_mirror.yaml] [--verbose]
"""

import argparse
import sys

import numpy as np
from scipy.io import wavfile

from echo_mirror import Engine, GlobalConfig, configure_logging
from echo_mirror.config import AudioSettings, SystemConfig


def to_float(data: np.ndarray) -> np.ndarray:
    """Convert integer PCM to float32 in [-1, 1]."""
    if data.dtype == np.uint8:
        return (data.astype(np.float32) - 128.0) / 128.0
    if np.issubdtype(data.dtype, np.integer):
        return data.astype(np.float32) / float(np.iinfo(data.dtype).max + 1)
    return data.astype(np.float32)


def main():
    parser = argparse.ArgumentParser(description="Offline Echo Mirror analysis of a WAV file")
    parser.add_argument("wav", help="Path to a WAV file")
    parser.add_argument("--config", help="Optional YAML config")
    parser.add_argument("--verbose", action="store_true", help="Print every block result")
    args = parser.parse_args()

    if args.config:
        config = GlobalConfig.load(args.config)
    else:
        config = GlobalConfig()
        config.storage.db_path = None
    configure_logging(config.system if args.config else SystemConfig(log_level="WARNING"))

    sample_rate, data = wavfile.read(args.wav)
    samples = to_float(data)
    channels = 1 if samples.ndim == 1 else samples.shape[1]

    # The file dictates rate and layout; chunking follows the config
    config.audio = AudioSettings(
        sample_rate=sample_rate,
        chunk_size=config.audio.chunk_size,
        fft_size=config.audio.fft_size,
        channels=channels,
    )

    events = []

    def on_result(result):
        if args.verbose:
            print(result)

    engine = Engine.from_config(config, on_result=on_result, on_event=events.append)

    chunk_size = config.audio.chunk_size
    total_chunks = len(samples) // chunk_size
    print(f"{args.wav}: {sample_rate} Hz, {channels} channel(s), {len(samples) / sample_rate:.2f}s")

    for i in range(total_chunks):
        chunk = samples[i * chunk_size : (i + 1) * chunk_size]
        engine.process_chunk(chunk, now=i * config.audio.block_duration)

    engine.close()

    print(f"\nEvents: {len(events)}")
    for event in events:
        print(f"  {event.timestamp:8.2f}s  {event.sound_type.label:<24} {event.frequency_hz:8.1f} Hz")

    return 0


if __name__ == "__main__":
    sys.exit(main())
