#!/usr/bin/env python3
"""Example: Live sound monitoring.

This example shows how to use Echo Mirror to describe microphone input
in real time and log debounced sound events to SQLite.
"""

import logging
from echo_mirror import Engine, AnalyzerSettings, AudioSettings, SQLiteEventStore
from echo_mirror.models import Alert, Haptic

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s | %(levelname)-8s | %(message)s", datefmt="%H:%M:%S"
)


def on_result(result):
    """Callback for every analysed block."""
    if result.sound_detected:
        print(f"\r{result}", end="", flush=True)


def on_event(event):
    """Callback when a sound event is emitted."""
    print(f"\n🔔 EVENT: {event.sound_type.label} at {event.frequency_hz:.0f} Hz\n")


def on_effect(effect):
    """Callback for requested feedback effects."""
    # Here you could:
    # - Flash a screen overlay
    # - Drive a vibration motor
    if isinstance(effect, Alert):
        print(f"\n⚡ ALERT ({effect.kind.value}) for {effect.duration_ms} ms")
    elif isinstance(effect, Haptic):
        print(f"\n📳 HAPTIC {list(effect.pattern)}")


def main():
    settings = AnalyzerSettings(ignore_ambient_noise=True)
    settings.set_sensitivity_percent(60)

    # Create the engine
    engine = Engine(
        settings=settings,
        audio_config=AudioSettings(
            sample_rate=44100,
            chunk_size=2048,
            channels=2,
        ),
        sink=SQLiteEventStore("echo_mirror.db"),
        on_result=on_result,
        on_event=on_event,
        on_effect=on_effect,
    )

    print("🎤 Starting audio capture...")
    print("   Press Ctrl+C to stop\n")

    # Start listening (blocking)
    try:
        engine.start()
    except KeyboardInterrupt:
        print("\n👋 Stopping...")
    finally:
        engine.close()


if __name__ == "__main__":
    main()
