"""Echo Mirror - real-time semantic sound descriptors.

A small library that turns a live audio stream into per-block descriptors
(loudness, dominant frequency, band profile, stereo direction, sound type,
distance, voice pitch) and debounced sound events.

Usage:
    from echo_mirror import Engine, GlobalConfig

    config = GlobalConfig.load("echo_mirror.yaml")
    engine = Engine.from_config(config, on_event=print)
    engine.start()
"""

__version__ = "1.0.0"

# Core exports
from echo_mirror.models import (
    AnalysisResult,
    Block,
    BlockOutcome,
    Direction,
    Distance,
    FrequencyRange,
    SoundEvent,
    SoundType,
    VoiceRegister,
)
from echo_mirror.pipeline import Analyzer
from echo_mirror.engine import Engine
from echo_mirror.listener import AudioListener
from echo_mirror.config import (
    AnalyzerSettings,
    AudioSettings,
    GlobalConfig,
    StorageSettings,
    configure_logging,
)
from echo_mirror.sink import EventPublisher, SinkError, SQLiteEventStore

__all__ = [
    # Version
    "__version__",
    # Core classes
    "Analyzer",
    "Engine",
    "AudioListener",
    # Configuration
    "AnalyzerSettings",
    "AudioSettings",
    "GlobalConfig",
    "StorageSettings",
    "configure_logging",
    # Models
    "AnalysisResult",
    "Block",
    "BlockOutcome",
    "Direction",
    "Distance",
    "FrequencyRange",
    "SoundEvent",
    "SoundType",
    "VoiceRegister",
    # Persistence
    "EventPublisher",
    "SinkError",
    "SQLiteEventStore",
]
