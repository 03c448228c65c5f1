"""Configuration for the echo mirror analyzer.

This module centralizes the analysis thresholds, the runtime settings that
may change between blocks (sensitivity, noise gate), and the unified
global configuration file covering logging, audio capture, analysis and
event storage.

The thresholds below are empirically tuned values. They are kept as named
constants so behavior stays reproducible across versions.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

import yaml

logger = logging.getLogger(__name__)

# Loudness
LOUDNESS_DISPLAY_SCALE = 200.0  # RMS -> display units, max around 200
NOISE_GATE_LEVEL = 5.0
SOUND_PRESENCE_LEVEL = 5.0
LOUDNESS_PEAK_DECAY = 0.98

# Spectrum
MIN_DOMINANT_FREQUENCY = 20.0  # Hz
LOW_BAND_LIMIT = 500.0  # Hz
MID_BAND_LIMIT = 2000.0  # Hz
HIGH_BAND_LIMIT = 6000.0  # Hz, typical laptop mic range
FREQUENCY_PEAK_DECAY = 0.99

# Direction
DIRECTION_RATIO_THRESHOLD = 0.15

# Pitch
MIN_PITCH_FREQUENCY = 70.0  # Hz
MAX_PITCH_FREQUENCY = 600.0  # Hz
PITCH_CORRELATION_FLOOR = 0.7  # Fraction of zero-lag autocorrelation
PITCH_MIN_LOUDNESS = 15.0
HIGH_REGISTER_PITCH = 250.0
MID_REGISTER_PITCH = 120.0
LOW_REGISTER_PITCH = 70.0

# Sound type rules
TRANSIENT_THRESHOLD = 0.1
TRANSIENT_MIN_FREQUENCY = 1500.0
TRANSIENT_MIN_LOUDNESS = 30.0
VOICE_MIN_FREQUENCY = 80.0
VOICE_MAX_FREQUENCY = 2800.0
VOICE_MIN_LOUDNESS = 15.0
LOUD_VOICE_LOUDNESS = 50.0
TONE_MIN_MAGNITUDE = 120.0
TONE_MIN_LOUDNESS = 10.0

AMBIENT_QUIET_CONFIDENCE = 40
TRANSIENT_CONFIDENCE = 85
VOICE_CONFIDENCE = 75
TONE_CONFIDENCE = 65
AMBIENT_CONFIDENCE = 50

TRANSIENT_HAPTIC_PATTERN = (100, 50, 100)  # ms on/off/on
LOUD_VOICE_HAPTIC_PATTERN = (200,)
ALERT_DURATION_MS = 200

# Distance
VERY_CLOSE_LOUDNESS = 70.0
NEAR_LOUDNESS = 30.0
FAR_LOUDNESS = 5.0

# Event gate
EVENT_MIN_LOUDNESS = 10.0
DEFAULT_EVENT_COOLDOWN = 2.0  # seconds

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"


@dataclass
class SystemConfig:
    """System-level configuration settings.

    Attributes:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path to a log file.
    """

    log_level: str = "INFO"
    log_file: Optional[str] = None


@dataclass
class AudioSettings:
    """Audio capture configuration settings.

    Attributes:
        sample_rate: Audio sampling rate in Hz.
        chunk_size: Number of frames per capture buffer (one block).
        fft_size: Transform size used to derive the spectrum and waveform.
        device_index: Specific audio device index (None for default).
        channels: Number of audio channels (2 enables direction estimates).
    """

    sample_rate: int = 44100
    chunk_size: int = 2048
    fft_size: int = 2048
    device_index: Optional[int] = None
    channels: int = 2

    @property
    def block_duration(self) -> float:
        """Time budget for processing one block, in seconds."""
        return self.chunk_size / self.sample_rate


@dataclass
class AnalyzerSettings:
    """Runtime settings read by the analyzer on every block.

    Attributes:
        sensitivity: Loudness gain factor in [0, 1]; 0.5 is unity gain.
        ignore_ambient_noise: Zero out loudness below the noise gate level.
        event_cooldown: Minimum seconds between two emitted sound events.
    """

    sensitivity: float = 0.5
    ignore_ambient_noise: bool = False
    event_cooldown: float = DEFAULT_EVENT_COOLDOWN

    def set_sensitivity_percent(self, percent: float) -> None:
        """Set sensitivity from the external 0-100 scale."""
        self.sensitivity = min(1.0, max(0.0, float(percent) / 100.0))
        logger.debug(f"Sensitivity set to {self.sensitivity:.2f}")


@dataclass
class StorageSettings:
    """Event persistence settings.

    Attributes:
        db_path: SQLite database file, or None to disable persistence.
        queue_size: Maximum number of events waiting to be written.
        retry_attempts: Total write attempts per event, including the first.
        retry_base_seconds: Initial backoff between attempts.
        retry_max_seconds: Backoff cap.
        recent_limit: Default number of events returned by list_recent.
    """

    db_path: Optional[str] = "echo_mirror.db"
    queue_size: int = 64
    retry_attempts: int = 3
    retry_base_seconds: float = 0.5
    retry_max_seconds: float = 5.0
    recent_limit: int = 10


@dataclass
class GlobalConfig:
    """Unified configuration for the entire application.

    Serves as the single source of truth, loaded from one YAML file.
    """

    system: SystemConfig = field(default_factory=SystemConfig)
    audio: AudioSettings = field(default_factory=AudioSettings)
    analyzer: AnalyzerSettings = field(default_factory=AnalyzerSettings)
    storage: StorageSettings = field(default_factory=StorageSettings)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "GlobalConfig":
        """Load the global configuration from a YAML file.

        The YAML file should have the following structure:
        ```yaml
        system:
          log_level: INFO
        audio:
          sample_rate: 44100
          channels: 2
        analyzer:
          sensitivity: 50        # 0-100
          ignore_ambient_noise: false
        storage:
          db_path: echo_mirror.db
        ```

        Args:
            path: Path to the configuration YAML file.

        Returns:
            A GlobalConfig object populated with the settings.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> "GlobalConfig":
        """Build a GlobalConfig from an already parsed mapping."""
        # 1. System
        sys_data = data.get("system") or {}
        system_config = SystemConfig(
            log_level=sys_data.get("log_level", "INFO"),
            log_file=sys_data.get("log_file"),
        )

        # 2. Audio
        audio_data = data.get("audio") or {}
        chunk_size = int(audio_data.get("chunk_size", 2048))
        audio_config = AudioSettings(
            sample_rate=int(audio_data.get("sample_rate", 44100)),
            chunk_size=chunk_size,
            fft_size=int(audio_data.get("fft_size", chunk_size)),
            device_index=audio_data.get("device_index"),
            channels=int(audio_data.get("channels", 2)),
        )

        # 3. Analyzer (sensitivity is given on the 0-100 scale)
        analyzer_data = data.get("analyzer") or {}
        analyzer_config = AnalyzerSettings(
            ignore_ambient_noise=bool(analyzer_data.get("ignore_ambient_noise", False)),
            event_cooldown=float(analyzer_data.get("event_cooldown", DEFAULT_EVENT_COOLDOWN)),
        )
        analyzer_config.set_sensitivity_percent(analyzer_data.get("sensitivity", 50))

        # 4. Storage
        storage_data = data.get("storage") or {}
        defaults = StorageSettings()
        storage_config = StorageSettings(
            db_path=storage_data.get("db_path", defaults.db_path),
            queue_size=int(storage_data.get("queue_size", defaults.queue_size)),
            retry_attempts=int(storage_data.get("retry_attempts", defaults.retry_attempts)),
            retry_base_seconds=float(
                storage_data.get("retry_base_seconds", defaults.retry_base_seconds)
            ),
            retry_max_seconds=float(
                storage_data.get("retry_max_seconds", defaults.retry_max_seconds)
            ),
            recent_limit=int(storage_data.get("recent_limit", defaults.recent_limit)),
        )

        if audio_config.fft_size % 2:
            logger.warning(f"Odd fft_size {audio_config.fft_size}; rounding down")
            audio_config.fft_size -= 1

        return cls(
            system=system_config,
            audio=audio_config,
            analyzer=analyzer_config,
            storage=storage_config,
        )


def configure_logging(system: SystemConfig) -> None:
    """Apply the system logging settings to the root logger."""
    handlers = [logging.StreamHandler()]
    if system.log_file:
        handlers.append(logging.FileHandler(system.log_file))

    logging.basicConfig(
        level=getattr(logging, system.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=handlers,
        force=True,
    )
