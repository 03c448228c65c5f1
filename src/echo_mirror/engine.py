"""Main Engine class - orchestrates capture, analysis and event delivery."""

import logging
import threading
import time
from typing import Callable, Optional

import numpy as np

from .config import AnalyzerSettings, AudioSettings, GlobalConfig, StorageSettings
from .listener import AudioListener
from .models import AnalysisResult, BlockOutcome, Effect, SoundEvent
from .pipeline import Analyzer
from .processing.frames import FrameBuilder
from .sink import EventPublisher, EventSink, SQLiteEventStore

logger = logging.getLogger(__name__)


class Engine:
    """Echo Mirror sound analysis engine.

    Orchestrates the full pipeline:
    Audio Input -> Frame Builder -> Analyzer -> Callbacks / Event Publisher

    Example:
        >>> from echo_mirror import Engine, SQLiteEventStore
        >>>
        >>> engine = Engine(
        ...     sink=SQLiteEventStore("events.db"),
        ...     on_event=lambda event: print(f"EVENT: {event}"),
        ... )
        >>> engine.start()  # Blocking
    """

    def __init__(
        self,
        settings: Optional[AnalyzerSettings] = None,
        audio_config: Optional[AudioSettings] = None,
        sink: Optional[EventSink] = None,
        on_result: Optional[Callable[[AnalysisResult], None]] = None,
        on_event: Optional[Callable[[SoundEvent], None]] = None,
        on_effect: Optional[Callable[[Effect], None]] = None,
        storage: Optional[StorageSettings] = None,
    ):
        """Initialize the engine.

        Args:
            settings: Analyzer settings (sensitivity, noise gate, cooldown)
            audio_config: Audio capture settings (uses defaults if None)
            sink: Optional persistence target for emitted events
            on_result: Callback receiving every AnalysisResult
            on_event: Callback receiving each emitted SoundEvent
            on_effect: Callback receiving each requested alert/haptic effect
            storage: Queue and retry settings for the event publisher
        """
        self.settings = settings or AnalyzerSettings()
        self.audio_config = audio_config or AudioSettings()
        self.on_result = on_result
        self.on_event = on_event
        self.on_effect = on_effect

        self._running = False
        self._analyzer = Analyzer(self.settings)
        self._frames = FrameBuilder(self.audio_config.sample_rate, self.audio_config.fft_size)

        self._publisher: Optional[EventPublisher] = None
        if sink is not None:
            storage = storage or StorageSettings()
            self._publisher = EventPublisher(
                sink,
                max_queue=storage.queue_size,
                retry_attempts=storage.retry_attempts,
                retry_base_seconds=storage.retry_base_seconds,
                retry_max_seconds=storage.retry_max_seconds,
            )
            self._publisher.start()

        # Audio listener (created on start)
        self._listener: Optional[AudioListener] = None

        logger.info(
            f"Engine initialized: {self.audio_config.sample_rate}Hz, "
            f"chunk={self.audio_config.chunk_size}, fft={self.audio_config.fft_size}, "
            f"channels={self.audio_config.channels}"
        )

    @classmethod
    def from_config(cls, config: GlobalConfig, **callbacks) -> "Engine":
        """Create an engine from a loaded GlobalConfig.

        Persistence is enabled when ``config.storage.db_path`` is set.
        """
        sink = None
        if config.storage.db_path:
            sink = SQLiteEventStore(config.storage.db_path)
        return cls(
            settings=config.analyzer,
            audio_config=config.audio,
            sink=sink,
            storage=config.storage,
            **callbacks,
        )

    def process_chunk(
        self, audio_chunk: np.ndarray, now: Optional[float] = None
    ) -> Optional[BlockOutcome]:
        """Process a single audio chunk through the pipeline.

        This can be called directly if you're handling audio capture yourself.

        Args:
            audio_chunk: Samples shaped (frames,) or (frames, channels)
            now: Wall-clock time in seconds (defaults to time.time())

        Returns:
            The BlockOutcome, or None if the chunk was skipped
        """
        if now is None:
            now = time.time()

        block = self._frames.build(audio_chunk)
        if block is None:
            return None

        outcome = self._analyzer.process_block(block, now)
        if outcome is None:
            return None

        self._dispatch(outcome)
        return outcome

    def _dispatch(self, outcome: BlockOutcome) -> None:
        """Hand the outcome to callbacks and the publisher without waiting."""
        if self.on_result:
            try:
                self.on_result(outcome.result)
            except Exception as e:
                logger.error(f"Error in on_result callback: {e}")

        if self.on_effect:
            for effect in outcome.effects:
                try:
                    self.on_effect(effect)
                except Exception as e:
                    logger.error(f"Error in on_effect callback: {e}")

        if outcome.event is None:
            return

        if self._publisher:
            self._publisher.publish(outcome.event)

        if self.on_event:
            try:
                self.on_event(outcome.event)
            except Exception as e:
                logger.error(f"Error in on_event callback: {e}")

    def set_sensitivity(self, percent: float) -> None:
        """Set sensitivity on the 0-100 scale; applies from the next block."""
        self.settings.set_sensitivity_percent(percent)

    def set_ignore_ambient_noise(self, enabled: bool) -> None:
        """Toggle the noise gate; applies from the next block."""
        self.settings.ignore_ambient_noise = bool(enabled)

    def start(self) -> None:
        """Start the engine with audio capture (blocking).

        This will block the current thread and capture audio until stop() is called.
        """
        self._listener = AudioListener(self.audio_config, self.process_chunk)

        if not self._listener.setup():
            logger.error("Failed to setup audio listener")
            return

        self._running = True

        try:
            self._listener.start()
        except KeyboardInterrupt:
            logger.info("Keyboard interrupt received")
        finally:
            self.stop()

    def start_async(self) -> threading.Thread:
        """Start the engine in a background thread.

        Returns:
            The background thread (already started)
        """
        thread = threading.Thread(target=self.start, daemon=True)
        thread.start()
        return thread

    def stop(self) -> None:
        """Stop capture and reset running state.

        The event publisher keeps running so a restarted engine can keep
        delivering events; call close() to shut it down.
        """
        self._running = False

        if self._listener:
            self._listener.stop()
            self._listener.cleanup()
            self._listener = None

        self._analyzer.reset()
        self._frames.reset()
        logger.info("Engine stopped")

    def close(self) -> None:
        """Stop the engine and flush pending events to the sink."""
        self.stop()
        if self._publisher:
            self._publisher.stop()
            self._publisher = None

    @property
    def analyzer(self) -> Analyzer:
        """The underlying per-block analyzer."""
        return self._analyzer

    @property
    def is_running(self) -> bool:
        """Check if the engine is currently capturing audio."""
        return self._running
