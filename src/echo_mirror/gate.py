"""Debounce gate turning analysis results into discrete sound events."""

import logging
from typing import Optional

from .config import DEFAULT_EVENT_COOLDOWN, EVENT_MIN_LOUDNESS
from .models import AnalysisResult, SoundEvent

logger = logging.getLogger(__name__)


class EventGate:
    """Emits at most one SoundEvent per cooldown window.

    Suppressed detections are dropped, never queued or replayed.
    """

    def __init__(
        self,
        cooldown: float = DEFAULT_EVENT_COOLDOWN,
        min_loudness: float = EVENT_MIN_LOUDNESS,
    ):
        """Initialize the gate.

        Args:
            cooldown: Minimum seconds between two emitted events
            min_loudness: Loudness an event must exceed
        """
        self.cooldown = cooldown
        self.min_loudness = min_loudness
        self.last_emission_time: Optional[float] = None

    def process(self, result: AnalysisResult, now: float) -> Optional[SoundEvent]:
        """Decide whether the result is a reportable event.

        Args:
            result: Analysis of the current block
            now: Wall-clock time in seconds

        Returns:
            The emitted SoundEvent, or None
        """
        if not result.sound_detected or result.loudness <= self.min_loudness:
            return None

        if self.last_emission_time is not None:
            elapsed = now - self.last_emission_time
            if elapsed <= self.cooldown:
                logger.debug(f"Event suppressed ({elapsed:.2f}s since last)")
                return None

        self.last_emission_time = now
        event = SoundEvent(
            timestamp=now,
            sound_type=result.sound_type,
            frequency_hz=result.dominant_frequency_hz,
        )
        logger.info(f"Sound event: {event}")
        return event
