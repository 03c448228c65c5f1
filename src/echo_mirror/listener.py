"""Audio listener component for capturing microphone input."""

import logging
from typing import Callable, Optional

import numpy as np

from .config import AudioSettings

try:
    import pyaudio

    HAS_PYAUDIO = True
except ImportError:
    HAS_PYAUDIO = False

logger = logging.getLogger(__name__)


class AudioListener:
    """Captures float32 audio blocks from an input device.

    Each chunk is delivered to the callback shaped (frames, channels).
    """

    def __init__(self, config: AudioSettings, on_audio_chunk: Callable[[np.ndarray], None]):
        """Initialize the audio listener.

        Args:
            config: Audio capture settings
            on_audio_chunk: Callback receiving each captured chunk
        """
        if not HAS_PYAUDIO:
            raise ImportError(
                "PyAudio is required for audio capture. Install it with: pip install pyaudio"
            )

        self.config = config
        self.on_audio_chunk = on_audio_chunk
        self._pyaudio: Optional["pyaudio.PyAudio"] = None
        self._stream = None
        self._running = False
        self.channels = config.channels

    def setup(self) -> bool:
        """Initialize PyAudio and open the input stream.

        Falls back to mono when the device offers fewer channels than
        requested; direction is then reported as unavailable.

        Returns:
            True if successful, False otherwise
        """
        try:
            logger.info("Initializing PyAudio...")
            self._pyaudio = pyaudio.PyAudio()
            self._list_devices()

            if self.config.device_index is not None:
                max_inputs = self._input_channels(self.config.device_index)
                if max_inputs == 0:
                    return False
                logger.info(f"Using audio device index: {self.config.device_index}")
            else:
                max_inputs = int(
                    self._pyaudio.get_default_input_device_info().get("maxInputChannels", 1)
                )
                logger.info("Using default audio device")

            self.channels = max(1, min(self.config.channels, max_inputs))
            if self.channels < self.config.channels:
                logger.warning(
                    f"Device offers {max_inputs} input channel(s); "
                    f"capturing {self.channels} instead of {self.config.channels}"
                )

            self._stream = self._pyaudio.open(
                format=pyaudio.paFloat32,
                channels=self.channels,
                rate=self.config.sample_rate,
                input=True,
                input_device_index=self.config.device_index,
                frames_per_buffer=self.config.chunk_size,
            )
            logger.info("Audio stream opened successfully")
            return True

        except Exception as e:
            logger.error(f"Failed to initialize audio: {e}")
            return False

    def _input_channels(self, device_index: int) -> int:
        """Return the number of input channels of a device, 0 if unusable."""
        try:
            dev_info = self._pyaudio.get_device_info_by_host_api_device_index(0, device_index)
            inputs = int(dev_info.get("maxInputChannels", 0))
            if inputs == 0:
                logger.error(f"Device index {device_index} has no input channels!")
                return 0
            logger.info(f"Device: {dev_info.get('name')} (Inputs: {inputs})")
            return inputs
        except Exception as e:
            logger.error(f"Invalid device index {device_index}: {e}")
            return 0

    def _list_devices(self) -> None:
        """List all available audio input devices."""
        logger.info("-" * 40)
        logger.info("AVAILABLE AUDIO DEVICES:")
        try:
            if not self._pyaudio:
                return

            info = self._pyaudio.get_host_api_info_by_index(0)
            num_devices = info.get("deviceCount", 0)

            if num_devices == 0:
                logger.warning("No audio devices found!")
                return

            for i in range(num_devices):
                device_info = self._pyaudio.get_device_info_by_host_api_device_index(0, i)
                if device_info.get("maxInputChannels", 0) > 0:
                    logger.info(
                        f"  Index {i}: {device_info.get('name')} "
                        f"(Inputs: {device_info.get('maxInputChannels')})"
                    )
        except Exception as e:
            logger.error(f"Could not list devices: {e}")
        logger.info("-" * 40)

    def start(self) -> None:
        """Start the audio capture loop (blocking)."""
        if not self._stream:
            logger.error("Audio stream not initialized. Call setup() first.")
            return

        self._running = True
        logger.info("Listener started - capturing audio...")

        try:
            while self._running:
                audio_data = self._stream.read(self.config.chunk_size, exception_on_overflow=False)
                audio_chunk = np.frombuffer(audio_data, dtype=np.float32)
                self.on_audio_chunk(audio_chunk.reshape(-1, self.channels))

        except Exception as e:
            if self._running:
                logger.error(f"Error in audio capture loop: {e}", exc_info=True)

    def stop(self) -> None:
        """Stop the audio capture loop."""
        self._running = False
        logger.info("Listener stopping...")

    def cleanup(self) -> None:
        """Release audio resources."""
        logger.info("Cleaning up audio resources...")

        if self._stream:
            try:
                self._stream.stop_stream()
                self._stream.close()
            except Exception as e:
                logger.debug(f"Error closing stream: {e}")
            self._stream = None

        if self._pyaudio:
            try:
                self._pyaudio.terminate()
            except Exception as e:
                logger.debug(f"Error terminating PyAudio: {e}")
            self._pyaudio = None

        logger.info("Audio cleanup complete")
