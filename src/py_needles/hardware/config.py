"""
Defines configuration data structure for audio input devices.

This module holds settings such as sample rate, block size, channel count,
data type, and device ID used for opening audio streams.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2025
"""

import logging

from ..settings import get_settings
from .selector import HardwareSelector

logger = logging.getLogger(__name__)

settings = get_settings()


class HardwareConfig:
    """
    Data class to store and manage configuration parameters for an audio input stream.

    This class consolidates all settings required by `sounddevice.InputStream`
    into a single, structured object. It calculates the `block_size` based on
    sample rate and buffer duration.
    """

    def __init__(
        self,
        target_audio_device: HardwareSelector,
        sample_rate: float,
        buffer_seconds: float,
        channels: int | None = None,
        dtype: str | None = None,
    ):
        """
        Initializes the audio device configuration object.

        :param target_audio_device: The selected input device (needs an 'id' attribute).
        :param sample_rate: The desired sample rate for the audio stream in Hertz (Hz).
        :param buffer_seconds: The desired duration of each audio chunk in seconds.
                               Short buffers keep the meter responsive.
        :param channels: Number of input channels to capture. Defaults to settings.
        :param dtype: The desired data type for the audio samples. Defaults to settings.
        """
        self.id = target_audio_device.id
        self.sample_rate = sample_rate
        self.buffer_seconds = buffer_seconds
        self.channels = channels or settings.audio.channels
        self.dtype = dtype or settings.audio.dtype
        self.block_size = int(sample_rate * buffer_seconds)

        logger.debug(
            f"HardwareConfig initialized: Device ID={self.id}, SR={self.sample_rate}, "
            f"Blocksize={self.block_size}, Channels={self.channels}, Dtype={self.dtype}"
        )
