"""
A module for discovering and selecting audio input devices (microphones)
using the sounddevice library. It selects the system's default microphone or
a specific one by ID, and reports its native sample rate and channel count.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2025
"""

import logging

import sounddevice as sd

logger = logging.getLogger(__name__)


class HardwareNotFound(Exception):
    """Custom exception raised when a specified audio device cannot be found."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class HardwareSelector:
    """A class to handle the selection and validation of an audio input device."""

    def __init__(self, target_id: int | None = None):
        """
        Initializes the selector and finds the specified audio device.

        If a target ID is provided, it gets a matching input device.
        If the target is None, it selects the system's default input device.

        :param target_id: The ID of the microphone to select.
        :raises HardwareNotFound: If no input device matches the target ID.
        """
        self.data: dict = self._get_audio_device(target_id)
        self.id: int = self.data["index"]
        self.name: str = self.data["name"]
        self.native_rate: float = float(self.data.get("default_samplerate", 0.0))
        self.max_input_channels: int = int(self.data.get("max_input_channels", 1))
        self.is_default: bool = self.name == "default"

    def _get_audio_device(self, target_id: int | None = None) -> dict:
        """
        Queries the system for available devices and returns the desired one.

        :param target_id: The ID of the device to search for.
        :return: A dictionary containing the device's information.
        :raises HardwareNotFound: If the target device is not found.
        """
        audio_devices: list[dict] = list(sd.query_devices())

        if target_id is None:
            default_audio_device_id = sd.default.device[0]
            logger.info(f"No target specified. Selecting default input device (ID: {default_audio_device_id})...")
            device = next((d for d in audio_devices if d["index"] == default_audio_device_id), None)
        else:
            logger.info(f"Searching for an input device index '{target_id}'...")
            device = next(
                (d for d in audio_devices if d["index"] == target_id and d["max_input_channels"] > 0),
                None,
            )

        if device is None:
            HardwareSelector.show_audio_devices()
            raise HardwareNotFound(message=f"Input device {target_id} not found.")

        logger.info(f"✅ Found device: {device['name']}")
        return device

    @staticmethod
    def show_audio_devices(selected_id: int | None = None):
        """
        Logs a formatted list of all available input devices.

        :param selected_id: The ID of the device to highlight with a '>' marker.
        """
        logger.info("--- Listing all available input audio devices ---")
        input_devices_found = False
        for audio_device in sd.query_devices():
            if audio_device["max_input_channels"] > 0:
                input_devices_found = True
                marker = ">" if audio_device["index"] == selected_id else " "
                logger.info(
                    f"{marker} ID {audio_device['index']} - {audio_device['name']} "
                    f"({audio_device['max_input_channels']} ch, {audio_device['default_samplerate']:.0f} Hz)"
                )

        if not input_devices_found:
            logger.info("No input devices were found on this system.")
