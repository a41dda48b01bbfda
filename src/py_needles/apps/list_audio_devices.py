"""
Utility script to list all available audio input devices (microphones)
detected by the sounddevice library on the system.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2025
"""

import logging

from py_needles.hardware.selector import HardwareNotFound, HardwareSelector

logging.basicConfig(level=logging.INFO, format="%(message)s")


def main():
    """
    Logs every input device, marking the system default.
    """
    try:
        default_id = HardwareSelector().id
    except HardwareNotFound:
        default_id = None
    HardwareSelector.show_audio_devices(default_id)


if __name__ == "__main__":
    main()
