"""
Centralized configuration management using Pydantic Settings.

This module defines the global meter settings, allowing values to be
overridden via environment variables or a .env file.

Usage:
    from py_needles.settings import get_settings
    print(get_settings().meter.offline_block_size)

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2025
"""

from functools import lru_cache

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


class AudioSettings(BaseModel):
    """General audio stream settings."""

    sample_rate: int = 48000
    buffer_seconds: float = 0.1
    channels: int = 1
    dtype: str = "float32"


class MeterSettings(BaseModel):
    """Control plane and backend hosting settings."""

    offline_block_size: int = 16384
    script_processor_block_size: int = 1024
    worklet_name: str = "meter-worklet"
    worker_queue_timeout_seconds: float = 0.1
    join_timeout_seconds: float = 2.0
    default_worker_endpoint: str = "py_needles.processing.loudness_processor:LoudnessProcessor"


class LoudnessSettings(BaseModel):
    """Windowing and gating constants used by the reference processor."""

    hop_seconds: float = 0.1
    momentary_window_seconds: float = 0.4
    short_term_window_seconds: float = 3.0
    absolute_gate_lufs: float = -70.0
    relative_gate_lu: float = -10.0
    lufs_lower_bound: float = -120.0


class Settings(BaseSettings):
    """
    Main settings class acting as the source of truth for the meter.

    Environment variables are prefixed with 'NEEDLES__'.
    Example: NEEDLES__METER__OFFLINE_BLOCK_SIZE=8192
    """

    model_config = SettingsConfigDict(
        env_prefix="NEEDLES__", env_nested_delimiter="__", env_file=".env", extra="ignore"
    )

    audio: AudioSettings = AudioSettings()
    meter: MeterSettings = MeterSettings()
    loudness: LoudnessSettings = LoudnessSettings()


@lru_cache
def get_settings() -> Settings:
    return Settings()
