"""Signal level helpers for 16-bit PCM audio."""

import numpy as np

SILENCE_FLOOR_DB = -100.0
FULL_SCALE = 32768.0


def rms_dbfs(pcm: bytes) -> float:
    """Return the RMS level of 16-bit little-endian PCM in dBFS.

    Args:
        pcm: Raw audio bytes (int16 samples)

    Returns:
        Level in dBFS, clamped to SILENCE_FLOOR_DB for empty or digital-silence input
    """
    if len(pcm) < 2:
        return SILENCE_FLOOR_DB

    samples = np.frombuffer(pcm[: len(pcm) - (len(pcm) % 2)], dtype=np.int16)
    rms = np.sqrt(np.mean(samples.astype(np.float64) ** 2))
    if rms <= 0:
        return SILENCE_FLOOR_DB

    return max(SILENCE_FLOOR_DB, float(20.0 * np.log10(rms / FULL_SCALE)))
