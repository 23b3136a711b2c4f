# fizzerb/audio.py
from __future__ import annotations
import io
import pathlib

import numpy as np
import soundfile as sf


def save_wav(path: str | pathlib.Path, y: np.ndarray, sr: int) -> pathlib.Path:
    """Write a mono 32-bit float WAV. Samples are written as-is (no normalization)."""
    p = pathlib.Path(path)
    sf.write(str(p), np.asarray(y, dtype=np.float32), int(sr), format="WAV", subtype="FLOAT")
    return p


def wav_bytes(y: np.ndarray, sr: int) -> io.BytesIO:
    """Same as :func:`save_wav` into an in-memory buffer."""
    buf = io.BytesIO()
    sf.write(buf, np.asarray(y, dtype=np.float32), int(sr), format="WAV", subtype="FLOAT")
    buf.seek(0)
    return buf
