# fizzerb/compressor.py
from __future__ import annotations
from dataclasses import dataclass

import numpy as np

from .config import CompressorConfig


@dataclass
class Compressor:
    """Single-pass limiter with instant attack and linear release.

    ``release`` is scaled by the sample rate (not divided by it): the
    compression amount drops by ``sample_rate * release`` every sample.
    """

    sample_rate: float = 48000.0
    threshold: float = 0.8
    release: float = 2.0

    @classmethod
    def from_config(cls, cfg: CompressorConfig) -> "Compressor":
        return cls(float(cfg.sample_rate), float(cfg.threshold), float(cfg.release))

    @property
    def release_per_sample(self) -> float:
        return float(self.sample_rate) * float(self.release)

    def run(self, input: np.ndarray, output: np.ndarray) -> None:
        """Writes the compressed ``input`` into ``output`` (same length)."""
        assert len(input) == len(output), "compressor input and output lengths differ"

        release_per_sample = self.release_per_sample
        threshold = float(self.threshold)
        compression = 0.0

        for i, sample in enumerate(input):
            sample = float(sample)
            over_threshold = max(abs(sample) - threshold, 0.0)
            compression = max(compression, over_threshold)

            loudness = max(1.0 - compression, 0.0)
            output[i] = sample * loudness

            compression = max(compression - release_per_sample, 0.0)

    def process(self, input: np.ndarray) -> np.ndarray:
        x = np.asarray(input, dtype=np.float32)
        out = np.empty_like(x)
        self.run(x, out)
        return out
