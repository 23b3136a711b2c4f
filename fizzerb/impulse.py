# fizzerb/impulse.py
"""Renderer for impulse responses.

Responses from many independently traced rays are summed into one sample
buffer indexed by arrival time. The buffer only ever grows. Accumulation is
not thread-safe: gather recordings in parallel, then add them one by one.
"""
from __future__ import annotations
from enum import Enum
from typing import Optional, Sequence
import logging
import math

import numpy as np

from . import config as _config
from .compressor import Compressor
from .diagnostics import DiagnosticsSink
from .physics import phase_sign
from .tracing import Response

logger = logging.getLogger(__name__)


class DepositPolicy(Enum):
    # buffer[p] += loudness * phase_sign(bounces)
    SINGLE = "single"
    # buffer[p] += loudness; buffer[p + 1] -= loudness
    DIFFERENTIAL = "differential"


class ImpulseRenderer:
    def __init__(self, sample_rate: float, deposit: DepositPolicy | str = DepositPolicy.SINGLE,
                 diagnostics: Optional[DiagnosticsSink] = None):
        if sample_rate <= 0:
            raise ValueError("sample_rate must be positive")
        self._sample_rate = float(sample_rate)
        self._sample_period = 1.0 / self._sample_rate
        self.deposit = DepositPolicy(deposit)
        self.diagnostics = diagnostics
        self._buffer = np.zeros(0, dtype=np.float32)
        self.responses_in_buffer = 0

    @property
    def sample_rate(self) -> float:
        return self._sample_rate

    @property
    def sample_period(self) -> float:
        return self._sample_period

    @property
    def buffer(self) -> np.ndarray:
        view = self._buffer.view()
        view.flags.writeable = False
        return view

    def __len__(self) -> int:
        return int(self._buffer.shape[0])

    def _position(self, response: Response) -> int:
        assert response.time > 0.0
        return int(math.floor(response.time / self._sample_period))

    def add_responses(self, responses: Sequence[Response]) -> None:
        """Adds the given bounce responses into the audio buffer.

        ``responses`` must be sorted by ascending time: the buffer is grown
        for the last response only. Out-of-order input that would land past
        the end raises ``ValueError`` before anything is written.
        """
        if not responses:
            return

        last_time = responses[-1].time
        assert last_time > 0.0
        required = int(math.ceil(last_time / self._sample_period)) + 2

        positions = [self._position(r) for r in responses]
        reach = 1 if self.deposit is DepositPolicy.DIFFERENTIAL else 0
        if max(positions) + reach >= max(required, len(self._buffer)):
            raise ValueError("responses must be sorted by ascending time")

        if len(self._buffer) < required:
            logger.debug("resizing sample buffer to %d", required)
            grown = np.zeros(required, dtype=np.float32)
            grown[: len(self._buffer)] = self._buffer
            self._buffer = grown

        buf = self._buffer
        if self.deposit is DepositPolicy.SINGLE:
            for p, r in zip(positions, responses):
                buf[p] += r.loudness * phase_sign(r.bounces)
        else:
            for p, r in zip(positions, responses):
                buf[p] += r.loudness
                buf[p + 1] -= r.loudness

        self.responses_in_buffer += 1
        if self.diagnostics is not None:
            self.diagnostics.emit("deposit", responses=len(responses), buffer=len(buf))

    def truncated(self) -> np.ndarray:
        """Copy of the buffer without its trailing near-silence."""
        output = self._buffer.copy()
        loud = np.flatnonzero(np.abs(output) > _config.SILENCE_THRESHOLD)
        length = int(loud[-1]) + 1 if loud.size else 0
        return output[:length]

    def render(self, gain: float, compressor: Compressor) -> np.ndarray:
        """Renders the audio buffer into a finished sample.

        The compressor reads the gained copy and writes into the un-gained
        one, which becomes the result.
        """
        output = self.truncated()
        logger.debug("rendering sample with length %d", len(output))

        input = output * np.float32(gain)
        compressor.run(input, output)
        return output
