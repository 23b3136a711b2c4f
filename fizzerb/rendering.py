# fizzerb/rendering.py
"""Impulse response rendering procedure.

Per microphone: trace ``settings.samples`` rays in a worker pool (each trace
only reads the space and returns its own Recording), join, mix the
recordings into one ImpulseRenderer on the calling thread, compress, and
write a WAV file.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, List, Optional
import concurrent.futures
import logging
import pathlib
import time

import numpy as np

from .audio import save_wav
from .compressor import Compressor
from .config import RenderSettings
from .diagnostics import DiagnosticsSink
from .impulse import ImpulseRenderer
from .physics import sample_directions
from .space import MicrophoneIndex, Space, SpeakerIndex
from .tracing import Recording, Tracer

logger = logging.getLogger(__name__)


@dataclass
class RenderResult:
    microphone: MicrophoneIndex
    samples: np.ndarray
    path: Optional[pathlib.Path] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None


def gather_recordings(
    tracer: Tracer,
    microphone: MicrophoneIndex,
    speaker: SpeakerIndex,
    directions: Iterable[np.ndarray],
    executor: Optional[concurrent.futures.Executor] = None,
) -> List[Recording]:
    """Trace one ray per direction. Result order carries no meaning."""
    def trace(direction):
        return tracer.perform_trace(microphone, speaker, direction)

    if executor is None:
        return [trace(d) for d in directions]
    return list(executor.map(trace, directions))


def mix_recordings(recordings: Iterable[Recording], settings: RenderSettings,
                   diagnostics: Optional[DiagnosticsSink] = None) -> ImpulseRenderer:
    renderer = ImpulseRenderer(float(settings.sample_rate), settings.deposit, diagnostics)
    for recording in recordings:
        renderer.add_responses(recording.responses)
    return renderer


def trace_microphone(
    space: Space,
    microphone: MicrophoneIndex,
    speaker: SpeakerIndex,
    settings: RenderSettings,
    rng: np.random.Generator,
    executor: Optional[concurrent.futures.Executor] = None,
    diagnostics: Optional[DiagnosticsSink] = None,
) -> np.ndarray:
    """Rendered impulse response of one microphone for one speaker."""
    tracer = Tracer(space, settings.tracer_config(), diagnostics)
    # Directions are drawn here so results do not depend on thread scheduling
    directions = sample_directions(int(settings.samples), rng)

    logger.debug("gathering recordings")
    started = time.perf_counter()
    recordings = gather_recordings(tracer, microphone, speaker, directions, executor)
    logger.debug("recordings gathered: total=%d in %.3fs", len(recordings), time.perf_counter() - started)

    logger.debug("mixing recordings into final impulse")
    renderer = mix_recordings(recordings, settings, diagnostics)

    logger.debug("rendering the impulse")
    return renderer.render(
        float(settings.compressor_gain),
        Compressor.from_config(settings.compressor_config()),
    )


def write_result(settings: RenderSettings, result: RenderResult) -> RenderResult:
    """Write one microphone's samples; failures are logged, not raised."""
    path = pathlib.Path(settings.output_path_for(int(result.microphone)))
    logger.debug("writing wav: %s", path)
    try:
        result.path = save_wav(path, result.samples, int(settings.sample_rate))
    except (OSError, RuntimeError) as e:
        logger.error("saving wav %s failed: %s", path, e)
        result.error = str(e)
    return result


def render_space(space: Space, settings: RenderSettings, *,
                 write: bool = True,
                 diagnostics: Optional[DiagnosticsSink] = None) -> List[RenderResult]:
    """Render an impulse response for every microphone in ``space``.

    Only the first speaker is used. Returns one result per microphone; a
    microphone whose file could not be written carries ``error`` while the
    others still complete.
    """
    logger.info("render with settings %s", settings)
    logger.debug(
        "model stats: walls=%d microphones=%d speakers=%d",
        len(space.walls), len(space.microphones), len(space.speakers),
    )
    if not space.speakers:
        logger.warning("space has no speakers, nothing to render")
        return []
    speaker = SpeakerIndex(0)

    rng = np.random.default_rng(int(settings.rng_seed))
    results: List[RenderResult] = []
    with concurrent.futures.ThreadPoolExecutor(max_workers=settings.workers) as executor:
        for index in range(len(space.microphones)):
            microphone = MicrophoneIndex(index)
            logger.debug("microphone %d", index)
            samples = trace_microphone(space, microphone, speaker, settings, rng, executor, diagnostics)
            result = RenderResult(microphone, samples)
            if write:
                write_result(settings, result)
            results.append(result)

    failed = sum(1 for r in results if not r.success)
    logger.info("rendered %d microphone(s), %d failed", len(results), failed)
    return results
