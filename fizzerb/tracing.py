# fizzerb/tracing.py
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional
import time

import numpy as np

from . import config as _config
from .config import TracerConfig
from .diagnostics import DiagnosticsSink
from .geometry import Ray, RayHit, WallHit, WallIntersector
from .physics import cross2, pressure_spread, reflect, vec2
from .space import MicrophoneIndex, Space, Speaker, SpeakerIndex


@dataclass(frozen=True)
class Response:
    """One arrival at the microphone: seconds, linear amplitude, bounce count."""

    time: float
    loudness: float
    bounces: int = 0

    def __post_init__(self) -> None:
        assert self.time > 0.0, f"response time must be positive, got {self.time}"


class RayPurpose(Enum):
    # generating bounces against walls
    BOUNCE = "bounce"
    # tracing back to the speaker
    TRACE = "trace"

    @property
    def is_bounce(self) -> bool:
        return self is RayPurpose.BOUNCE


@dataclass(frozen=True)
class RecordedRay:
    purpose: RayPurpose
    ray: Ray
    hit: RayHit


class TraceOutcome(Enum):
    ABSORBED = "absorbed"      # escaped into open space
    EXHAUSTED = "exhausted"    # bounce budget used up


@dataclass
class Recording:
    responses: List[Response] = field(default_factory=list)
    rays: List[RecordedRay] = field(default_factory=list)
    outcome: Optional[TraceOutcome] = None


@dataclass(frozen=True)
class SpeakerTrace:
    ray: Ray
    distance_to_speaker: float


def trace_to_walls(ray: Ray, intersector: WallIntersector) -> Optional[WallHit]:
    """The wall ``ray`` hits first, if any."""
    return intersector.first_hit(ray)


def trace_to_speaker(start: np.ndarray, intersector: WallIntersector,
                     speaker: Speaker) -> Optional[SpeakerTrace]:
    """A trace from ``start`` to the speaker, or None when a wall is in the way."""
    reaches, ray, distance = intersector.visible(start, speaker.position)
    if not reaches or distance <= 0.0:
        return None
    return SpeakerTrace(ray, distance)


def _direct_distance(ray: Ray, target: np.ndarray, radius: float) -> Optional[float]:
    """Distance along ``ray`` to ``target`` when the ray passes within ``radius``."""
    offset = target - ray.start
    along = float(np.dot(offset, ray.direction))
    if along <= 0.0:
        return None
    if abs(cross2(ray.direction, offset)) > radius:
        return None
    return along


class Tracer:
    """Traces single rays through a space.

    The space is only read; one tracer may be shared by any number of
    threads as long as nobody edits the space meanwhile.
    """

    def __init__(self, space: Space, config: TracerConfig,
                 diagnostics: Optional[DiagnosticsSink] = None,
                 intersector: Optional[WallIntersector] = None):
        self.space = space
        self.config = config
        self.diagnostics = diagnostics
        self.intersector = intersector if intersector is not None else WallIntersector.build(space)

    def _loudness(self, path_length: float, speaker: Speaker) -> float:
        if self.config.attenuation == "inverse_distance":
            return speaker.power * pressure_spread(path_length)
        return 1.0

    def _response(self, path_length: float, bounces: int, speaker: Speaker) -> Response:
        return Response(
            time=path_length / float(self.config.speed_of_sound),
            loudness=self._loudness(path_length, speaker),
            bounces=bounces,
        )

    def perform_trace(self, microphone_index: MicrophoneIndex, speaker_index: SpeakerIndex,
                      start_ray) -> Recording:
        """Traces a single ray for a microphone-speaker pair.

        ``start_ray`` is assumed to be normalized. The ray travels through at
        most ``max_bounces + 1`` segments; every bounce that can see the
        speaker registers a response. Responses come back sorted by time.
        """
        started = time.perf_counter()
        cfg = self.config
        microphone = self.space.microphone(microphone_index)
        speaker = self.space.speaker(speaker_index)
        record = cfg.record_rays

        recorded: List[RecordedRay] = []
        responses: List[Response] = []
        ray = Ray(microphone.position, vec2(start_ray))

        hit = trace_to_walls(ray, self.intersector)

        # Direct sound, only if the initial ray itself passes the speaker
        direct = _direct_distance(ray, speaker.position, float(cfg.speaker_radius))
        if direct is not None and (hit is None or direct <= hit.ray.ray_length):
            responses.append(self._response(direct, 0, speaker))
            if record:
                recorded.append(RecordedRay(RayPurpose.TRACE, ray, RayHit(speaker.position, direct)))

        distance_bounced = 0.0
        outcome = TraceOutcome.EXHAUSTED
        for segment in range(cfg.max_bounces + 1):
            if segment > 0:
                hit = trace_to_walls(ray, self.intersector)
            if hit is None:
                outcome = TraceOutcome.ABSORBED
                break
            if record:
                recorded.append(RecordedRay(RayPurpose.BOUNCE, ray, hit.ray))
            if segment == cfg.max_bounces:
                break

            reflected = reflect(ray.direction, self.intersector.normal(hit.wall))
            ray = Ray(hit.ray.position + reflected * np.float32(_config.BOUNCE_OFFSET), reflected)
            distance_bounced += hit.ray.ray_length

            trace = trace_to_speaker(ray.start, self.intersector, speaker)
            if trace is not None:
                responses.append(
                    self._response(distance_bounced + trace.distance_to_speaker, segment + 1, speaker)
                )
                if record:
                    recorded.append(RecordedRay(
                        RayPurpose.TRACE, trace.ray, RayHit(speaker.position, trace.distance_to_speaker)
                    ))

        responses.sort(key=lambda r: r.time)

        if self.diagnostics is not None:
            self.diagnostics.emit(
                "trace",
                microphone=int(microphone_index),
                speaker=int(speaker_index),
                responses=len(responses),
                outcome=outcome.value,
                elapsed=time.perf_counter() - started,
            )
        return Recording(responses=responses, rays=recorded, outcome=outcome)
