"""Single-ray traces through small rooms."""

import logging

import numpy as np
import pytest

from fizzerb import config
from fizzerb.config import TracerConfig
from fizzerb.diagnostics import CollectingSink, LoggingSink
from fizzerb.space import (
    Material,
    Microphone,
    MicrophoneIndex,
    Space,
    Speaker,
    SpeakerIndex,
    Wall,
)
from fizzerb.tracing import RayPurpose, Response, TraceOutcome, Tracer

MIC = MicrophoneIndex(0)
SPK = SpeakerIndex(0)
TOWARD_SPEAKER = np.array([-1.0, 0.0], dtype=np.float32)
AWAY_FROM_SPEAKER = np.array([1.0, 0.0], dtype=np.float32)


def test_direct_path_with_zero_bounces(square_room):
    tracer = Tracer(square_room, TracerConfig(speed_of_sound=343.0, max_bounces=0))
    recording = tracer.perform_trace(MIC, SPK, TOWARD_SPEAKER)

    assert len(recording.responses) == 1
    response = recording.responses[0]
    assert response.bounces == 0
    assert response.time == pytest.approx(4.0 / 343.0, rel=1e-6)
    assert response.loudness == 1.0
    assert recording.outcome is TraceOutcome.EXHAUSTED


def test_no_direct_path_when_aimed_away(square_room):
    tracer = Tracer(square_room, TracerConfig(max_bounces=0))
    recording = tracer.perform_trace(MIC, SPK, AWAY_FROM_SPEAKER)
    assert recording.responses == []


def test_single_bounce_arrival(square_room):
    tracer = Tracer(square_room, TracerConfig(speed_of_sound=343.0, max_bounces=1))
    recording = tracer.perform_trace(MIC, SPK, AWAY_FROM_SPEAKER)

    # mic -> right wall (3) -> back to the speaker (~7)
    assert len(recording.responses) == 1
    response = recording.responses[0]
    assert response.bounces == 1
    assert response.time == pytest.approx(10.0 / 343.0, rel=1e-3)


def test_bounce_count_never_exceeds_budget(square_room):
    tracer = Tracer(square_room, TracerConfig(max_bounces=6))
    recording = tracer.perform_trace(MIC, SPK, np.array([0.6, 0.8], dtype=np.float32))
    assert recording.responses
    assert max(r.bounces for r in recording.responses) <= 6


def test_responses_sorted_and_positive(square_room):
    tracer = Tracer(square_room, TracerConfig(max_bounces=20))
    recording = tracer.perform_trace(MIC, SPK, np.array([0.6, 0.8], dtype=np.float32))
    times = [r.time for r in recording.responses]
    assert times == sorted(times)
    assert all(t > 0.0 for t in times)
    # convex room: every bounce sees the speaker
    assert len(times) == 20


def test_escaping_ray_is_absorbed():
    space = Space()
    mat = space.add_material(Material())
    space.add_wall(Wall((-5.0, -1.0), (-5.0, 1.0), mat))
    space.add_speaker(Speaker((-2.0, 0.0)))
    space.add_microphone(Microphone((0.0, 0.0)))

    recording = Tracer(space, TracerConfig(max_bounces=4)).perform_trace(MIC, SPK, AWAY_FROM_SPEAKER)
    assert recording.outcome is TraceOutcome.ABSORBED
    assert recording.responses == []


def test_direct_path_in_open_space():
    space = Space()
    space.add_material(Material())
    space.add_speaker(Speaker((-2.0, 0.0)))
    space.add_microphone(Microphone((0.0, 0.0)))

    recording = Tracer(space, TracerConfig(max_bounces=4)).perform_trace(MIC, SPK, TOWARD_SPEAKER)
    assert recording.outcome is TraceOutcome.ABSORBED
    assert [r.bounces for r in recording.responses] == [0]


def test_wall_blocks_direct_path(square_room):
    square_room.add_wall(Wall((5.0, 4.0), (5.0, 6.0), square_room.walls[0].material))
    recording = Tracer(square_room, TracerConfig(max_bounces=0)).perform_trace(MIC, SPK, TOWARD_SPEAKER)
    assert recording.responses == []


def test_recorded_rays_do_not_change_responses(square_room):
    plain = Tracer(square_room, TracerConfig(max_bounces=1)).perform_trace(MIC, SPK, AWAY_FROM_SPEAKER)
    recorded = Tracer(square_room, TracerConfig(max_bounces=1, record_rays=True)).perform_trace(
        MIC, SPK, AWAY_FROM_SPEAKER
    )

    assert plain.rays == []
    assert [r.purpose for r in recorded.rays] == [RayPurpose.BOUNCE, RayPurpose.TRACE, RayPurpose.BOUNCE]
    assert recorded.responses == plain.responses
    trace = recorded.rays[1]
    assert np.allclose(trace.hit.position, (3.0, 5.0))


def test_inverse_distance_attenuation(square_room):
    square_room.speakers[0].power = 2.0
    cfg = TracerConfig(max_bounces=0, attenuation="inverse_distance")
    recording = Tracer(square_room, cfg).perform_trace(MIC, SPK, TOWARD_SPEAKER)
    assert recording.responses[0].loudness == pytest.approx(0.5, rel=1e-6)


@pytest.mark.parametrize("mic, spk", [(5, 0), (0, 3), (-1, 0)])
def test_bad_handles_fail_loudly(square_room, mic, spk):
    tracer = Tracer(square_room, TracerConfig(max_bounces=0))
    with pytest.raises(IndexError):
        tracer.perform_trace(MicrophoneIndex(mic), SpeakerIndex(spk), TOWARD_SPEAKER)


def test_response_time_must_be_positive():
    with pytest.raises(AssertionError):
        Response(time=0.0, loudness=1.0)


def test_diagnostics_sink_receives_trace_events(square_room):
    sink = CollectingSink()
    tracer = Tracer(square_room, TracerConfig(max_bounces=3), diagnostics=sink)
    tracer.perform_trace(MIC, SPK, TOWARD_SPEAKER)
    tracer.perform_trace(MIC, SPK, AWAY_FROM_SPEAKER)

    events = sink.named("trace")
    assert len(events) == 2
    assert events[0]["outcome"] == "exhausted"
    assert events[0]["responses"] >= 1


def test_logging_sink_forwards_trace_events(square_room, caplog):
    tracer = Tracer(square_room, TracerConfig(max_bounces=1), diagnostics=LoggingSink())
    with caplog.at_level(logging.DEBUG, logger="fizzerb.diagnostics"):
        tracer.perform_trace(MIC, SPK, np.array([0.0, 1.0]))
    assert any(rec.getMessage().startswith("trace ") for rec in caplog.records)


def test_bounce_offset_moves_origin_but_not_distance(square_room, monkeypatch):
    monkeypatch.setattr(config, "BOUNCE_OFFSET", 0.5)
    tracer = Tracer(square_room, TracerConfig(speed_of_sound=343.0, max_bounces=1))
    recording = tracer.perform_trace(MIC, SPK, np.array([0.0, 1.0]))
    [response] = recording.responses
    # top wall hit at (7, 10), next origin (7, 9.5), speaker at (3, 5)
    expected = (5.0 + np.hypot(4.0, 4.5)) / 343.0
    assert response.bounces == 1
    assert response.time == pytest.approx(expected, rel=1e-5)
