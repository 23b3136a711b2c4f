import pytest

from fizzerb import config
from fizzerb.config import RenderSettings, TracerConfig


def test_render_settings_defaults():
    s = RenderSettings()
    assert s.speed_of_sound == config.SPEED_OF_SOUND_IN_AIR == 343.0
    assert s.sample_rate == 48000
    assert s.output_path == "impulse_response_#.wav"


def test_output_path_placeholder():
    s = RenderSettings(output_path="out/#/ir_#.wav")
    assert s.output_path_for(3) == "out/3/ir_3.wav"
    assert RenderSettings(output_path="plain.wav").output_path_for(1) == "plain.wav"


def test_derived_configs():
    s = RenderSettings(max_bounces=7, speed_of_sound=340.0, sample_rate=44100,
                       compressor_threshold=0.5, compressor_release=0.1,
                       attenuation="inverse_distance")
    t = s.tracer_config()
    assert (t.max_bounces, t.speed_of_sound, t.record_rays, t.attenuation) == (
        7, 340.0, False, "inverse_distance")
    c = s.compressor_config()
    assert (c.sample_rate, c.threshold, c.release) == (44100.0, 0.5, 0.1)


def test_from_dict_round_trip_and_unknown_keys():
    s = RenderSettings(samples=12, deposit="differential")
    assert RenderSettings.from_dict(s.to_dict()) == s
    with pytest.raises(ValueError, match="unknown"):
        RenderSettings.from_dict({"samples": 1, "bogus": 2})


@pytest.mark.parametrize("kwargs", [
    {"deposit": "triple"},
    {"attenuation": "loud"},
    {"samples": -1},
    {"sample_rate": 0},
])
def test_invalid_render_settings(kwargs):
    with pytest.raises(ValueError):
        RenderSettings(**kwargs)


@pytest.mark.parametrize("kwargs", [
    {"speed_of_sound": 0.0},
    {"max_bounces": -1},
    {"attenuation": "material"},
])
def test_invalid_tracer_config(kwargs):
    with pytest.raises(ValueError):
        TracerConfig(**kwargs)
