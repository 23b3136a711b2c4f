"""Streaming limiter behaviour."""

import numpy as np
import pytest

from fizzerb.compressor import Compressor
from fizzerb.config import CompressorConfig


@pytest.mark.parametrize("threshold, release", [(0.0, 0.0), (0.5, 0.01), (0.8, 2.0)])
def test_silence_stays_silent(threshold, release):
    out = Compressor(48000.0, threshold, release).process(np.zeros(64))
    assert np.array_equal(out, np.zeros(64, dtype=np.float32))


def test_release_scales_with_sample_rate():
    assert Compressor(48000.0, 0.8, 2.0).release_per_sample == 96000.0
    assert Compressor(10.0, 0.5, 0.025).release_per_sample == pytest.approx(0.25)


def test_spike_fully_reduced_then_linear_release():
    # release_per_sample = 10 * 0.025 = 0.25
    comp = Compressor(sample_rate=10.0, threshold=0.5, release=0.025)
    x = np.array([1.5, 0.1, 0.1, 0.1, 0.1, 0.1, 0.1], dtype=np.float32)
    out = comp.process(x)

    assert out[0] == 0.0
    # compression 1.0 -> 0.75, 0.5, 0.25, 0, then flat at unity gain
    assert np.allclose(out, [0.0, 0.025, 0.05, 0.075, 0.1, 0.1, 0.1], atol=1e-6)


def test_spike_alone_leaves_zeros_untouched():
    comp = Compressor(sample_rate=10.0, threshold=0.5, release=0.025)
    x = np.zeros(8, dtype=np.float32)
    x[0] = 1.5
    assert np.array_equal(comp.process(x), np.zeros(8, dtype=np.float32))


def test_negative_samples_compress_by_magnitude():
    comp = Compressor(sample_rate=10.0, threshold=0.5, release=0.025)
    out = comp.process(np.array([-1.5, -0.1], dtype=np.float32))
    assert out[0] == 0.0
    assert out[1] == pytest.approx(-0.025, abs=1e-6)


def test_instant_attack_uses_largest_overshoot():
    comp = Compressor(sample_rate=1.0, threshold=0.5, release=0.0)
    out = comp.process(np.array([0.6, 0.9, 0.6], dtype=np.float32))
    # overshoot 0.1, then 0.4 which holds with zero release
    assert np.allclose(out, [0.6 * 0.9, 0.9 * 0.6, 0.6 * 0.6], atol=1e-6)


def test_never_amplifies():
    rng = np.random.default_rng(3)
    x = rng.normal(scale=2.0, size=512).astype(np.float32)
    out = Compressor(48000.0, 0.8, 1e-6).process(x)
    assert np.all(np.abs(out) <= np.abs(x) + 1e-7)


def test_run_writes_into_output_buffer():
    comp = Compressor(10.0, 0.5, 0.025)
    out = np.full(3, 7.0, dtype=np.float32)
    comp.run(np.array([0.1, 0.2, 0.3], dtype=np.float32), out)
    assert np.allclose(out, [0.1, 0.2, 0.3])


def test_mismatched_lengths_are_a_contract_violation():
    with pytest.raises(AssertionError):
        Compressor().run(np.zeros(4, dtype=np.float32), np.zeros(3, dtype=np.float32))


def test_from_config():
    comp = Compressor.from_config(CompressorConfig(sample_rate=44100.0, threshold=0.5, release=1.0))
    assert comp.sample_rate == 44100.0
    assert comp.threshold == 0.5
    assert comp.release_per_sample == 44100.0
