# fizzerb/config.py
from __future__ import annotations
from dataclasses import dataclass, asdict, fields
from typing import Any, Mapping, Optional

SPEED_OF_SOUND_IN_AIR: float = 343.0

# Geometry tolerances, module-level so they can be tuned
PARALLEL_EPSILON: float = 1e-9   # normalized direction near-equality
BOUNCE_OFFSET: float = 1e-3      # new ray origin offset along its direction

# Anything at or below this magnitude counts as trailing silence
SILENCE_THRESHOLD: float = 1e-5

ATTENUATION_MODES = ("none", "inverse_distance")
DEPOSIT_MODES = ("single", "differential")


def _check_choice(name: str, value: str, choices) -> None:
    if value not in choices:
        raise ValueError(f"{name} must be one of {', '.join(choices)}; got {value!r}")


@dataclass
class TracerConfig:
    # The speed of sound in m/s
    speed_of_sound: float = SPEED_OF_SOUND_IN_AIR
    # How often a traced ray may bounce off walls
    max_bounces: int = 512
    # Keep every cast segment in the recording (visualization only)
    record_rays: bool = False
    # "none" | "inverse_distance"
    attenuation: str = "none"
    # Capture radius around the speaker for the direct path
    speaker_radius: float = 0.1

    def __post_init__(self) -> None:
        _check_choice("attenuation", self.attenuation, ATTENUATION_MODES)
        if self.speed_of_sound <= 0:
            raise ValueError("speed_of_sound must be positive")
        if self.max_bounces < 0:
            raise ValueError("max_bounces must be >= 0")


@dataclass
class CompressorConfig:
    sample_rate: float = 48000.0
    threshold: float = 0.8
    release: float = 2.0


@dataclass
class RenderSettings:
    max_bounces: int = 512
    samples: int = 1024                 # rays per microphone

    speed_of_sound: float = SPEED_OF_SOUND_IN_AIR

    compressor_gain: float = 1.0
    compressor_threshold: float = 0.8
    compressor_release: float = 2.0

    sample_rate: int = 48000
    output_path: str = "impulse_response_#.wav"

    # "single" | "differential"
    deposit: str = "single"
    attenuation: str = "none"
    rng_seed: int = 0
    workers: Optional[int] = None       # None lets the executor decide

    def __post_init__(self) -> None:
        _check_choice("deposit", self.deposit, DEPOSIT_MODES)
        _check_choice("attenuation", self.attenuation, ATTENUATION_MODES)
        if self.samples < 0:
            raise ValueError("samples must be >= 0")
        if self.sample_rate <= 0:
            raise ValueError("sample_rate must be positive")

    def tracer_config(self) -> TracerConfig:
        return TracerConfig(
            speed_of_sound=float(self.speed_of_sound),
            max_bounces=int(self.max_bounces),
            record_rays=False,
            attenuation=self.attenuation,
        )

    def compressor_config(self) -> CompressorConfig:
        return CompressorConfig(
            sample_rate=float(self.sample_rate),
            threshold=float(self.compressor_threshold),
            release=float(self.compressor_release),
        )

    def output_path_for(self, microphone_index: int) -> str:
        return self.output_path.replace("#", str(int(microphone_index)))

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RenderSettings":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"unknown render settings: {', '.join(unknown)}")
        return cls(**dict(data))
