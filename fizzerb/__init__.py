# fizzerb/__init__.py
from __future__ import annotations

# ---- Public config / constants ----
from .config import (
    TracerConfig,
    CompressorConfig,
    RenderSettings,
    SPEED_OF_SOUND_IN_AIR,
)

# ---- Vector helpers ----
from .physics import (
    unit,
    reflect,
    wall_normal,
    direction_from_angle,
    sample_directions,
    phase_sign,
    pressure_spread,
)

# ---- Room model ----
from .space import (
    Space,
    Wall,
    Material,
    Speaker,
    Microphone,
    WallIndex,
    MaterialIndex,
    SpeakerIndex,
    MicrophoneIndex,
    make_box,
    space_from_dict,
    space_to_dict,
    load_space,
)

# ---- Geometry / intersector ----
from .geometry import (
    LineSegment,
    Ray,
    RayHit,
    WallHit,
    WallIntersector,
    cast,
)

# ---- Tracing core ----
from .tracing import (
    Response,
    RayPurpose,
    RecordedRay,
    Recording,
    TraceOutcome,
    Tracer,
)

# ---- Accumulation / dynamics ----
from .impulse import DepositPolicy, ImpulseRenderer
from .compressor import Compressor

# ---- Render pipeline / output ----
from .rendering import RenderResult, render_space, trace_microphone
from .audio import save_wav, wav_bytes
from .diagnostics import CollectingSink, LoggingSink

__all__ = [
    # Config
    "TracerConfig", "CompressorConfig", "RenderSettings", "SPEED_OF_SOUND_IN_AIR",
    # Physics
    "unit", "reflect", "wall_normal", "direction_from_angle", "sample_directions",
    "phase_sign", "pressure_spread",
    # Space
    "Space", "Wall", "Material", "Speaker", "Microphone",
    "WallIndex", "MaterialIndex", "SpeakerIndex", "MicrophoneIndex",
    "make_box", "space_from_dict", "space_to_dict", "load_space",
    # Geometry
    "LineSegment", "Ray", "RayHit", "WallHit", "WallIntersector", "cast",
    # Tracing
    "Response", "RayPurpose", "RecordedRay", "Recording", "TraceOutcome", "Tracer",
    # Impulse
    "DepositPolicy", "ImpulseRenderer", "Compressor",
    # Rendering
    "RenderResult", "render_space", "trace_microphone",
    "save_wav", "wav_bytes",
    "CollectingSink", "LoggingSink",
]
