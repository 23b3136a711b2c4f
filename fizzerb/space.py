# fizzerb/space.py
"""Data types for describing rooms.

A :class:`Space` owns four append-only collections (walls, materials,
speakers, microphones). Every ``add_*`` call returns a handle that stays
valid for the lifetime of the space; the checked accessors raise
``IndexError`` for anything that was never handed out.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, List, Mapping, NewType, Sequence
import json
import logging
import pathlib

import numpy as np

from .physics import vec2, wall_normal

logger = logging.getLogger(__name__)

WallIndex = NewType("WallIndex", int)
MaterialIndex = NewType("MaterialIndex", int)
SpeakerIndex = NewType("SpeakerIndex", int)
MicrophoneIndex = NewType("MicrophoneIndex", int)


@dataclass(eq=False)
class Wall:
    start: np.ndarray
    end: np.ndarray
    material: MaterialIndex

    def __post_init__(self) -> None:
        self.start = vec2(self.start)
        self.end = vec2(self.end)

    @property
    def normal(self) -> np.ndarray:
        n = wall_normal(self.start, self.end)
        if n is None:
            raise ValueError("zero-length wall has no normal")
        return n

    @property
    def length(self) -> float:
        return float(np.linalg.norm(self.end - self.start))


@dataclass
class Material:
    """Definition of a wall material.

    ``diffuse`` is how much sound the wall absorbs (sound has no colour, so
    this is a single coefficient) and ``roughness`` how much it scatters.
    Both are descriptive only: the tracer does not attenuate by material.
    """

    diffuse: float = 1.0
    roughness: float = 0.0

    def __post_init__(self) -> None:
        for name in ("diffuse", "roughness"):
            v = float(getattr(self, name))
            if not 0.0 <= v <= 1.0:
                raise ValueError(f"material {name} must be within [0, 1]; got {v}")
            setattr(self, name, v)


@dataclass(eq=False)
class Speaker:
    position: np.ndarray
    power: float = 1.0

    def __post_init__(self) -> None:
        self.position = vec2(self.position)
        self.power = float(self.power)


@dataclass(eq=False)
class Microphone:
    position: np.ndarray

    def __post_init__(self) -> None:
        self.position = vec2(self.position)


def _checked(items: Sequence, index: int, kind: str):
    i = int(index)
    if i < 0 or i >= len(items):
        raise IndexError(f"{kind} index {i} out of range (have {len(items)})")
    return items[i]


@dataclass
class Space:
    """A room for recording impulse responses."""

    walls: List[Wall] = field(default_factory=list)
    materials: List[Material] = field(default_factory=list)
    speakers: List[Speaker] = field(default_factory=list)
    microphones: List[Microphone] = field(default_factory=list)

    # -- insertion ----------------------------------------------------------
    def add_material(self, material: Material) -> MaterialIndex:
        self.materials.append(material)
        return MaterialIndex(len(self.materials) - 1)

    def add_wall(self, wall: Wall) -> WallIndex:
        _checked(self.materials, wall.material, "material")
        if wall.length == 0.0:
            raise ValueError("zero-length walls are not allowed")
        self.walls.append(wall)
        return WallIndex(len(self.walls) - 1)

    def add_walls(self, walls: Iterable[Wall]) -> List[WallIndex]:
        return [self.add_wall(w) for w in walls]

    def add_speaker(self, speaker: Speaker) -> SpeakerIndex:
        self.speakers.append(speaker)
        return SpeakerIndex(len(self.speakers) - 1)

    def add_microphone(self, microphone: Microphone) -> MicrophoneIndex:
        self.microphones.append(microphone)
        return MicrophoneIndex(len(self.microphones) - 1)

    # -- checked access -----------------------------------------------------
    def wall(self, index: WallIndex) -> Wall:
        return _checked(self.walls, index, "wall")

    def material(self, index: MaterialIndex) -> Material:
        return _checked(self.materials, index, "material")

    def speaker(self, index: SpeakerIndex) -> Speaker:
        return _checked(self.speakers, index, "speaker")

    def microphone(self, index: MicrophoneIndex) -> Microphone:
        return _checked(self.microphones, index, "microphone")


def make_box(position, size, material: MaterialIndex) -> Iterator[Wall]:
    """Four walls of an axis-aligned box, wound counter-clockwise."""
    p = vec2(position)
    s = vec2(size)
    corners = [
        p,
        p + vec2(s[0], 0.0),
        p + s,
        p + vec2(0.0, s[1]),
    ]
    for i in range(4):
        yield Wall(corners[i], corners[(i + 1) % 4], material)


# -------- JSON room descriptions --------

def space_from_dict(data: Mapping[str, Any]) -> Space:
    """
    Schema:
      {"materials": [{"diffuse": 1.0, "roughness": 0.0}, ...],
       "walls": [{"start": [x, y], "end": [x, y], "material": 0}, ...],
       "speakers": [{"position": [x, y], "power": 1.0}, ...],
       "microphones": [{"position": [x, y]}, ...]}
    Without a "materials" list a single default material is created and
    walls may omit "material".
    """
    space = Space()
    mats = data.get("materials") or [{}]
    for row in mats:
        space.add_material(Material(**row))
    for row in data.get("walls", []):
        space.add_wall(Wall(row["start"], row["end"], MaterialIndex(int(row.get("material", 0)))))
    for row in data.get("speakers", []):
        space.add_speaker(Speaker(row["position"], float(row.get("power", 1.0))))
    for row in data.get("microphones", []):
        space.add_microphone(Microphone(row["position"]))
    logger.debug(
        "loaded space: %d walls, %d materials, %d speakers, %d microphones",
        len(space.walls), len(space.materials), len(space.speakers), len(space.microphones),
    )
    return space


def space_to_dict(space: Space) -> dict:
    return {
        "materials": [{"diffuse": m.diffuse, "roughness": m.roughness} for m in space.materials],
        "walls": [
            {"start": w.start.tolist(), "end": w.end.tolist(), "material": int(w.material)}
            for w in space.walls
        ],
        "speakers": [{"position": s.position.tolist(), "power": s.power} for s in space.speakers],
        "microphones": [{"position": m.position.tolist()} for m in space.microphones],
    }


def load_space(path: str | pathlib.Path) -> Space:
    p = pathlib.Path(path)
    data = json.loads(p.read_text(encoding="utf-8"))
    return space_from_dict(data.get("space", data))
