# fizzerb/cli.py
from __future__ import annotations
from typing import List, Optional
import argparse
import json
import logging
import pathlib
import sys

from .config import ATTENUATION_MODES, DEPOSIT_MODES, RenderSettings
from .rendering import render_space
from .space import space_from_dict

logger = logging.getLogger(__name__)

# flag name -> RenderSettings field
_OVERRIDES = {
    "samples": "samples",
    "max_bounces": "max_bounces",
    "speed_of_sound": "speed_of_sound",
    "gain": "compressor_gain",
    "threshold": "compressor_threshold",
    "release": "compressor_release",
    "sample_rate": "sample_rate",
    "output": "output_path",
    "deposit": "deposit",
    "attenuation": "attenuation",
    "seed": "rng_seed",
    "workers": "workers",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fizzerb", description="2D acoustic ray tracer")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    render = sub.add_parser("render", help="render impulse responses for every microphone")
    render.add_argument("scene", type=pathlib.Path, help="room description (JSON)")
    render.add_argument("--samples", type=int, help="rays per microphone")
    render.add_argument("--max-bounces", type=int)
    render.add_argument("--speed-of-sound", type=float)
    render.add_argument("--gain", type=float, help="compressor gain")
    render.add_argument("--threshold", type=float, help="compressor threshold")
    render.add_argument("--release", type=float, help="compressor release")
    render.add_argument("--sample-rate", type=int)
    render.add_argument("--output", help="output path, '#' becomes the microphone index")
    render.add_argument("--deposit", choices=DEPOSIT_MODES)
    render.add_argument("--attenuation", choices=ATTENUATION_MODES)
    render.add_argument("--seed", type=int)
    render.add_argument("--workers", type=int,
                        help="trace threads; the trace loop holds the GIL, so more threads add little")
    return parser


def settings_from_args(base: dict, args: argparse.Namespace) -> RenderSettings:
    merged = dict(base)
    for flag, name in _OVERRIDES.items():
        value = getattr(args, flag, None)
        if value is not None:
            merged[name] = value
    return RenderSettings.from_dict(merged)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        data = json.loads(args.scene.read_text(encoding="utf-8"))
        space = space_from_dict(data.get("space", data))
        settings = settings_from_args(data.get("render_settings", {}), args)
    except (OSError, ValueError, KeyError, IndexError, TypeError) as e:
        logger.error("cannot load %s: %s", args.scene, e)
        return 2

    results = render_space(space, settings)
    for r in results:
        if r.success:
            logger.info("microphone %d: %d samples -> %s", r.microphone, len(r.samples), r.path)
    return 0 if all(r.success for r in results) else 1


if __name__ == "__main__":
    sys.exit(main())
