"""
Fundus Capture Command Line
===========================

Entry point for running the pixel pipeline on files or a live camera.

Commands:
    score IMAGE...            Sharpness of each image, best one marked
    enhance IN OUT            Tile-adaptive contrast enhancement
    crop IN OUT               Ellipse crop (--cx/--cy/--rx/--ry or --auto)
    red-free IN OUT           Green-channel rendering
    burst OUT                 Capture a burst from a camera, save the best

Usage:
    fundus-capture score shots/*.jpg
    fundus-capture crop best.jpg fov.png --cx 320 --cy 240 --rx 220 --ry 200
    fundus-capture burst od.jpg --device 0 --enhance
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from fundus_capture.capture.burst import select_best
from fundus_capture.capture.camera import VideoCaptureSource
from fundus_capture.config import Settings, load_config, setup_logging
from fundus_capture.errors import FundusCaptureError
from fundus_capture.imaging.codec import load_image, save_image
from fundus_capture.imaging.crop import crop_ellipse
from fundus_capture.imaging.enhance import enhance_contrast, to_red_free
from fundus_capture.imaging.sharpness import score_sharpness
from fundus_capture.models.ellipse import EllipseSpec
from fundus_capture.pipeline import FundusPipeline


logger = logging.getLogger(__name__)


# =============================================================================
# Commands
# =============================================================================

def cmd_score(args: argparse.Namespace, settings: Settings) -> int:
    scores = [
        score_sharpness(load_image(path), settings.burst.working_width)
        for path in args.images
    ]
    best = select_best(scores)
    for i, (path, score) in enumerate(zip(args.images, scores)):
        marker = "*" if i == best else " "
        print(f"{marker} {score:12.3f}  {path}")
    return 0


def cmd_enhance(args: argparse.Namespace, settings: Settings) -> int:
    tile_size = args.tile_size if args.tile_size is not None else settings.enhancement.tile_size
    clip_limit = args.clip_limit if args.clip_limit is not None else settings.enhancement.clip_limit
    frame = enhance_contrast(load_image(args.input), tile_size=tile_size, clip_limit=clip_limit)
    save_image(frame, args.output, jpeg_quality=settings.export.jpeg_quality)
    return 0


def cmd_crop(args: argparse.Namespace, settings: Settings) -> int:
    frame = load_image(args.input)

    if args.auto:
        spec = EllipseSpec.default_for(frame.width, frame.height)
    else:
        missing = [n for n in ("cx", "cy", "rx", "ry") if getattr(args, n) is None]
        if missing:
            logger.error(f"Missing ellipse parameters: {', '.join(missing)} (or use --auto)")
            return 2
        spec = EllipseSpec(cx=args.cx, cy=args.cy, rx=args.rx, ry=args.ry, rotation=args.rotation)

    save_image(crop_ellipse(frame, spec), args.output, jpeg_quality=settings.export.jpeg_quality)
    return 0


def cmd_red_free(args: argparse.Namespace, settings: Settings) -> int:
    frame = to_red_free(load_image(args.input))
    save_image(frame, args.output, jpeg_quality=settings.export.jpeg_quality)
    return 0


def cmd_burst(args: argparse.Namespace, settings: Settings) -> int:
    if args.count is not None:
        settings.burst.count = args.count
    if args.delay_ms is not None:
        settings.burst.inter_frame_delay_ms = args.delay_ms
    device = args.device if args.device is not None else settings.camera.device

    pipeline = FundusPipeline(settings)
    with VideoCaptureSource(device) as camera:
        result = asyncio.run(pipeline.capture(camera.read))

    logger.info(f"Burst summary: {result.to_dict()}")
    final = pipeline.process(result.best_frame, enhance=args.enhance)
    save_image(final, args.output, jpeg_quality=settings.export.jpeg_quality)
    return 0


# =============================================================================
# Argument Parsing
# =============================================================================

def _device(value: str):
    return int(value) if value.isdigit() else value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fundus-capture",
        description="Burst capture, sharpness selection, ellipse crop and contrast enhancement for fundus images",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to config.yaml (default: FUNDUS_CONFIG_PATH or ./config.yaml)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("score", help="Score image sharpness")
    p.add_argument("images", nargs="+", help="Image files")
    p.set_defaults(func=cmd_score)

    p = sub.add_parser("enhance", help="Tile-adaptive contrast enhancement")
    p.add_argument("input")
    p.add_argument("output")
    p.add_argument("--tile-size", type=int, default=None, help="Tile edge in pixels (default: config)")
    p.add_argument("--clip-limit", type=float, default=None, help="Clip fraction in (0, 1] (default: config)")
    p.set_defaults(func=cmd_enhance)

    p = sub.add_parser("crop", help="Ellipse crop with transparent surround")
    p.add_argument("input")
    p.add_argument("output", help="Output file (.png keeps transparency)")
    p.add_argument("--cx", type=float, default=None)
    p.add_argument("--cy", type=float, default=None)
    p.add_argument("--rx", type=float, default=None)
    p.add_argument("--ry", type=float, default=None)
    p.add_argument("--rotation", type=float, default=0.0, help="Rotation in radians (default: 0)")
    p.add_argument("--auto", action="store_true", help="Centered ellipse at 35%% of each side")
    p.set_defaults(func=cmd_crop)

    p = sub.add_parser("red-free", help="Green-channel rendering")
    p.add_argument("input")
    p.add_argument("output")
    p.set_defaults(func=cmd_red_free)

    p = sub.add_parser("burst", help="Capture a burst from a camera and keep the sharpest frame")
    p.add_argument("output")
    p.add_argument("--device", type=_device, default=None, help="Camera index or URL (default: config)")
    p.add_argument("--count", type=int, default=None, help="Frames per burst (default: config)")
    p.add_argument("--delay-ms", type=int, default=None, help="Inter-frame delay (default: config)")
    p.add_argument("--enhance", action="store_true", help="Apply contrast enhancement to the best frame")
    p.set_defaults(func=cmd_burst)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = load_config(args.config)
    setup_logging(settings)

    try:
        return args.func(args, settings)
    except (FundusCaptureError, FileNotFoundError) as e:
        logger.error(f"{args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
