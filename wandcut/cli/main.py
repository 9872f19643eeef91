#!/usr/bin/env python3
"""
wandcut command line.

    wandcut wand    in.png out.png --seed 0,0 --tolerance 30
    wandcut key     in.png out.png --color 0,255,0
    wandcut resize  in.png out.png --width 320 --height 270
    wandcut animate out.png frame1.png frame2.png --delay 120
    wandcut batch   photos/ --out data/processed
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Tuple

from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from ..pipeline.animation_builder import build_animation
from ..pipeline.background_remover import remove_background, save_gallery
from ..services.image_service import ImageService

logger = logging.getLogger("wandcut.cli")


def _int_tuple(text: str, size: int) -> Tuple[int, ...]:
    parts = [p for p in text.replace(" ", "").split(",") if p]
    if len(parts) != size:
        raise argparse.ArgumentTypeError(f"expected {size} comma-separated integers, got {text!r}")
    try:
        return tuple(int(p) for p in parts)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer list: {text!r}")


def _seed(text: str) -> Tuple[int, int]:
    return _int_tuple(text, 2)


def _color(text: str) -> Tuple[int, int, int]:
    text = text.lstrip("#")
    if len(text) == 6 and "," not in text:
        try:
            return tuple(int(text[i:i + 2], 16) for i in (0, 2, 4))
        except ValueError:
            raise argparse.ArgumentTypeError(f"not a hex color: {text!r}")
    return _int_tuple(text, 3)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="wandcut", description="Magic-wand background removal")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    wand = sub.add_parser("wand", help="erase the contiguous region around a seed pixel")
    wand.add_argument("input")
    wand.add_argument("output")
    wand.add_argument("--seed", type=_seed, action="append",
                      help="x,y (repeatable; default: top-left corner)")
    wand.add_argument("--tolerance", type=float, default=None)

    key = sub.add_parser("key", help="erase a color everywhere in the image")
    key.add_argument("input")
    key.add_argument("output")
    key.add_argument("--color", type=_color, required=True, help="R,G,B or RRGGBB")
    key.add_argument("--tolerance", type=float, default=None)

    resize = sub.add_parser("resize", help="fit onto a fixed-size transparent canvas")
    resize.add_argument("input")
    resize.add_argument("output")
    resize.add_argument("--width", type=int, default=None)
    resize.add_argument("--height", type=int, default=None)

    animate = sub.add_parser("animate", help="encode frames as an animated PNG")
    animate.add_argument("output")
    animate.add_argument("frames", nargs="+", help="still images, or one animated file")
    animate.add_argument("--width", type=int, default=None)
    animate.add_argument("--height", type=int, default=None)
    animate.add_argument("--delay", type=int, default=None, help="ms per frame")
    animate.add_argument("--loop", type=int, default=None, help="0 = forever")

    batch = sub.add_parser("batch", help="remove backgrounds for a whole folder")
    batch.add_argument("folder")
    batch.add_argument("--out", default=None)
    batch.add_argument("--recursive", action="store_true")
    batch.add_argument("--seed", type=_seed, action="append",
                       help="x,y (repeatable; default: the four corners)")
    batch.add_argument("--color", type=_color, default=None,
                       help="use a global color key instead of the magic wand")
    batch.add_argument("--tolerance", type=float, default=None)
    return parser


def _load_frames(image_service: ImageService, paths: List[str]):
    if len(paths) == 1:
        return image_service.load_frames(paths[0]).frames
    return [image_service.load(p) for p in paths]


def run(args: argparse.Namespace, image_service: ImageService) -> int:
    if args.command == "wand":
        buffer = image_service.load(args.input)
        for x, y in (args.seed or [(0, 0)]):
            image_service.magic_wand(buffer, x, y, args.tolerance)
        out = image_service.save(buffer, args.output)
        logger.info(f"{image_service.transparent_ratio(buffer):.1%} transparent → {out}")

    elif args.command == "key":
        buffer = image_service.load(args.input)
        image_service.remove_color(buffer, args.color, args.tolerance)
        out = image_service.save(buffer, args.output)
        logger.info(f"{image_service.transparent_ratio(buffer):.1%} transparent → {out}")

    elif args.command == "resize":
        buffer = image_service.load(args.input)
        resized = image_service.fit_canvas(buffer, args.width, args.height)
        out = image_service.save(resized, args.output)
        logger.info(f"{buffer.width}x{buffer.height} → {resized.width}x{resized.height} → {out}")

    elif args.command == "animate":
        frames = _load_frames(image_service, args.frames)
        data = build_animation(frames, image_service=image_service,
                               width=args.width, height=args.height,
                               delay_ms=args.delay, loop=args.loop)
        if data is None:
            logger.error("No frames to encode")
            return 1
        Path(args.output).parent.mkdir(parents=True, exist_ok=True)
        Path(args.output).write_bytes(data)
        logger.info(f"Wrote {len(frames)} frames → {args.output}")

    elif args.command == "batch":
        gallery = image_service.stream_gallery(args.folder, recursive=args.recursive)
        processed = remove_background(gallery, image_service=image_service,
                                      seeds=args.seed, tolerance=args.tolerance,
                                      color=args.color)
        kwargs = {"processed_dir": args.out} if args.out else {}
        save_gallery(processed, image_service=image_service, **kwargs)

    return 0


def main(argv: List[str] = None) -> int:
    args = build_parser().parse_args(argv)

    # --- Centralized Logging Configuration ---
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
        datefmt='%H:%M:%S'
    )

    try:
        return run(args, ImageService())
    except (ValueError, FileNotFoundError, NotADirectoryError) as e:
        logger.error(str(e))
        return 2


if __name__ == "__main__":
    sys.exit(main())
