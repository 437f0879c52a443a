from __future__ import annotations

import argparse
import re
from typing import Optional, Tuple

from mandelview.camera import HOME_CENTER, HOME_WIDTH
from mandelview.color import Color
from mandelview.config import build_histogram, build_request, load_config, normalise_config
from mandelview.errors import ConfigurationError
from mandelview.pipeline import RenderService, compose_image
from mandelview.pixels import POLICIES
from mandelview.util.logging_setup import (
    LEVELS,
    configure_root_logging,
    create_log_queue,
    get_logger,
    parse_level,
    start_queue_listener,
    stop_queue_listener,
)

_NUMBER_TEXT = re.compile(r"-?(([1-9][0-9]*)|0)?(\.[0-9]*)?")

def parse_number(text: str) -> float:
    """Read a number the way the viewer's text fields accept it; partial input counts as 0."""
    if not _NUMBER_TEXT.fullmatch(text):
        raise argparse.ArgumentTypeError(f"not a number: {text!r}")
    if text in ("", "-", ".", "-."):
        return 0.0
    return float(text)

def parse_color_slot(text: str) -> Tuple[int, Color]:
    index, sep, value = text.partition("=")
    if not sep or not index.strip().isdigit():
        raise argparse.ArgumentTypeError(f"expected INDEX=COLOR, got {text!r}")
    try:
        return int(index), Color.from_hex(value)
    except ConfigurationError as e:
        raise argparse.ArgumentTypeError(str(e)) from e

def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="mandelview", description="Mandelbrot viewer with supersampling and histogram coloring.")
    p.add_argument("--config", type=str, default=None, help="Path to config JSON. If omitted, built-in defaults are used.")
    p.add_argument("--log-level", type=str, default="INFO", choices=LEVELS, help="Log level.")
    p.add_argument("--log-file", type=str, default="", help="Log file path (rotating). Empty disables file logging.")
    sub = p.add_subparsers(dest="cmd", required=True)

    r = sub.add_parser("render", help="Render one image and display it.")
    r.add_argument("--center-x", type=parse_number, default=None, help="Real part of the view center.")
    r.add_argument("--center-y", type=parse_number, default=None, help="Imaginary part of the view center.")
    r.add_argument("--view-width", type=parse_number, default=None, help="Horizontal extent of the view in the complex plane.")
    r.add_argument("--view-height", type=parse_number, default=None, help="Vertical extent of the view; sets the aspect ratio together with --view-width.")
    r.add_argument("--width", type=int, default=None, help="Canvas width in pixels.")
    r.add_argument("--height", type=int, default=None, help="Canvas height in pixels.")
    r.add_argument("--supersampling", type=int, default=None, help="Samples per pixel along each axis.")
    r.add_argument("--max-iterations", type=int, default=None, help="Escape-time iteration limit.")
    r.add_argument("--policy", type=str, default=None, choices=POLICIES, help="Plot every sample or one averaged color per pixel.")
    r.add_argument("--workers", type=int, default=None, help="Worker processes for sample evaluation.")
    r.add_argument("--color", type=parse_color_slot, action="append", default=[], metavar="INDEX=#RRGGBB",
                   help="Replace one palette color. May be repeated.")
    r.add_argument("--plot-pixels", action="store_true", help="Build the image through the per-pixel drawing primitive instead of the sample buffer.")
    r.add_argument("--progress", action="store_true", help="Show a progress bar.")
    r.add_argument("--no-show", action="store_true", help="Render without opening an image viewer.")

    pal = sub.add_parser("palette", help="Print the colors the histogram assigns to N ranked samples.")
    pal.add_argument("count", type=int, help="Number of ranked samples.")

    return p

def _apply_render_overrides(cfg: dict, args: argparse.Namespace) -> dict:
    cfg = dict(cfg)
    center = list(cfg.get("center") or HOME_CENTER)
    if args.center_x is not None:
        center[0] = args.center_x
    if args.center_y is not None:
        center[1] = args.center_y
    if args.center_x is not None or args.center_y is not None:
        cfg["center"] = center
    if args.view_width is not None:
        cfg["view_width"] = args.view_width
    if args.view_height is not None:
        if not args.view_height > 0:
            raise ConfigurationError("view height must be > 0.")
        try:
            view_width = float(cfg.get("view_width") or HOME_WIDTH)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"view_width must be a number, got {cfg['view_width']!r}.") from e
        cfg["aspect_ratio"] = view_width / args.view_height
    for key in ("width", "height", "supersampling", "max_iterations", "workers"):
        value = getattr(args, key)
        if value is not None:
            cfg[key] = value
    if args.policy is not None:
        cfg["render_policy"] = args.policy
    return cfg

def main(argv: Optional[list] = None) -> int:
    args = build_arg_parser().parse_args(argv)

    log_level = parse_level(args.log_level)
    log_file = args.log_file if args.log_file and args.log_file.strip() else None
    listener_logger = configure_root_logging(level=log_level, console=True, log_file=log_file)

    queue = None
    listener = None
    logger = get_logger()

    try:
        raw = load_config(args.config)

        if args.cmd == "palette":
            cfg = normalise_config(raw)
            for c in build_histogram(cfg).generate(args.count):
                print(c.to_hex())
            return 0

        if args.cmd == "render":
            cfg = normalise_config(_apply_render_overrides(raw, args))
            histogram = build_histogram(cfg)
            for index, color in args.color:
                histogram = histogram.with_color(index, color)
            cfg["colors"] = list(histogram.colors)

            if cfg["workers"] and cfg["workers"] > 1:
                queue = create_log_queue()
                listener = start_queue_listener(queue, listener_logger)

            request = build_request(cfg)
            with RenderService(progress=args.progress, log_queue=queue, log_level=log_level) as service:
                frame = service.submit(request).result()

            logger.info("Rendered %sx%s, %s samples colored", frame.width, frame.height, frame.colored_count)
            image = compose_image(frame, cfg["render_policy"], per_pixel=args.plot_pixels)
            logger.info("Image %sx%s policy=%s", image.width, image.height, cfg["render_policy"])
            if not args.no_show:
                image.show(title="mandelview")
            return 0

        raise RuntimeError("Unknown command.")
    except ConfigurationError as e:
        logger.error("Invalid configuration: %s", e)
        return 2
    finally:
        stop_queue_listener(listener)
