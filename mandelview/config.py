import json
from typing import Any, Dict, Optional

from mandelview.camera import HOME_CENTER, HOME_WIDTH, Camera
from mandelview.color import DEFAULT_BREAKPOINTS, DEFAULT_COLORS, Color
from mandelview.errors import ConfigurationError
from mandelview.frame import SUPERSAMPLING
from mandelview.histogram import Histogram
from mandelview.pipeline import RenderRequest
from mandelview.pixels import POLICIES, SUPERSAMPLED
from mandelview.renderers.escape_time import (
    DEFAULT_ESCAPE_RADIUS_SQUARED,
    DEFAULT_MAX_ITERATIONS,
    MandelbrotEvaluator,
)

def default_config() -> Dict[str, Any]:
    return {
        "width": 600,
        "height": 600,
        "center": list(HOME_CENTER),
        "view_width": HOME_WIDTH,
        "aspect_ratio": None,
        "supersampling": SUPERSAMPLING,
        "max_iterations": DEFAULT_MAX_ITERATIONS,
        "escape_radius_squared": DEFAULT_ESCAPE_RADIUS_SQUARED,
        "breakpoints": list(DEFAULT_BREAKPOINTS),
        "colors": list(DEFAULT_COLORS),
        "render_policy": SUPERSAMPLED,
        "workers": None,
    }

def load_config(config_path: Optional[str]) -> Dict[str, Any]:
    if not config_path:
        return default_config()
    with open(config_path, "r", encoding="utf-8") as f:
        try:
            cfg = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Config {config_path} is not valid JSON: {e}") from e
    if not isinstance(cfg, dict):
        raise ConfigurationError("Config JSON must be an object.")
    return cfg

def _number(cfg: Dict[str, Any], key: str, kind):
    value = cfg[key]
    if kind is int and isinstance(value, float) and not value.is_integer():
        raise ConfigurationError(f"{key} must be a whole number, got {value!r}.")
    try:
        return kind(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{key} must be a {kind.__name__}, got {cfg[key]!r}.") from e

def normalise_config(cfg: Dict[str, Any]) -> Dict[str, Any]:
    unknown = set(cfg) - set(default_config())
    if unknown:
        raise ConfigurationError(f"Unknown config field(s): {', '.join(sorted(unknown))}")

    out = default_config()
    out.update({k: v for k, v in cfg.items() if v is not None or k in ("aspect_ratio", "workers")})

    width = _number(out, "width", int)
    height = _number(out, "height", int)
    supersampling = _number(out, "supersampling", int)
    if width <= 0 or height <= 0 or supersampling <= 0:
        raise ConfigurationError("width/height/supersampling must be positive.")

    center = out["center"]
    if not (isinstance(center, (list, tuple)) and len(center) == 2):
        raise ConfigurationError("center must be [re, im].")
    try:
        center = [float(center[0]), float(center[1])]
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"center must hold two numbers, got {out['center']!r}.") from e

    view_width = _number(out, "view_width", float)
    if not view_width > 0:
        raise ConfigurationError("view_width must be > 0.")
    aspect_ratio = width / height if out["aspect_ratio"] is None else _number(out, "aspect_ratio", float)
    if not aspect_ratio > 0:
        raise ConfigurationError("aspect_ratio must be > 0.")

    if out["render_policy"] not in POLICIES:
        raise ConfigurationError(f"render_policy must be one of: {', '.join(POLICIES)}")

    workers = out["workers"]
    if workers is not None:
        workers = _number(out, "workers", int)
        if workers < 1:
            raise ConfigurationError("workers must be >= 1.")

    if not isinstance(out["breakpoints"], (list, tuple)) or not isinstance(out["colors"], (list, tuple)):
        raise ConfigurationError("breakpoints and colors must be lists.")

    out.update(
        width=width,
        height=height,
        supersampling=supersampling,
        center=center,
        view_width=view_width,
        aspect_ratio=aspect_ratio,
        max_iterations=_number(out, "max_iterations", int),
        escape_radius_squared=_number(out, "escape_radius_squared", float),
        breakpoints=[_number({"breakpoint": b}, "breakpoint", float) for b in out["breakpoints"]],
        colors=[Color.parse(c) for c in out["colors"]],
        workers=workers,
    )
    # fail before any render if the palette is malformed
    build_histogram(out)
    build_evaluator(out)
    return out

def build_camera(cfg: Dict[str, Any]) -> Camera:
    return Camera(cfg["center"][0], cfg["center"][1], cfg["view_width"], cfg["aspect_ratio"])

def build_histogram(cfg: Dict[str, Any]) -> Histogram:
    return Histogram(cfg["breakpoints"], cfg["colors"])

def build_evaluator(cfg: Dict[str, Any]) -> MandelbrotEvaluator:
    return MandelbrotEvaluator(cfg["max_iterations"], cfg["escape_radius_squared"])

def build_request(cfg: Dict[str, Any]) -> RenderRequest:
    return RenderRequest(
        camera=build_camera(cfg),
        width=cfg["width"],
        height=cfg["height"],
        histogram=build_histogram(cfg),
        evaluator=build_evaluator(cfg),
        supersampling=cfg["supersampling"],
        workers=cfg["workers"],
    )
