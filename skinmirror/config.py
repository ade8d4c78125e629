# skinmirror/config.py
import json
import logging
from dataclasses import dataclass, field, fields, replace
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

RGB = Tuple[int, int, int]


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class CameraConfig:
    index: int = 0
    width: int = 640
    height: int = 360
    mirror: bool = True
    max_num_faces: int = 1
    max_num_hands: int = 2
    refine_landmarks: bool = True
    model_complexity: int = 0
    min_detection_confidence: float = 0.5
    min_tracking_confidence: float = 0.5


@dataclass(frozen=True)
class AnalysisConfig:
    """Пороги эвристического анализа кожи (подобраны вручную, не обучены)."""
    interval_ms: float = 2000.0

    # Тон: luma < dark -> Dark, < medium -> Medium, иначе Bright
    tone_dark_below: float = 80.0
    tone_medium_below: float = 150.0

    # Тип: сначала Oily, потом Dry
    oily_contrast_above: float = 60.0
    oily_luma_above: float = 80.0
    dry_contrast_below: float = 35.0

    # Пиксель "воспаления": R > red_min и R больше G/B на margin
    acne_red_min: int = 140
    acne_red_margin: int = 25
    acne_high_above: float = 0.05
    acne_moderate_above: float = 0.02
    acne_mild_above: float = 0.005

    tzone_margin: float = 10.0


# Натуральные nude / пастельные оттенки
DEFAULT_SHADES: Tuple[RGB, ...] = (
    (180, 76, 67),    # soft red
    (225, 170, 150),  # peach nude
    (190, 115, 120),  # dusty rose
    (205, 135, 125),  # warm rose nude
    (198, 110, 90),   # soft terracotta
    (220, 150, 170),  # pinky mauve
)


@dataclass(frozen=True)
class MakeupConfig:
    shades: Tuple[RGB, ...] = DEFAULT_SHADES
    # Радиусы в долях от min(width, height)
    lip_radius_ratio: float = 0.07
    cheek_radius_ratio: float = 0.09
    lip_alpha: float = 0.55
    lip_blur_sigma: float = 1.3
    blush_radius_ratio: float = 0.075
    blush_inner_ratio: float = 0.2
    blush_alpha: float = 0.30


@dataclass(frozen=True)
class PatchConfig:
    """Параметры маски и заливки для заплатки."""
    redness_threshold: int = 38
    red_min: int = 70
    min_defect_pixels: int = 80
    majority_min: int = 4
    neighborhood_radius: int = 7
    fill_strength: float = 0.95


@dataclass(frozen=True)
class GestureConfig:
    open_hand_min_fingers: int = 3
    swipe_buffer_size: int = 4
    swipe_threshold: float = 0.08


@dataclass(frozen=True)
class AppConfig:
    camera: CameraConfig = field(default_factory=CameraConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    makeup: MakeupConfig = field(default_factory=MakeupConfig)
    patch: PatchConfig = field(default_factory=PatchConfig)
    gestures: GestureConfig = field(default_factory=GestureConfig)
    tick_interval_ms: int = 16


_SECTIONS = ("camera", "analysis", "makeup", "patch", "gestures")


def _override(section, values: dict, name: str):
    known = {f.name for f in fields(section)}
    unknown = set(values) - known
    if unknown:
        raise ConfigError(f"Unknown keys in [{name}]: {', '.join(sorted(unknown))}")
    if "shades" in values:
        values = dict(values, shades=tuple(tuple(int(c) for c in s) for s in values["shades"]))
        if not values["shades"]:
            raise ConfigError("[makeup] shades must not be empty")
    return replace(section, **values)


def load_config(path: Optional[str] = None) -> AppConfig:
    """
    Возвращает конфигурацию по умолчанию или с переопределениями из JSON-файла.
    Формат: {"patch": {"redness_threshold": 40}, "tick_interval_ms": 20, ...}
    """
    config = AppConfig()
    if path is None:
        return config

    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot read config {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} must contain a JSON object")

    updates = {}
    for key, value in data.items():
        if key == "tick_interval_ms":
            updates[key] = int(value)
            continue
        section = getattr(config, key, None) if key in _SECTIONS else None
        if section is None or not isinstance(value, dict):
            raise ConfigError(f"Unknown config section: {key}")
        updates[key] = _override(section, value, key)

    logger.info("Loaded config overrides from %s: %s", path, ", ".join(sorted(updates)) or "none")
    return replace(config, **updates)
