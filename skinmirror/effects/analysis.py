# skinmirror/effects/analysis.py
"""
Эвристический анализ кожи по области лица.

Это демонстрация, а не диагностика: фиксированные пороги по яркости,
контрасту и "красноте" пикселей. Результат пересчитывается не чаще
одного раза в AnalysisConfig.interval_ms.
"""
import logging
import math
import time
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np

from skinmirror.config import AnalysisConfig
from skinmirror.vision.frame_data import Landmark

logger = logging.getLogger(__name__)

FOREHEAD_IDX = 10
LEFT_CHEEK_IDX = 234
RIGHT_CHEEK_IDX = 454

LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114])


@dataclass
class AnalysisResult:
    tone: str
    skin_type: str
    acne: str
    tzone: str
    recommendations: List[str] = field(default_factory=list)


def face_bounding_box(face_landmarks: Sequence[Landmark], width: int, height: int) -> Tuple[int, int, int, int]:
    """Возвращает (x, y, w, h) в пикселях, не меньше 1x1 и внутри кадра."""
    xs = [p.x for p in face_landmarks]
    ys = [p.y for p in face_landmarks]
    min_x, max_x = min(xs), max(xs)
    min_y, max_y = min(ys), max(ys)

    x0, x1 = _clip_span(math.floor(min_x * width), max(1, math.floor((max_x - min_x) * width)), width)
    y0, y1 = _clip_span(math.floor(min_y * height), max(1, math.floor((max_y - min_y) * height)), height)
    return x0, y0, x1 - x0, y1 - y0


def _clip_span(start: int, length: int, limit: int) -> Tuple[int, int]:
    # Пересечение [start, start + length) с [0, limit), минимум 1 пиксель
    end = min(start + length, limit)
    start = min(max(start, 0), limit - 1)
    return start, max(end, start + 1)


def luma(rgb: np.ndarray) -> np.ndarray:
    return rgb[..., :3].astype(np.float64) @ LUMA_WEIGHTS


def luma_stats(region: np.ndarray) -> Tuple[float, float]:
    """Средняя яркость и контраст (стандартное отклонение яркости)."""
    gray = luma(region).ravel()
    avg = float(gray.mean())
    variance = float((gray * gray).mean()) - avg * avg
    # Отрицательная дисперсия возможна из-за округления
    return avg, math.sqrt(max(variance, 0.0))


def classify_tone(avg_luma: float, config: Optional[AnalysisConfig] = None) -> str:
    cfg = config or AnalysisConfig()
    if avg_luma < cfg.tone_dark_below:
        return "Dark"
    if avg_luma < cfg.tone_medium_below:
        return "Medium"
    return "Bright"


def classify_type(contrast: float, avg_luma: float, config: Optional[AnalysisConfig] = None) -> str:
    cfg = config or AnalysisConfig()
    if contrast > cfg.oily_contrast_above and avg_luma > cfg.oily_luma_above:
        return "Oily"
    if contrast < cfg.dry_contrast_below:
        return "Dry"
    return "Normal / Combination"


def classify_acne(density: float, config: Optional[AnalysisConfig] = None) -> str:
    cfg = config or AnalysisConfig()
    if density > cfg.acne_high_above:
        return "High"
    if density > cfg.acne_moderate_above:
        return "Moderate"
    if density > cfg.acne_mild_above:
        return "Mild"
    return "Low / None"


def red_spot_density(region: np.ndarray, config: Optional[AnalysisConfig] = None) -> float:
    cfg = config or AnalysisConfig()
    rgb = region[..., :3].astype(np.int16)
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    spots = (r > cfg.acne_red_min) & (r > g + cfg.acne_red_margin) & (r > b + cfg.acne_red_margin)
    total = spots.size
    return int(np.count_nonzero(spots)) / total if total else 0.0


def estimate_acne(region: np.ndarray, config: Optional[AnalysisConfig] = None) -> str:
    return classify_acne(red_spot_density(region, config), config)


def _sample_luma(frame: np.ndarray, lm: Landmark) -> float:
    h, w = frame.shape[:2]
    x = min(max(math.floor(lm.x * w), 0), w - 1)
    y = min(max(math.floor(lm.y * h), 0), h - 1)
    return float(luma(frame[y, x]))


def estimate_tzone(face_landmarks: Sequence[Landmark], frame: np.ndarray, config: Optional[AnalysisConfig] = None) -> str:
    cfg = config or AnalysisConfig()
    forehead = _sample_luma(frame, face_landmarks[FOREHEAD_IDX])
    cheeks = (_sample_luma(frame, face_landmarks[LEFT_CHEEK_IDX])
              + _sample_luma(frame, face_landmarks[RIGHT_CHEEK_IDX])) / 2

    if forehead - cheeks > cfg.tzone_margin:
        return "Pronounced T-zone"
    return "Balanced / Mild T-zone"


def build_recommendations(skin_type: str, acne: str) -> List[str]:
    if skin_type == "Oily":
        recs = [
            "Use gentle foaming cleanser twice a day.",
            "Choose non-comedogenic, oil-free moisturizer.",
            "Use salicylic acid spot treatment for acne.",
        ]
    elif skin_type == "Dry":
        recs = [
            "Use hydrating creamy cleanser.",
            "Apply thick moisturizer with ceramides.",
            "Avoid harsh scrubs and alcohol toners.",
        ]
    else:
        recs = [
            "Use gentle cleanser and light moisturizer.",
            "Use sunscreen SPF 30+ every day.",
        ]

    if acne in ("High", "Moderate"):
        recs.append("Consult dermatologist for routine if acne persists.")
    return recs


class SkinAnalyzer:
    def __init__(self, config: Optional[AnalysisConfig] = None):
        self.config = config or AnalysisConfig()
        self.last_analysis_ms: Optional[float] = None
        self.last_result: Optional[AnalysisResult] = None

    def analyze_if_needed(self, face_landmarks: Optional[Sequence[Landmark]], frame: np.ndarray,
                          now_ms: float = None) -> Optional[AnalysisResult]:
        """Запускает анализ, если есть лицо и прошёл интервал; иначе None."""
        if not face_landmarks:
            return None
        now = time.perf_counter() * 1000 if now_ms is None else now_ms
        if self.last_analysis_ms is not None and now - self.last_analysis_ms < self.config.interval_ms:
            return None

        self.last_analysis_ms = now
        return self.analyze(face_landmarks, frame)

    def analyze(self, face_landmarks: Sequence[Landmark], frame: np.ndarray) -> AnalysisResult:
        h, w = frame.shape[:2]
        x, y, box_w, box_h = face_bounding_box(face_landmarks, w, h)
        region = frame[y:y + box_h, x:x + box_w]

        avg_luma, contrast = luma_stats(region)
        tone = classify_tone(avg_luma, self.config)
        skin_type = classify_type(contrast, avg_luma, self.config)
        acne = estimate_acne(region, self.config)
        tzone = estimate_tzone(face_landmarks, frame, self.config)

        result = AnalysisResult(tone, skin_type, acne, tzone, build_recommendations(skin_type, acne))
        logger.debug("Skin analysis: luma=%.1f contrast=%.1f -> %s", avg_luma, contrast, result)
        self.last_result = result
        return result

    def reset_state(self):
        self.last_analysis_ms = None
        self.last_result = None
