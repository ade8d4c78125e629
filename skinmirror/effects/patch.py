# skinmirror/effects/patch.py
"""
"Заплатка" для кожи в стиле inpainting.

1. Маска дефекта по красноте: R - max(G, B) > порога и R > минимума.
2. Меньше min_defect_pixels отмеченных пикселей - нечего латать (None).
3. Один проход мажоритарного фильтра 3x3 по внутренним пикселям.
4. Каждый отмеченный пиксель заменяется средним цветом здоровых соседей
   в окне (2R+1)x(2R+1), 95% здоровая кожа + 5% оригинала.

Патч считается один раз по кулаку и затем показывается из кэша, чтобы
картинка не дрожала от шума маски между кадрами.
"""
import logging
from enum import Enum
from typing import Optional

import numpy as np

from skinmirror.config import PatchConfig
from skinmirror.vision.gesture_detector import Pose

logger = logging.getLogger(__name__)


class PatchState(Enum):
    OFF = "off"
    PENDING = "pending"
    APPLIED = "applied"


def _box_sum(values: np.ndarray, radius: int) -> np.ndarray:
    """Сумма по окну (2r+1)x(2r+1) для каждого пикселя, за краем кадра нули."""
    h, w = values.shape[:2]
    k = 2 * radius + 1
    extra = ((0, 0),) * (values.ndim - 2)

    padded = np.pad(values.astype(np.int64), ((radius, radius), (radius, radius)) + extra)
    integral = np.pad(padded.cumsum(axis=0).cumsum(axis=1), ((1, 0), (1, 0)) + extra)

    return (integral[k:k + h, k:k + w] - integral[:h, k:k + w]
            - integral[k:k + h, :w] + integral[:h, :w])


def build_defect_mask(frame: np.ndarray, config: Optional[PatchConfig] = None) -> np.ndarray:
    cfg = config or PatchConfig()
    rgb = frame[..., :3].astype(np.int16)
    r = rgb[..., 0]
    redness = r - np.maximum(rgb[..., 1], rgb[..., 2])
    return (redness > cfg.redness_threshold) & (r > cfg.red_min)


def majority_filter(mask: np.ndarray, min_count: int = 4) -> np.ndarray:
    """Один проход 3x3 по исходной маске; рамка в 1 пиксель всегда 0."""
    cleaned = np.zeros_like(mask, dtype=bool)
    h, w = mask.shape
    if h < 3 or w < 3:
        return cleaned
    counts = _box_sum(mask, 1)
    cleaned[1:-1, 1:-1] = counts[1:-1, 1:-1] >= min_count
    return cleaned


def compute_patch(frame: np.ndarray, config: Optional[PatchConfig] = None) -> Optional[np.ndarray]:
    """Возвращает новый залатанный кадр или None, если дефекта не найдено."""
    cfg = config or PatchConfig()

    mask = build_defect_mask(frame, cfg)
    defect_count = int(np.count_nonzero(mask))
    if defect_count < cfg.min_defect_pixels:
        logger.info("Patch skipped: only %d defect pixels", defect_count)
        return None

    cleaned = majority_filter(mask, cfg.majority_min)

    healthy = ~cleaned
    src = frame[..., :3].astype(np.int64)
    sums = _box_sum(src * healthy[..., None], cfg.neighborhood_radius)
    counts = _box_sum(healthy, cfg.neighborhood_radius)

    # Без здоровых соседей пиксель остаётся как есть
    target = cleaned & (counts > 0)

    out = frame.copy()
    mean = sums[target] / counts[target][:, None]
    strength = cfg.fill_strength
    blended = src[target] * (1 - strength) + mean * strength
    out[..., :3][target] = np.clip(np.rint(blended), 0, 255).astype(frame.dtype)

    logger.info("Patch computed: %d defect pixels, %d filled", defect_count, int(np.count_nonzero(target)))
    return out


class PatchModule:
    def __init__(self, config: Optional[PatchConfig] = None):
        self.config = config or PatchConfig()
        self.state = PatchState.OFF
        self.patched_image: Optional[np.ndarray] = None

    def handle_pose(self, pose: Optional[Pose]):
        if pose == Pose.FIST:
            # Срабатывает один раз при включении
            if self.state == PatchState.OFF:
                self.state = PatchState.PENDING
        elif pose == Pose.OPEN:
            self.reset_state()

    def draw(self, frame: np.ndarray):
        if self.state == PatchState.OFF:
            return

        if self.state == PatchState.PENDING:
            try:
                patched = compute_patch(frame, self.config)
            except Exception as e:
                logger.error("Patch compute failed: %s", e, exc_info=True)
                self.reset_state()
                return
            if patched is None:
                self.reset_state()
                return
            self.patched_image = patched
            self.state = PatchState.APPLIED

        if self.patched_image.shape != frame.shape:
            logger.warning("Frame size changed %s -> %s, dropping patch",
                           self.patched_image.shape, frame.shape)
            self.reset_state()
            return

        frame[...] = self.patched_image

    def reset_state(self):
        self.state = PatchState.OFF
        self.patched_image = None
