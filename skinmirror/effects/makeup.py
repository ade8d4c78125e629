# skinmirror/effects/makeup.py
import logging
import math
from typing import Optional, Sequence, Tuple

import cv2
import numpy as np

from skinmirror.config import MakeupConfig
from skinmirror.vision.frame_data import Hand, Landmark
from skinmirror.vision.gesture_detector import INDEX_TIP, Pose

logger = logging.getLogger(__name__)

LIP_REF_IDX = 61
CHEEK_IDS = (234, 454)
LIP_CONTOUR = (
    61, 185, 40, 39, 37, 0, 267, 269, 270, 409,
    291, 375, 321, 405, 314, 17, 84, 181, 91, 146,
)


def _to_px(lm: Landmark, width: int, height: int) -> Tuple[float, float]:
    return lm.x * width, lm.y * height


def _blend(frame: np.ndarray, alpha: np.ndarray, color, y0: int = 0, x0: int = 0):
    """Смешивает цвет с кадром in-place по карте прозрачности alpha (0..1)."""
    h, w = alpha.shape
    roi = frame[y0:y0 + h, x0:x0 + w, :3]
    a = alpha[..., None]
    mixed = roi.astype(np.float32) * (1.0 - a) + np.asarray(color, dtype=np.float32) * a
    roi[...] = np.clip(np.rint(mixed), 0, 255).astype(np.uint8)


class MakeupModule:
    """Помада и румяна; оттенок меняется кулаком, включение - указательным пальцем."""

    def __init__(self, config: Optional[MakeupConfig] = None):
        self.config = config or MakeupConfig()
        self.shades = self.config.shades

        self.lipstick_on = False
        self.blush_on = False
        self.shade_index = 0
        self.last_pose: Optional[Pose] = None

    @property
    def current_shade(self) -> Tuple[int, int, int]:
        return self.shades[self.shade_index]

    def next_shade(self):
        self.shade_index = (self.shade_index + 1) % len(self.shades)
        logger.debug("Shade -> %d %s", self.shade_index, self.current_shade)

    def handle_gestures(self, face_landmarks: Optional[Sequence[Landmark]], hand: Optional[Hand],
                        pose: Optional[Pose], is_pointing: bool, width: int, height: int):
        if not face_landmarks or hand is None or not hand.landmarks:
            return

        # Только по фронту: удерживаемый кулак не крутит палитру
        if pose == Pose.FIST and self.last_pose != Pose.FIST:
            self.next_shade()

        if pose == Pose.OPEN:
            self.lipstick_on = False
            self.blush_on = False

        if is_pointing:
            fx, fy = _to_px(hand.landmarks[INDEX_TIP], width, height)

            def dist(lm):
                lx, ly = _to_px(lm, width, height)
                return math.hypot(lx - fx, ly - fy)

            lip_dist = dist(face_landmarks[LIP_REF_IDX])
            cheek_dist = min(dist(face_landmarks[i]) for i in CHEEK_IDS)

            base = min(width, height)
            if lip_dist < self.config.lip_radius_ratio * base:
                self.lipstick_on = True
            elif cheek_dist < self.config.cheek_radius_ratio * base:
                self.blush_on = True

        self.last_pose = pose

    def draw(self, face_landmarks: Optional[Sequence[Landmark]], frame: np.ndarray):
        if not face_landmarks:
            return
        if self.lipstick_on:
            self.draw_lips(face_landmarks, frame)
        if self.blush_on:
            self.draw_blush(face_landmarks, frame)

    def draw_lips(self, lm: Sequence[Landmark], frame: np.ndarray):
        h, w = frame.shape[:2]
        points = np.array([_to_px(lm[i], w, h) for i in LIP_CONTOUR], dtype=np.float32)

        mask = np.zeros((h, w), dtype=np.uint8)
        cv2.fillPoly(mask, [np.rint(points).astype(np.int32)], 255, cv2.LINE_AA)
        # Лёгкое размытие краёв
        mask = cv2.GaussianBlur(mask, (0, 0), self.config.lip_blur_sigma)

        alpha = mask.astype(np.float32) / 255.0 * self.config.lip_alpha
        _blend(frame, alpha, self.current_shade)

    def draw_blush(self, lm: Sequence[Landmark], frame: np.ndarray):
        h, w = frame.shape[:2]
        max_r = self.config.blush_radius_ratio * min(w, h)
        inner_r = max_r * self.config.blush_inner_ratio
        if max_r <= 0:
            return

        for idx in CHEEK_IDS:
            cx, cy = _to_px(lm[idx], w, h)
            x0 = max(int(math.floor(cx - max_r)), 0)
            y0 = max(int(math.floor(cy - max_r)), 0)
            x1 = min(int(math.ceil(cx + max_r)) + 1, w)
            y1 = min(int(math.ceil(cy + max_r)) + 1, h)
            if x0 >= x1 or y0 >= y1:
                continue

            yy, xx = np.mgrid[y0:y1, x0:x1].astype(np.float32)
            d = np.hypot(xx + 0.5 - cx, yy + 0.5 - cy)

            # Радиальный градиент: полная плотность до inner_r, к max_r - ноль
            t = np.clip((d - inner_r) / max(max_r - inner_r, 1e-6), 0.0, 1.0)
            alpha = self.config.blush_alpha * (1.0 - t)
            alpha[d > max_r] = 0.0
            _blend(frame, alpha, self.current_shade, y0, x0)

    def reset_state(self):
        self.lipstick_on = False
        self.blush_on = False
        self.last_pose = None
