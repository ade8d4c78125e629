from dataclasses import dataclass
from typing import NamedTuple, Optional, Tuple
import numpy as np


class Landmark(NamedTuple):
    # Нормализованные координаты 0..1 относительно кадра
    x: float
    y: float


@dataclass(frozen=True)
class Hand:
    # 21 точка MediaPipe Hands, индекс 8 - кончик указательного
    landmarks: Tuple[Landmark, ...] = ()


@dataclass
class FrameData:
    # Текущий кадр (RGBA, numpy array H x W x 4)
    frame: Optional[np.ndarray] = None

    # Снимок детекторов на момент кадра
    face_landmarks: Optional[Tuple[Landmark, ...]] = None
    hands: Tuple[Hand, ...] = ()

    # Метрики качества
    fps: float = 0.0
    latency_ms: float = 0.0

    @property
    def is_tracking(self) -> bool:
        return self.face_landmarks is not None or bool(self.hands)
