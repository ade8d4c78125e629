# skinmirror/vision/gesture_detector.py
"""
Геометрия жестов по 21 точке одной руки.

Никакого сглаживания во времени: каждая функция смотрит только на текущий кадр.
Ограничение: "палец поднят" считается по оси y изображения, т.е. предполагается
вертикальная ладонь. Повёрнутые боком или перевёрнутые руки не поддерживаются.
"""
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from skinmirror.config import GestureConfig
from skinmirror.vision.frame_data import Hand, Landmark

# (MCP, PIP, DIP, TIP)
FINGER_INDICES = {
    "thumb": (1, 2, 3, 4),
    "index": (5, 6, 7, 8),
    "middle": (9, 10, 11, 12),
    "ring": (13, 14, 15, 16),
    "pinky": (17, 18, 19, 20),
}

# Большой палец в подсчёте не участвует
COUNTED_FINGERS = ("index", "middle", "ring", "pinky")

WRIST = 0
INDEX_TIP = 8


class Pose(str, Enum):
    FIST = "fist"
    OPEN = "open"


def _has_landmarks(hand: Optional[Hand]) -> bool:
    return hand is not None and bool(hand.landmarks)


def is_finger_up(hand: Optional[Hand], finger: str) -> bool:
    if not _has_landmarks(hand):
        return False
    _, pip_idx, _, tip_idx = FINGER_INDICES[finger]
    # y меньше = выше в координатах изображения
    return hand.landmarks[tip_idx].y < hand.landmarks[pip_idx].y


def count_raised_fingers(hand: Optional[Hand]) -> int:
    if not _has_landmarks(hand):
        return 0
    return sum(1 for finger in COUNTED_FINGERS if is_finger_up(hand, finger))


def is_fist(hand: Optional[Hand]) -> bool:
    """Все четыре пальца согнуты: кончик ниже костяшки (MCP)."""
    if not _has_landmarks(hand):
        return False
    lms = hand.landmarks
    return all(
        lms[FINGER_INDICES[f][3]].y > lms[FINGER_INDICES[f][0]].y
        for f in COUNTED_FINGERS
    )


def is_open_hand(hand: Optional[Hand], min_fingers: int = 3) -> bool:
    if not _has_landmarks(hand):
        return False
    return count_raised_fingers(hand) >= min_fingers


def is_pointing(hand: Optional[Hand]) -> bool:
    # Поднят ровно один палец, и это указательный
    if not _has_landmarks(hand):
        return False
    return count_raised_fingers(hand) == 1 and is_finger_up(hand, "index")


def index_finger_tip(hand: Optional[Hand]) -> Optional[Landmark]:
    if not _has_landmarks(hand):
        return None
    return hand.landmarks[INDEX_TIP]


def both_hands_open(hands: Sequence[Hand], min_fingers: int = 3) -> bool:
    """Жест "домой": минимум две раскрытые ладони в кадре."""
    if len(hands) < 2:
        return False
    return sum(1 for h in hands if is_open_hand(h, min_fingers)) >= 2


@dataclass
class GestureResult:
    raised: int = 0
    pose: Optional[Pose] = None
    is_pointing: bool = False
    tip: Optional[Landmark] = None


class GestureDetector:
    def __init__(self, config: Optional[GestureConfig] = None):
        self.config = config or GestureConfig()

    def detect(self, hand: Optional[Hand]) -> GestureResult:
        result = GestureResult()
        if not _has_landmarks(hand):
            return result

        result.raised = count_raised_fingers(hand)
        result.is_pointing = is_pointing(hand)
        result.tip = index_finger_tip(hand)

        # Кулак проверяется раньше ладони
        if is_fist(hand):
            result.pose = Pose.FIST
        elif result.raised >= self.config.open_hand_min_fingers:
            result.pose = Pose.OPEN

        return result


class SwipeDetector:
    """
    Детектор свайпа по x-координате запястья в скользящем окне.

    Сейчас ни к одному режиму не подключён; оставлен как часть словаря жестов.
    update() возвращает "right-to-left", "left-to-right" или None.
    """

    def __init__(self, buffer_size: int = 4, threshold: float = 0.08):
        self.buffer_size = buffer_size
        self.threshold = threshold
        self.positions = deque(maxlen=buffer_size)

    @classmethod
    def from_config(cls, config: GestureConfig) -> "SwipeDetector":
        return cls(config.swipe_buffer_size, config.swipe_threshold)

    def update(self, hand: Optional[Hand]) -> Optional[str]:
        if not _has_landmarks(hand):
            return None
        self.positions.append(hand.landmarks[WRIST].x)

        if len(self.positions) < self.buffer_size:
            return None

        delta = self.positions[0] - self.positions[-1]
        if delta > self.threshold:
            return "right-to-left"
        if delta < -self.threshold:
            return "left-to-right"
        return None

    def reset(self):
        self.positions.clear()
