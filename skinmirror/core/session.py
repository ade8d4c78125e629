# skinmirror/core/session.py
"""
Логика режимов за один тик рендера.

Контроллер получает неизменяемый снимок TickContext (кадр + ландмарки),
выбирает режим по жестам и даёт активному модулю дорисовать кадр.
Состояние модулей приватно; общаются они только через self.mode.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import numpy as np

from skinmirror.config import AppConfig
from skinmirror.effects.analysis import AnalysisResult, SkinAnalyzer
from skinmirror.effects.makeup import MakeupModule
from skinmirror.effects.patch import PatchModule
from skinmirror.vision.frame_data import Hand, Landmark
from skinmirror.vision.gesture_detector import GestureDetector, both_hands_open

logger = logging.getLogger(__name__)


class Mode(str, Enum):
    HOME = "home"
    ANALYSIS = "analysis"
    MAKEUP = "makeup"
    PATCH = "patch"


MODE_LABELS = {
    Mode.HOME: "Home",
    Mode.ANALYSIS: "Skin Analysis",
    Mode.MAKEUP: "Makeup Overlay",
    Mode.PATCH: "Skin Patch",
}

MODE_INSTRUCTIONS = {
    Mode.HOME: "Show 1 finger = Skin Analysis, 2 fingers = Makeup Overlay, 3 fingers = Skin Patch.",
    Mode.ANALYSIS: "Face will be scanned automatically. Show BOTH hands open to go back home.",
    Mode.MAKEUP: "Point to lips/cheeks. Fist = change shade. Open hand = clear. BOTH hands open = home.",
    Mode.PATCH: "Fist = cover patch. Open hand = remove. BOTH hands open = home.",
}

# Число поднятых пальцев на главном экране -> режим
HOME_MENU = {1: Mode.ANALYSIS, 2: Mode.MAKEUP, 3: Mode.PATCH}


@dataclass(frozen=True)
class TickContext:
    frame: np.ndarray
    face_landmarks: Optional[Tuple[Landmark, ...]] = None
    hands: Tuple[Hand, ...] = ()
    now_ms: Optional[float] = None

    @property
    def width(self) -> int:
        return self.frame.shape[1]

    @property
    def height(self) -> int:
        return self.frame.shape[0]


@dataclass
class TickResult:
    mode: Mode
    mode_changed: bool = False
    analysis: Optional[AnalysisResult] = None


class ModeController:
    def __init__(self, config: Optional[AppConfig] = None):
        self.config = config or AppConfig()
        self.mode = Mode.HOME

        self.gestures = GestureDetector(self.config.gestures)
        self.analyzer = SkinAnalyzer(self.config.analysis)
        self.makeup = MakeupModule(self.config.makeup)
        self.patch = PatchModule(self.config.patch)

    def tick(self, ctx: TickContext) -> TickResult:
        """Один кадр: жесты -> режим -> оверлей активного модуля (in-place)."""
        previous = self.mode
        analysis = self._handle_mode_logic(ctx)

        if ctx.face_landmarks:
            if self.mode == Mode.MAKEUP:
                self.makeup.draw(ctx.face_landmarks, ctx.frame)
            elif self.mode == Mode.PATCH:
                self.patch.draw(ctx.frame)

        return TickResult(self.mode, self.mode != previous, analysis)

    def _switch(self, mode: Mode):
        logger.info("Mode %s -> %s", self.mode.value, mode.value)
        self.mode = mode

    def _handle_mode_logic(self, ctx: TickContext) -> Optional[AnalysisResult]:
        hands = ctx.hands or ()
        hand = hands[0] if hands else None

        # Две раскрытые ладони = домой из любого режима
        if self.mode != Mode.HOME and both_hands_open(hands, self.config.gestures.open_hand_min_fingers):
            self._switch(Mode.HOME)
            self.patch.reset_state()
            return None

        if hand is None:
            if self.mode == Mode.ANALYSIS:
                return self.analyzer.analyze_if_needed(ctx.face_landmarks, ctx.frame, ctx.now_ms)
            return None

        gesture = self.gestures.detect(hand)

        if self.mode == Mode.HOME:
            target = HOME_MENU.get(gesture.raised)
            if target is not None:
                self._switch(target)

        elif self.mode == Mode.ANALYSIS:
            return self.analyzer.analyze_if_needed(ctx.face_landmarks, ctx.frame, ctx.now_ms)

        elif self.mode == Mode.MAKEUP:
            self.makeup.handle_gestures(ctx.face_landmarks, hand, gesture.pose,
                                        gesture.is_pointing, ctx.width, ctx.height)

        elif self.mode == Mode.PATCH:
            self.patch.handle_pose(gesture.pose)

        return None

    def reset(self):
        """Внешний сброс: домой, все модули выключены."""
        self.mode = Mode.HOME
        self.analyzer.reset_state()
        self.makeup.reset_state()
        self.patch.reset_state()

