# skinmirror/vision/camera_service.py
import logging
import time
from typing import Optional, Tuple

import cv2
import mediapipe as mp

from skinmirror.config import CameraConfig
from .frame_data import FrameData, Hand, Landmark
from .metrics import MetricsCollector

logger = logging.getLogger(__name__)


def _to_landmarks(proto_landmarks) -> Tuple[Landmark, ...]:
    return tuple(Landmark(float(p.x), float(p.y)) for p in proto_landmarks.landmark)


class CameraService:
    """
    Источник кадров и снимков ландмарок.

    Детекторы MediaPipe можно передать снаружи (в тестах - заглушки с
    методом process(rgb_frame)), иначе они создаются здесь.
    """

    def __init__(self, config: Optional[CameraConfig] = None, face_mesh=None, hands=None):
        self.config = config or CameraConfig()

        self.cap = cv2.VideoCapture(self.config.index)
        if not self.cap.isOpened():
            raise RuntimeError(f"Cannot open camera {self.config.index}")

        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.config.width)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.config.height)

        self.face_mesh = face_mesh if face_mesh is not None else self._create_face_mesh()
        self.hands = hands if hands is not None else self._create_hands()

        self.metrics = MetricsCollector()
        self.last_frame_time = time.perf_counter()
        self.mirror = self.config.mirror
        self._released = False

    def _create_face_mesh(self):
        return mp.solutions.face_mesh.FaceMesh(
            static_image_mode=False,
            max_num_faces=self.config.max_num_faces,
            refine_landmarks=self.config.refine_landmarks,
            min_detection_confidence=self.config.min_detection_confidence,
            min_tracking_confidence=self.config.min_tracking_confidence,
        )

    def _create_hands(self):
        return mp.solutions.hands.Hands(
            static_image_mode=False,
            max_num_hands=self.config.max_num_hands,
            model_complexity=self.config.model_complexity,
            min_detection_confidence=self.config.min_detection_confidence,
            min_tracking_confidence=self.config.min_tracking_confidence,
        )

    def get_frame_data(self) -> FrameData:
        """
        Главный метод: кадр (RGBA) и неизменяемый снимок лица и рук.
        Остальные модули используют ТОЛЬКО этот метод.
        """
        frame_data = FrameData()

        current_time = time.perf_counter()
        frame_data.latency_ms = (current_time - self.last_frame_time) * 1000
        self.last_frame_time = current_time

        ret, frame = self.cap.read()
        if not ret or frame is None:
            logger.debug("Camera returned no frame")
            return frame_data

        if self.mirror:
            frame = cv2.flip(frame, 1)

        rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        frame_data.face_landmarks = self._detect_face(rgb_frame)
        frame_data.hands = self._detect_hands(rgb_frame)

        frame_data.frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGBA)
        frame_data.fps = self.metrics.update()
        return frame_data

    def _detect_face(self, rgb_frame) -> Optional[Tuple[Landmark, ...]]:
        results = self.face_mesh.process(rgb_frame)
        faces = getattr(results, "multi_face_landmarks", None)
        if not faces:
            return None
        return _to_landmarks(faces[0])

    def _detect_hands(self, rgb_frame) -> Tuple[Hand, ...]:
        results = self.hands.process(rgb_frame)
        hands = getattr(results, "multi_hand_landmarks", None)
        if not hands:
            return ()
        return tuple(Hand(_to_landmarks(h)) for h in hands)

    def release(self):
        if self.cap.isOpened():
            self.cap.release()
        if self._released:
            return
        self._released = True
        for detector in (self.face_mesh, self.hands):
            close = getattr(detector, "close", None)
            if close is not None:
                close()

    def __del__(self):
        if getattr(self, "cap", None) is not None and self.cap.isOpened():
            self.cap.release()
