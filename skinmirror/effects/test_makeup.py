import math

import numpy as np
import pytest

from skinmirror.effects.makeup import LIP_CONTOUR, MakeupModule
from skinmirror.vision.gesture_detector import Pose

W, H = 200, 100


@pytest.fixture
def face(make_face):
    points = {234: (0.3, 0.5), 454: (0.7, 0.5)}
    # Контур губ - эллипс вокруг (0.5, 0.7)
    for k, idx in enumerate(LIP_CONTOUR):
        angle = 2 * math.pi * k / len(LIP_CONTOUR)
        points[idx] = (0.5 + 0.05 * math.cos(angle), 0.7 + 0.05 * math.sin(angle))
    points[61] = (0.5, 0.7)
    return make_face(points)


class TestShadeCycling:
    def test_fist_edge_advances_once(self, face, make_hand):
        makeup = MakeupModule()
        fist = make_hand()
        for _ in range(5):
            makeup.handle_gestures(face, fist, Pose.FIST, False, W, H)
        assert makeup.shade_index == 1

    def test_six_edges_wrap_around(self, face, make_hand):
        makeup = MakeupModule()
        relaxed = make_hand(relaxed=True)
        fist = make_hand()
        for n in range(1, 7):
            makeup.handle_gestures(face, fist, Pose.FIST, False, W, H)
            makeup.handle_gestures(face, relaxed, None, False, W, H)
            assert makeup.shade_index == n % 6
        assert makeup.shade_index == 0

    def test_no_face_keeps_state(self, make_hand):
        makeup = MakeupModule()
        makeup.handle_gestures(None, make_hand(), Pose.FIST, False, W, H)
        assert makeup.shade_index == 0
        assert makeup.last_pose is None


class TestToggles:
    def test_point_at_lips(self, face, make_hand):
        makeup = MakeupModule()
        makeup.handle_gestures(face, make_hand(raised=("index",), tip_at=(0.5, 0.7)), None, True, W, H)
        assert makeup.lipstick_on
        assert not makeup.blush_on

    def test_point_at_cheek(self, face, make_hand):
        makeup = MakeupModule()
        makeup.handle_gestures(face, make_hand(raised=("index",), tip_at=(0.71, 0.52)), None, True, W, H)
        assert makeup.blush_on
        assert not makeup.lipstick_on

    def test_point_elsewhere(self, face, make_hand):
        makeup = MakeupModule()
        makeup.handle_gestures(face, make_hand(raised=("index",), tip_at=(0.1, 0.1)), None, True, W, H)
        assert not makeup.blush_on
        assert not makeup.lipstick_on

    def test_open_hand_clears(self, face, make_hand):
        makeup = MakeupModule()
        makeup.lipstick_on = makeup.blush_on = True
        makeup.handle_gestures(face, make_hand(raised=("index", "middle", "ring")), Pose.OPEN, False, W, H)
        assert not makeup.lipstick_on
        assert not makeup.blush_on


class TestDraw:
    def test_nothing_enabled_leaves_frame(self, face, make_frame):
        frame = make_frame(H, W, (100, 100, 100))
        MakeupModule().draw(face, frame)
        assert np.all(frame[..., :3] == 100)

    def test_lipstick_tints_lips_only(self, face, make_frame):
        frame = make_frame(H, W, (100, 100, 100))
        makeup = MakeupModule()
        makeup.lipstick_on = True
        makeup.draw(face, frame)

        r, g, b = makeup.current_shade
        expected = np.rint(np.array([100, 100, 100]) * 0.45 + np.array([r, g, b]) * 0.55)
        assert np.allclose(frame[70, 100, :3], expected, atol=1)
        assert np.all(frame[5, 5, :3] == 100)
        assert np.all(frame[..., 3] == 255)

    def test_blush_fades_out(self, face, make_frame):
        frame = make_frame(H, W, (100, 100, 100))
        makeup = MakeupModule()
        makeup.blush_on = True
        makeup.draw(face, frame)

        r = makeup.current_shade[0]
        center = frame[50, 60, 0]
        assert abs(int(center) - round(100 * 0.7 + r * 0.3)) <= 1
        # Радиус 7.5 px: дальше кадр не тронут
        assert frame[50, 70, 0] == 100
        assert frame[50, 140, 0] != 100

    def test_reset_state(self, face, make_hand):
        makeup = MakeupModule()
        makeup.lipstick_on = True
        makeup.handle_gestures(face, make_hand(), Pose.FIST, False, W, H)
        makeup.reset_state()
        assert not makeup.lipstick_on
        assert makeup.last_pose is None
        assert makeup.shade_index == 1
