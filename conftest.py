import numpy as np
import pytest

from skinmirror.vision.frame_data import Hand, Landmark

FINGER_X = {"index": 0.45, "middle": 0.5, "ring": 0.55, "pinky": 0.6}
INDEX_TIP = 8


def build_hand(raised=(), relaxed=False, wrist_x=0.5, tip_at=None):
    """
    Рука в вертикальном положении.
    raised - поднятые пальцы; остальные сжаты в кулак
    (или полусогнуты при relaxed=True: не вверх и не кулак).
    tip_at - сдвинуть руку так, чтобы кончик указательного был в этой точке.
    """
    pts = [None] * 21
    pts[0] = (wrist_x, 0.8)
    for i, y in zip((1, 2, 3, 4), (0.72, 0.66, 0.62, 0.6)):
        pts[i] = (wrist_x - 0.1, y)

    for finger, start in (("index", 5), ("middle", 9), ("ring", 13), ("pinky", 17)):
        x = wrist_x + FINGER_X[finger] - 0.5
        if finger in raised:
            ys = (0.6, 0.5, 0.45, 0.4)
        elif relaxed:
            ys = (0.6, 0.55, 0.57, 0.58)
        else:
            ys = (0.6, 0.55, 0.62, 0.65)
        for offset, y in enumerate(ys):
            pts[start + offset] = (x, y)

    if tip_at is not None:
        dx = tip_at[0] - pts[INDEX_TIP][0]
        dy = tip_at[1] - pts[INDEX_TIP][1]
        pts = [(x + dx, y + dy) for x, y in pts]

    return Hand(tuple(Landmark(x, y) for x, y in pts))


def build_face(points=None, n=478, default=(0.5, 0.5)):
    lms = [Landmark(*default)] * n
    for idx, (x, y) in (points or {}).items():
        lms[idx] = Landmark(x, y)
    return tuple(lms)


def solid_frame(h, w, rgb, alpha=255):
    frame = np.empty((h, w, 4), dtype=np.uint8)
    frame[..., :3] = rgb
    frame[..., 3] = alpha
    return frame


@pytest.fixture
def make_hand():
    return build_hand


@pytest.fixture
def make_face():
    return build_face


@pytest.fixture
def make_frame():
    return solid_frame
