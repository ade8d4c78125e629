import time
from collections import deque


class MetricsCollector:
    def __init__(self, window: int = 30):
        self.frame_times = deque(maxlen=window)

    def update(self, now: float = None) -> float:
        """Вызывается каждый кадр. Возвращает FPS по последним `window` кадрам."""
        self.frame_times.append(time.perf_counter() if now is None else now)

        if len(self.frame_times) < 2:
            return 0.0

        elapsed = self.frame_times[-1] - self.frame_times[0]
        if elapsed <= 0:
            return 0.0
        return (len(self.frame_times) - 1) / elapsed

    def reset(self):
        self.frame_times.clear()
